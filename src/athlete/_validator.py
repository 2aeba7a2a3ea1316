from __future__ import annotations

from collections.abc import Hashable
from typing import Any

from ._errors import InvalidDependencyError, InvalidDependencyListError, InvalidTokenError


def is_token(candidate: Any) -> bool:
    """A token is any callable usable as a graph key (classes and functions)."""
    return callable(candidate) and isinstance(candidate, Hashable)


def is_uninjectable(candidate: Any) -> bool:
    """One-element list/tuple holding a literal passed verbatim to the constructor."""
    return isinstance(candidate, (list, tuple)) and len(candidate) == 1


def is_dependency(candidate: Any) -> bool:
    return is_token(candidate) or is_uninjectable(candidate)


def is_dependency_list(candidate: Any) -> bool:
    return isinstance(candidate, (list, tuple))


def check_token(token: Any) -> None:
    if not is_token(token):
        raise InvalidTokenError(token)


def check_injection(token: Any, dependencies: Any) -> None:
    """Validate the shape of a registration.

    Checks the token first, then the container of dependencies, then every
    dependency in declaration order; the first offending value is reported.
    """
    check_token(token)
    if not is_dependency_list(dependencies):
        raise InvalidDependencyListError(token)
    for dependency in dependencies:
        if not is_dependency(dependency):
            raise InvalidDependencyError(dependency)

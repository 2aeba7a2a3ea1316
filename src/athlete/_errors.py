from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterable


MAX_NAME_LENGTH = 20


def form_name(candidate: Any) -> str:
    """Human readable name of a token or dependency, for error messages."""
    name = getattr(candidate, "__name__", None)
    if isinstance(name, str):
        return name
    return str(candidate)[:MAX_NAME_LENGTH]


def form_names(candidates: Iterable[Any]) -> str:
    return ", ".join(form_name(candidate) for candidate in candidates)


class AthleteError(RuntimeError):
    pass


class InvalidTokenError(AthleteError, TypeError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"[ {form_name(token)} ] is not a token")
        self.token = token


class InvalidDependencyError(AthleteError, TypeError):
    def __init__(self, dependency: Any) -> None:
        super().__init__(f"[ {form_name(dependency)} ] is not a dependency")
        self.dependency = dependency


class InvalidDependencyListError(AthleteError, TypeError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"Wrong dependencies from [ {form_name(token)} ] token")
        self.token = token


class InvalidInjectorExtensionError(AthleteError, TypeError):
    pass


class InvalidModuleError(AthleteError, TypeError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"Module [ {form_name(token)} ] does not provide a callable `export`")
        self.token = token


class InvalidCommandError(AthleteError, TypeError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"Command [ {form_name(token)} ] does not provide a callable `execute`")
        self.token = token


class FrameworkBuiltError(AthleteError):
    pass


class ResolutionError(AthleteError):
    pass


class UnknownTokenError(ResolutionError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"Unknown token: [ {form_name(token)} ] is a dependency but was never injected")
        self.token = token


class CyclicDependencyError(ResolutionError):
    def __init__(self, path: list[Any]) -> None:
        super().__init__(f"Cyclic dependency detected: [ {form_names(path)} ]")
        self.path = path


class UnresolvableTokenError(ResolutionError):
    def __init__(self, token: Any) -> None:
        super().__init__(f"Dependency not found for token: [ {form_name(token)} ]")
        self.token = token

"""Explicit dependency injection runtime.

This package lets callers declare tokens (classes or functions) together with
their ordered dependency lists, validates the resulting graph up front and
resolves instances on demand.

Exports:
- `Framework`: Builder collecting tokens, factories and modules; `build_container()`
  checks the graph for unknown tokens and cycles and returns a `Container`.
- `Container`: Frozen query surface: resolve instances, run commands, introspect.
- `Lifetime`: Enum selecting singleton (memoised) or factory (fresh) instances.
- `Injector` / `Locator`: Capabilities handed to module `export` hooks and to
  command `execute` calls respectively.
- `LOCATOR_TOKEN`: Token resolving to the container's `Locator`.
- The error hierarchy rooted at `AthleteError`.
"""

from ._container import Container, ContainerInfo, Locator
from ._errors import (
    AthleteError,
    CyclicDependencyError,
    FrameworkBuiltError,
    InvalidCommandError,
    InvalidDependencyError,
    InvalidDependencyListError,
    InvalidInjectorExtensionError,
    InvalidModuleError,
    InvalidTokenError,
    ResolutionError,
    UnknownTokenError,
    UnresolvableTokenError,
)
from ._framework import LOCATOR_TOKEN, Framework, Injector
from ._provider import Lifetime
from ._validator import is_dependency, is_token


__all__ = [
    "LOCATOR_TOKEN",
    "AthleteError",
    "Container",
    "ContainerInfo",
    "CyclicDependencyError",
    "Framework",
    "FrameworkBuiltError",
    "Injector",
    "InvalidCommandError",
    "InvalidDependencyError",
    "InvalidDependencyListError",
    "InvalidInjectorExtensionError",
    "InvalidModuleError",
    "InvalidTokenError",
    "Lifetime",
    "Locator",
    "ResolutionError",
    "UnknownTokenError",
    "UnresolvableTokenError",
    "is_dependency",
    "is_token",
]

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any

from ._validator import is_token, is_uninjectable


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    Graph = Mapping[Any, "Provider"]
    Collector = Callable[[Any, Graph], tuple["Provider | None", Any]]


logger = logging.getLogger(__name__)

_DONE = object()


class Lifetime(Enum):
    SINGLETON = "singleton"
    FACTORY = "factory"


def construct(token: Callable[..., Any], args: Sequence[Any]) -> Any:
    # classes and plain functions share the call protocol
    return token(*args)


def unwrap_dependency(dependency: Any, graph: Graph) -> tuple[Provider | None, Any]:
    """Services: literals are unwrapped, tokens are built from their provider."""
    if is_uninjectable(dependency):
        return None, dependency[0]
    return graph[dependency], None


def pass_through_dependency(dependency: Any, graph: Graph) -> tuple[Provider | None, Any]:
    """Modules and commands.

    Tokens naming another entry of ``graph`` become its instance, any other value
    (forwarded tokens, literal wrappers) is handed over untouched.
    """
    if is_token(dependency) and dependency in graph:
        return graph[dependency], None
    return None, dependency


class Singleton:
    """Constructs once, then returns the cached instance."""

    lifetime = Lifetime.SINGLETON

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._created = False
        self._instance: Any = None

    def claim(self) -> bool:
        """Lock the slot for construction; False (and unlocked) when already cached."""
        self._lock.acquire()
        if self._created:
            self._lock.release()
            return False
        return True

    def cached(self) -> Any:
        return self._instance

    def complete(self, token: Callable[..., Any], args: Sequence[Any]) -> Any:
        self._instance = construct(token, args)
        self._created = True
        logger.debug("Created singleton instance of %s", getattr(token, "__qualname__", token))
        return self._instance

    def release(self) -> None:
        self._lock.release()


class Factory:
    """Constructs a fresh instance on every call."""

    lifetime = Lifetime.FACTORY

    def claim(self) -> bool:
        return True

    def cached(self) -> Any:
        return None

    def complete(self, token: Callable[..., Any], args: Sequence[Any]) -> Any:
        return construct(token, args)

    def release(self) -> None:
        pass


class _Frame:
    def __init__(self, provider: Provider) -> None:
        self.provider = provider
        self.pending = iter(provider.dependencies)
        self.args: list[Any] = []


class Provider:
    """Graph record of a token: its dependencies and how instances are made."""

    def __init__(
        self,
        instancer: Singleton | Factory,
        token: Callable[..., Any],
        dependencies: Sequence[Any],
        collect: Collector = unwrap_dependency,
    ) -> None:
        self.instancer = instancer
        self.collect = collect
        self.token = token
        self.dependencies = tuple(dependencies)

    @property
    def lifetime(self) -> Lifetime:
        return self.instancer.lifetime

    def instantiate(self, graph: Graph) -> Any:
        """Build the token, constructing uncached dependencies first.

        The walk keeps its own stack of frames, so dependency chains are not
        bounded by the interpreter recursion limit. Every claimed singleton slot
        stays locked until its frame completes or the walk fails.
        """
        if not self.instancer.claim():
            return self.instancer.cached()

        stack = [_Frame(self)]
        try:
            while True:
                frame = stack[-1]
                dependency = next(frame.pending, _DONE)
                if dependency is not _DONE:
                    provider, value = frame.provider.collect(dependency, graph)
                    if provider is None:
                        frame.args.append(value)
                    elif provider.instancer.claim():
                        stack.append(_Frame(provider))
                    else:
                        frame.args.append(provider.instancer.cached())
                    continue

                instance = frame.provider.instancer.complete(frame.provider.token, frame.args)
                stack.pop()
                frame.provider.instancer.release()
                if not stack:
                    return instance
                stack[-1].args.append(instance)
        finally:
            for frame in stack:
                frame.provider.instancer.release()

    def __repr__(self) -> str:
        name = getattr(self.token, "__qualname__", repr(self.token))
        return f"Provider({name}, lifetime={self.lifetime.value}, dependencies={len(self.dependencies)})"


class ProviderFactory:
    def create_provider(self, token: Callable[..., Any], dependencies: Sequence[Any]) -> Provider:
        return Provider(Singleton(), token, dependencies)

    def create_factory_provider(self, token: Callable[..., Any], dependencies: Sequence[Any]) -> Provider:
        return Provider(Factory(), token, dependencies)

    def create_module_provider(self, token: Callable[..., Any], dependencies: Sequence[Any]) -> Provider:
        return Provider(Singleton(), token, dependencies, pass_through_dependency)

    def create(self, token: Callable[..., Any], dependencies: Sequence[Any], lifetime: Lifetime) -> Provider:
        if lifetime is Lifetime.FACTORY:
            return self.create_factory_provider(token, dependencies)
        return self.create_provider(token, dependencies)

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, NamedTuple, TypeVar

from ._errors import UnknownTokenError, UnresolvableTokenError
from ._resolver import Resolver, factory_tokens
from ._topology import GraphChecker
from ._validator import check_injection, check_token


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from ._provider import Provider

    T = TypeVar("T")


logger = logging.getLogger(__name__)


class ContainerInfo(NamedTuple):
    tokens: Mapping[Any, Provider]
    modules: Mapping[Any, Provider]


class Locator:
    """Read-only view of a container, handed to commands and services."""

    def __init__(self, container: Container) -> None:
        self._container = container

    def resolve_instance(self, token: Callable[..., T]) -> T:
        return self._container.resolve_instance(token)

    def can_be_resolved(self, candidate: Any) -> bool:
        return self._container.can_be_resolved(candidate)

    def get_info(self) -> ContainerInfo:
        return self._container.get_info()


class Container:
    """Query surface over a built, frozen dependency graph.

    - resolve singletons (memoised) and factories (fresh on each call)
    - check whether a token is resolvable
    - execute one-shot commands against the module instances
    - introspect both graphs.

    Containers are produced by ``Framework.build_container()``.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        graph_checker: GraphChecker | None = None,
        *,
        eager: bool = False,
    ) -> None:
        self._resolver = resolver or Resolver()
        self._graph_checker = graph_checker or GraphChecker()
        self._eager = eager
        self._tokens_graph: dict[Any, Provider] = {}
        self._modules_graph: dict[Any, Provider] = {}
        self._modules: dict[Any, Any] = {}
        self._instances: dict[Any, Any] | None = None
        self._factory_tokens: frozenset[Any] = frozenset()
        self.locator = Locator(self)

    def _load(
        self,
        tokens_graph: Mapping[Any, Provider],
        modules_graph: Mapping[Any, Provider],
        modules: Mapping[Any, Any],
    ) -> Container:
        self._graph_checker.check(tokens_graph)
        self._tokens_graph = dict(tokens_graph)
        self._modules_graph = dict(modules_graph)
        self._modules = dict(modules)
        self._factory_tokens = factory_tokens(self._tokens_graph)
        if self._eager:
            self._instances = self._resolver.resolve_instances(self._tokens_graph)
        logger.debug(
            "Container loaded with %d tokens and %d modules (eager=%s)",
            len(self._tokens_graph),
            len(self._modules_graph),
            self._eager,
        )
        return self

    def can_be_resolved(self, candidate: Any) -> bool:
        try:
            return candidate in self._tokens_graph
        except TypeError:
            # unhashable input can never be a registered token
            return False

    def resolve_instance(self, token: Callable[..., T]) -> T:
        check_token(token)
        if self._instances is not None:
            return self._resolver.resolve_instance(token, self._instances, self._factory_tokens)

        if not self.can_be_resolved(token):
            raise UnresolvableTokenError(token)
        return self._tokens_graph[token].instantiate(self._tokens_graph)

    def execute_command(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Container:
        """Construct a command from module instances and run it once.

        Returns the container, so calls can be chained.
        """
        check_injection(token, dependencies)
        unknown = self._graph_checker.find_unknown_dependency(dependencies, self._modules_graph, self._tokens_graph)
        if unknown is not None:
            raise UnknownTokenError(unknown)

        command = self._resolver.resolve_command(token, dependencies, self._modules)
        logger.debug("Executing command %s", getattr(token, "__qualname__", token))
        command.execute(self.locator)
        return self

    def get_info(self) -> ContainerInfo:
        return ContainerInfo(
            tokens=MappingProxyType(self._tokens_graph),
            modules=MappingProxyType(self._modules_graph),
        )

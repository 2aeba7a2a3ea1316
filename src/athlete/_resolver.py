from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

from ._errors import InvalidCommandError, InvalidModuleError, UnresolvableTokenError
from ._provider import Lifetime, construct
from ._topology import Topology, dependency_map
from ._validator import is_token


if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence

    from ._framework import Injector
    from ._provider import Provider


logger = logging.getLogger(__name__)


def factory_tokens(graph: Mapping[Any, Provider]) -> frozenset[Any]:
    return frozenset(token for token, provider in graph.items() if provider.lifetime is Lifetime.FACTORY)


class Resolver:
    """Turns checked provider graphs into live objects, in topological order."""

    def __init__(self, topology: Topology | None = None) -> None:
        self._topology = topology or Topology()

    def resolve_modules(self, module_graph: Mapping[Any, Provider]) -> dict[Any, Any]:
        modules: dict[Any, Any] = {}
        for token in self._topology.sort(dependency_map(module_graph)):
            modules[token] = module_graph[token].instantiate(module_graph)
        return modules

    def export_modules(self, modules: Mapping[Any, Any], injector: Injector) -> None:
        for token, module in modules.items():
            export = getattr(module, "export", None)
            if not callable(export):
                raise InvalidModuleError(token)
            logger.debug("Exporting module %s", getattr(token, "__qualname__", token))
            export(injector)

    def resolve_instances(self, graph: Mapping[Any, Provider]) -> dict[Any, Any]:
        """Build every singleton and a producer for every factory token.

        Singletons are created through their providers, so the instances are the
        same ones lazy resolution would hand out.
        """
        instances: dict[Any, Any] = {}
        for token in self._topology.sort(dependency_map(graph)):
            provider = graph[token]
            if provider.lifetime is Lifetime.FACTORY:
                instances[token] = functools.partial(provider.instantiate, graph)
            else:
                instances[token] = provider.instantiate(graph)
        return instances

    def resolve_instance(self, token: Any, instances: Mapping[Any, Any], factories: Collection[Any]) -> Any:
        if token not in instances:
            raise UnresolvableTokenError(token)
        candidate = instances[token]
        if token in factories:
            producer: Callable[[], Any] = candidate
            return producer()
        return candidate

    def resolve_command(self, token: Callable[..., Any], dependencies: Sequence[Any], modules: Mapping[Any, Any]) -> Any:
        args = [
            modules[dependency] if is_token(dependency) and dependency in modules else dependency
            for dependency in dependencies
        ]
        command = construct(token, args)
        if not callable(getattr(command, "execute", None)):
            raise InvalidCommandError(token)
        return command

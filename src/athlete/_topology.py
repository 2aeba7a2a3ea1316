"""Dependency ordering and structural checks over token graphs.

Two shapes of graph are handled here:

- a *dependency map*, ``token -> sequence of dependencies``, which is what
  :class:`Topology` sorts;
- a *provider graph*, ``token -> provider`` where each provider exposes a
  ``dependencies`` sequence, which is what :class:`GraphChecker` inspects.

Dependencies that are not tokens (uninjectable wrappers) are never traversed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from ._errors import CyclicDependencyError, UnknownTokenError
from ._validator import is_token


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


logger = logging.getLogger(__name__)


class HasDependencies(Protocol):
    dependencies: Sequence[Any]


def dependency_map(graph: Mapping[Any, HasDependencies]) -> dict[Any, Sequence[Any]]:
    return {token: provider.dependencies for token, provider in graph.items()}


class Visitor:
    """Post-order depth-first walk collecting nodes after their dependencies."""

    def __init__(self, graph: Mapping[Any, Sequence[Any]]) -> None:
        self._graph = graph
        # ordered, for reporting the cycle path
        self._visiting: dict[Any, None] = {}
        self._visited: set[Any] = set()
        self._sorted: dict[Any, Sequence[Any]] = {}

    @property
    def sorted(self) -> dict[Any, Sequence[Any]]:
        return self._sorted

    def visit(self, node: Any) -> None:
        if not self._enter(node):
            return

        # explicit stack of (node, remaining dependencies), not bounded by the recursion limit
        stack = [(node, iter(self._graph[node]))]
        while stack:
            current, pending = stack[-1]
            for dependency in pending:
                if self._enter(dependency):
                    stack.append((dependency, iter(self._graph[dependency])))
                    break
            else:
                stack.pop()
                self._sorted[current] = self._graph[current]
                self._visited.add(current)
                del self._visiting[current]

    def _enter(self, node: Any) -> bool:
        if not is_token(node):
            return False

        if node in self._visiting:
            stack = list(self._visiting)
            raise CyclicDependencyError([*stack[stack.index(node) :], node])

        if node in self._visited or node not in self._graph:
            return False

        self._visiting[node] = None
        return True


class Topology:
    def sort(self, graph: Mapping[Any, Sequence[Any]]) -> dict[Any, Sequence[Any]]:
        """Order ``graph`` so that every dependency precedes its dependents.

        Raises:
            CyclicDependencyError: the path runs from the first occurrence of the
                repeated node back to that node.
        """
        visitor = Visitor(graph)
        for node in graph:
            visitor.visit(node)
        return visitor.sorted


class GraphChecker:
    """Structural validation of provider graphs, in insertion order."""

    def __init__(self, topology: Topology | None = None) -> None:
        self._topology = topology or Topology()

    def find_first_unknown_token(
        self,
        graph: Mapping[Any, HasDependencies],
        known: Mapping[Any, Any] | None = None,
    ) -> Any | None:
        graphs = (graph,) if known is None else (graph, known)
        for provider in graph.values():
            unknown = self.find_unknown_dependency(provider.dependencies, *graphs)
            if unknown is not None:
                return unknown
        return None

    def find_unknown_dependency(self, dependencies: Sequence[Any], *graphs: Mapping[Any, Any]) -> Any | None:
        """First token in ``dependencies`` that none of ``graphs`` declares."""
        for dependency in dependencies:
            if is_token(dependency) and not any(dependency in graph for graph in graphs):
                return dependency
        return None

    def find_cyclic_dependencies(self, graph: Mapping[Any, HasDependencies]) -> list[Any] | None:
        try:
            self._topology.sort(dependency_map(graph))
        except CyclicDependencyError as exc:
            return exc.path
        return None

    def check(self, graph: Mapping[Any, HasDependencies], known: Mapping[Any, Any] | None = None) -> None:
        """Raise for the first unknown token, then for the first cycle."""
        unknown = self.find_first_unknown_token(graph, known)
        if unknown is not None:
            raise UnknownTokenError(unknown)

        cycle = self.find_cyclic_dependencies(graph)
        if cycle is not None:
            raise CyclicDependencyError(cycle)

        logger.debug("Checked graph of %d tokens", len(graph))

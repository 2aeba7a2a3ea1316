from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ._container import Container, Locator
from ._errors import FrameworkBuiltError, InvalidInjectorExtensionError, form_name
from ._provider import Lifetime, ProviderFactory
from ._resolver import Resolver
from ._topology import GraphChecker, Topology
from ._validator import check_injection


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ._provider import Provider


logger = logging.getLogger(__name__)


def LOCATOR_TOKEN(locator: Locator) -> Locator:  # noqa: N802
    """Token under which every container registers its own read-only locator."""
    return locator


class Injector:
    """Registration capability given to module ``export`` hooks.

    Modules may add tokens and factories, or call extensions, but can neither
    register modules nor build the container.
    """

    def __init__(self, framework: Framework) -> None:
        self._framework = framework

    def inject(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Injector:
        self._framework.inject(token, dependencies)
        return self

    def inject_factory(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Injector:
        self._framework.inject_factory(token, dependencies)
        return self

    def extend(self, name: str, *args: Any, **kwargs: Any) -> Injector:
        self._framework._call_extension(name, self, *args, **kwargs)  # noqa: SLF001
        return self


class Framework:
    """Builder of dependency graphs.

    Declare tokens, factories and modules, then call ``build_container()`` once:

      container = (
          Framework()
          .inject_factory(Logger)
          .inject(Service, [Logger, ["payload"]])
          .build_container()
      )

    A dependency is either another token or a one-element list/tuple whose
    single value is passed to the constructor verbatim.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory | None = None,
        topology: Topology | None = None,
    ) -> None:
        topology = topology or Topology()
        self._provider_factory = provider_factory or ProviderFactory()
        self._graph_checker = GraphChecker(topology)
        self._resolver = Resolver(topology)
        self._tokens_graph: dict[Any, Provider] = {}
        self._modules_graph: dict[Any, Provider] = {}
        self._extensions: dict[str, Callable[..., Any]] = {}
        self._built = False

    @property
    def built(self) -> bool:
        return self._built

    def register(
        self,
        token: Callable[..., Any],
        dependencies: Sequence[Any] = (),
        *,
        lifetime: Lifetime = Lifetime.SINGLETON,
    ) -> Framework:
        """Register a token with the given lifetime.

        Example:
          framework.register(Database, [["sqlite://"]])
          framework.register(Request, [Database], lifetime=Lifetime.FACTORY)

        """
        self._throw_if_built()
        check_injection(token, dependencies)
        self._store(self._tokens_graph, self._provider_factory.create(token, dependencies, lifetime))
        return self

    def inject(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Framework:
        return self.register(token, dependencies, lifetime=Lifetime.SINGLETON)

    def inject_factory(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Framework:
        return self.register(token, dependencies, lifetime=Lifetime.FACTORY)

    def inject_module(self, token: Callable[..., Any], dependencies: Sequence[Any] = ()) -> Framework:
        self._throw_if_built()
        check_injection(token, dependencies)
        self._store(self._modules_graph, self._provider_factory.create_module_provider(token, dependencies))
        return self

    def register_injector(self, extension: Callable[..., Any]) -> Framework:
        """Register a named extension, later invoked through ``extend(name, ...)``.

        Extensions are called as ``extension(injector, *args, **kwargs)``.
        """
        self._throw_if_built()
        name = getattr(extension, "__name__", None)
        if not callable(extension) or not isinstance(name, str) or not name.isidentifier():
            msg = f"[ {form_name(extension)} ] is not a named callable injector extension"
            raise InvalidInjectorExtensionError(msg)

        self._extensions[name] = extension
        logger.debug("Registered injector extension %s", name)
        return self

    def extend(self, name: str, *args: Any, **kwargs: Any) -> Framework:
        self._call_extension(name, Injector(self), *args, **kwargs)
        return self

    def build_container(self, *, eager: bool = False) -> Container:
        """Resolve modules, validate the token graph and hand it to a new container.

        Building is a one-shot transition: once this has been called, successfully
        or not, the framework accepts no further registration.

        Raises:
            UnknownTokenError: a declared dependency was never injected.
            CyclicDependencyError: the module or token graph contains a cycle.
            FrameworkBuiltError: ``build_container()`` was already called.
        """
        self._throw_if_built()
        try:
            container = Container(self._resolver, self._graph_checker, eager=eager)
            self.inject(LOCATOR_TOKEN, [[container.locator]])

            # forwarded tokens must be declared before modules are constructed
            self._graph_checker.check(self._modules_graph, known=self._tokens_graph)
            modules = self._resolver.resolve_modules(self._modules_graph)
            self._resolver.export_modules(modules, Injector(self))

            logger.debug("Building container from %d tokens and %d modules", len(self._tokens_graph), len(modules))
            return container._load(self._tokens_graph, self._modules_graph, modules)  # noqa: SLF001
        finally:
            self._built = True

    def _call_extension(self, name: str, injector: Injector, *args: Any, **kwargs: Any) -> None:
        extension = self._extensions.get(name)
        if extension is None:
            msg = f"No injector extension registered under [ {name} ]"
            raise InvalidInjectorExtensionError(msg)
        extension(injector, *args, **kwargs)

    def _store(self, graph: dict[Any, Provider], provider: Provider) -> None:
        if provider.token in graph:
            logger.debug("Replacing registration of %s", form_name(provider.token))
        graph[provider.token] = provider

    def _throw_if_built(self) -> None:
        if self._built:
            msg = "build_container() already ran; no further registration is accepted"
            raise FrameworkBuiltError(msg)

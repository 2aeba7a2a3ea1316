import threading
import time
import unittest

import pytest

from athlete import (
    LOCATOR_TOKEN,
    Framework,
    InvalidCommandError,
    InvalidDependencyListError,
    InvalidTokenError,
    Locator,
    UnknownTokenError,
    UnresolvableTokenError,
)


class Settings:
    def __init__(self, env):
        self.env = env


class Client:
    def __init__(self, settings):
        self.settings = settings


class Session:
    def __init__(self, client):
        self.client = client


class ClientModule:
    CLIENT_TOKEN = Client

    def export(self, injector):
        injector.inject(Settings, [["prod"]]).inject(self.CLIENT_TOKEN, [Settings]).inject_factory(Session, [Client])


def build(*, eager=False):
    return Framework().inject_module(ClientModule).build_container(eager=eager)


def test_resolve_unregistered_token_raises():
    class Unknown: ...

    with pytest.raises(UnresolvableTokenError) as ctx:
        build().resolve_instance(Unknown)
    assert ctx.value.token is Unknown


def test_resolve_non_token_raises():
    with pytest.raises(InvalidTokenError):
        build().resolve_instance("Client")


def test_singletons_are_shared_and_factories_fresh():
    container = build()

    assert container.resolve_instance(Client) is container.resolve_instance(Client)
    first = container.resolve_instance(Session)
    second = container.resolve_instance(Session)
    assert first is not second
    assert first.client is second.client


@pytest.mark.parametrize("candidate", [Client, LOCATOR_TOKEN])
def test_can_be_resolved_for_registered_tokens(candidate):
    assert build().can_be_resolved(candidate)


@pytest.mark.parametrize("candidate", [None, "Client", 3, ClientModule, [Client], {"a": 1}, {Client}])
def test_can_be_resolved_never_raises(candidate):
    assert build().can_be_resolved(candidate) is False


def test_get_info_exposes_read_only_graphs():
    info = build().get_info()

    assert Client in info.tokens
    assert ClientModule in info.modules
    assert info.tokens[Client].dependencies == (Settings,)
    with pytest.raises(TypeError):
        info.tokens[Client] = None


class TestEagerContainer(unittest.TestCase):
    def test_eager_builds_singletons_at_build_time(self):
        created = []

        class Warm:
            def __init__(self):
                created.append(self)

        container = Framework().inject(Warm).build_container(eager=True)

        assert len(created) == 1
        assert container.resolve_instance(Warm) is created[0]
        assert len(created) == 1

    def test_eager_factories_stay_deferred(self):
        created = []

        class Cold:
            def __init__(self):
                created.append(self)

        container = Framework().inject_factory(Cold).build_container(eager=True)

        assert created == []
        assert container.resolve_instance(Cold) is not container.resolve_instance(Cold)
        assert len(created) == 2

    def test_eager_resolution_matches_lazy_semantics(self):
        container = build(eager=True)

        assert container.resolve_instance(Client).settings.env == "prod"
        assert container.resolve_instance(Session) is not container.resolve_instance(Session)
        with pytest.raises(UnresolvableTokenError):
            container.resolve_instance(ClientModule)


class TestCommands(unittest.TestCase):
    def test_command_receives_module_instance_and_locator(self):
        seen = {}

        class Inspect:
            def __init__(self, client_module, label):
                self.client_module = client_module
                self.label = label

            def execute(self, locator):
                seen["locator"] = locator
                seen["module"] = self.client_module
                seen["label"] = self.label
                seen["client"] = locator.resolve_instance(self.client_module.CLIENT_TOKEN)

        container = build()
        result = container.execute_command(Inspect, [ClientModule, ["debug"]])

        assert result is container
        assert isinstance(seen["locator"], Locator)
        assert isinstance(seen["module"], ClientModule)
        assert seen["label"] == ["debug"]
        assert seen["client"] is container.resolve_instance(Client)

    def test_commands_are_constructed_on_every_execution(self):
        runs = []

        class Count:
            def execute(self, locator):
                runs.append(self)

        build().execute_command(Count).execute_command(Count)

        assert len(runs) == 2
        assert runs[0] is not runs[1]

    def test_command_locator_is_read_only(self):
        class Probe:
            def execute(self, locator):
                assert locator.can_be_resolved(Client)
                assert Client in locator.get_info().tokens
                assert not hasattr(locator, "execute_command")

        build().execute_command(Probe)

    def test_command_with_unknown_dependency_raises(self):
        class Unregistered: ...

        class Needs:
            def __init__(self, dependency): ...

            def execute(self, locator): ...

        with pytest.raises(UnknownTokenError):
            build().execute_command(Needs, [Unregistered])

    def test_command_rejects_invalid_dependency_list(self):
        class Noop:
            def execute(self, locator): ...

        with pytest.raises(InvalidDependencyListError):
            build().execute_command(Noop, Client)

    def test_command_without_execute_raises(self):
        with pytest.raises(InvalidCommandError):
            build().execute_command(Settings, [["dev"]])


class Link:
    def __init__(self, previous=None):
        self.previous = previous


def make_chain(length):
    return [type(f"Link{index}", (Link,), {}) for index in range(length)]


def depth_of(link):
    depth = 0
    while link is not None:
        depth += 1
        link = link.previous
    return depth


class TestDeepGraphs(unittest.TestCase):
    def register_chain(self, framework, links, inject):
        inject(links[0])
        for previous, current in zip(links, links[1:]):
            inject(current, [previous])
        return framework

    def test_deep_singleton_chain_resolves(self):
        links = make_chain(2000)
        framework = Framework()
        container = self.register_chain(framework, links, framework.inject).build_container()

        last = container.resolve_instance(links[-1])

        assert depth_of(last) == 2000
        assert last.previous is container.resolve_instance(links[-2])

    def test_deep_factory_chain_resolves(self):
        links = make_chain(2000)
        framework = Framework()
        container = self.register_chain(framework, links, framework.inject_factory).build_container()

        first = container.resolve_instance(links[-1])
        second = container.resolve_instance(links[-1])

        assert depth_of(first) == 2000
        assert first.previous is not second.previous

    def test_deep_chain_in_eager_container(self):
        links = make_chain(2000)
        framework = Framework()
        container = self.register_chain(framework, links, framework.inject).build_container(eager=True)

        assert depth_of(container.resolve_instance(links[-1])) == 2000


class TestConcurrentResolution(unittest.TestCase):
    def test_singleton_is_constructed_once_across_threads(self):
        created = []

        class Slow:
            def __init__(self):
                time.sleep(0.01)
                created.append(self)

        container = Framework().inject(Slow).build_container()
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(container.resolve_instance(Slow))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert all(result is created[0] for result in results)

import asyncio

import pytest

from injectry.injection import (
    AggregateDisposalError,
    ContainerInstance,
    ContainerNotFoundError,
    DuplicateContainerIdError,
    ReservedContainerIdError,
    ServiceOptions,
    ServiceScope,
)


class Config:
    created = 0

    def __init__(self):
        type(self).created += 1
        self.disposed = False

    def dispose(self):
        self.disposed = True


class Logger:
    pass


class Resource:
    def __init__(self):
        self.disposed = False

    def dispose(self):
        self.disposed = True


class AsyncResource:
    def __init__(self):
        self.disposed = False

    async def dispose(self):
        await asyncio.sleep(0)
        self.disposed = True


class BrokenResource:
    def dispose(self):
        raise RuntimeError("boom")


class AsyncBrokenResource:
    async def dispose(self):
        raise ValueError("async boom")


class Plugin(Resource):
    pass


class SharedPlugin(Plugin):
    pass


class LocalPlugin(Plugin):
    pass


@pytest.fixture(autouse=True)
def reset_counter():
    Config.created = 0


def test_create_container_registers_it(registry):
    container = registry.create_container("a")
    assert registry.has_container("a")
    assert "a" in registry
    assert len(registry) == 1
    assert registry.get_container("a") is container


def test_default_container_is_not_registered(registry):
    assert not registry.has_container("default")
    assert registry.containers() == [registry.default_container]


def test_reserved_container_id(registry):
    with pytest.raises(ReservedContainerIdError) as exc_info:
        ContainerInstance("default", registry)
    assert exc_info.value.container_id == "default"


def test_duplicate_container_id(registry):
    first = registry.create_container("a")
    with pytest.raises(DuplicateContainerIdError):
        registry.create_container("a")
    assert registry.get_container("a") is first


def test_register_container_rejects_other_objects(registry):
    with pytest.raises(TypeError):
        registry.register_container(object())


def test_get_unknown_container(registry):
    with pytest.raises(ContainerNotFoundError):
        registry.get_container("nope")


def test_singleton_is_shared_across_containers(registry):
    first = registry.create_container("a")
    second = registry.create_container("b")
    first.set(Config, scope=ServiceScope.SINGLETON)
    second.set(Config, scope=ServiceScope.SINGLETON)
    assert second.get(Config) is first.get(Config)
    assert registry.default_container.get(Config) is first.get(Config)
    assert Config.created == 1


def test_singleton_registered_after_resolution_keeps_value(registry):
    first = registry.create_container("a")
    first.set(Config, scope=ServiceScope.SINGLETON)
    config = first.get(Config)
    second = registry.create_container("b")
    second.set(Config, scope=ServiceScope.SINGLETON)
    assert second.get(Config) is config
    assert Config.created == 1


def test_singleton_record_lives_on_default_container(registry):
    container = registry.create_container("a")
    container.set(Config, scope=ServiceScope.SINGLETON)
    records = registry.default_container._metadata_map[Config]
    assert "a" in records[0].referenced_by
    assert Config not in container._metadata_map


def test_default_records_are_cloned_per_container(registry):
    registry.default_container.set(Logger)
    first = registry.create_container("a")
    second = registry.create_container("b")
    assert first.get(Logger) is first.get(Logger)
    assert first.get(Logger) is not second.get(Logger)
    assert first.get(Logger) is not registry.default_container.get(Logger)


def test_local_record_shadows_default(registry):
    registry.default_container.set(identifier="name", value="default")
    container = registry.create_container("a")
    container.set(identifier="name", value="local")
    assert container.get("name") == "local"
    assert registry.default_container.get("name") == "default"


def test_get_instances_of_deduplicates_singletons(registry):
    first = registry.create_container("a")
    second = registry.create_container("b")
    first.set(Config, scope=ServiceScope.SINGLETON)
    second.set(Config, scope=ServiceScope.SINGLETON)
    first.get(Config)
    second.get(Config)
    assert len(registry.get_instances_of(Config)) == 1


def test_get_instances_of_across_containers(registry):
    registry.default_container.set(Logger)
    first = registry.create_container("a")
    second = registry.create_container("b")
    first.get(Logger)
    second.get(Logger)
    assert len(registry.get_instances_of(Logger)) == 2


@pytest.mark.asyncio
async def test_remove_unknown_container(registry):
    stray = registry.create_container("stray")
    await registry.remove_container(stray)
    with pytest.raises(ContainerNotFoundError):
        await registry.remove_container(stray)


@pytest.mark.asyncio
async def test_remove_container_disposes_owned_services(registry):
    container = registry.create_container("a")
    container.set(Resource)
    container.set(AsyncResource)
    resource = container.get(Resource)
    async_resource = container.get(AsyncResource)

    await registry.remove_container(container)

    assert resource.disposed
    assert async_resource.disposed
    assert not registry.has_container("a")
    with pytest.raises(ContainerNotFoundError):
        registry.get_container("a")


@pytest.mark.asyncio
async def test_remove_container_skips_preset_and_transient_values(registry):
    container = registry.create_container("a")
    preset = Resource()
    container.set(identifier="preset", value=preset)
    container.set(identifier="transient", service_type=Resource, scope="transient")
    transient = container.get("transient")

    await registry.remove_container(container)

    assert not preset.disposed
    assert not transient.disposed


@pytest.mark.asyncio
async def test_container_id_is_gone_while_disposal_runs(registry):
    observed = []

    class Watcher:
        async def dispose(self):
            observed.append(registry.has_container("watched"))
            with pytest.raises(ContainerNotFoundError):
                registry.get_container("watched")

    container = registry.create_container("watched")
    container.set(Watcher)
    container.get(Watcher)

    await registry.remove_container(container)

    assert observed == [False]


@pytest.mark.asyncio
async def test_dispose_hooks_run_concurrently(registry):
    barrier = asyncio.Barrier(2)

    class Waiter:
        def __init__(self):
            self.disposed = False

        async def dispose(self):
            # both hooks must be running at once to pass the barrier
            await barrier.wait()
            self.disposed = True

    container = registry.create_container("a")
    container.set(identifier="first", service_type=Waiter)
    container.set(identifier="second", service_type=Waiter)
    first = container.get("first")
    second = container.get("second")

    await asyncio.wait_for(registry.remove_container(container), timeout=2)

    assert first.disposed
    assert second.disposed


@pytest.mark.asyncio
async def test_disposal_failures_are_aggregated(registry):
    container = registry.create_container("a")
    container.set(Resource)
    container.set(BrokenResource)
    container.set(AsyncBrokenResource)
    container.set(AsyncResource)
    resource = container.get(Resource)
    container.get(BrokenResource)
    container.get(AsyncBrokenResource)
    async_resource = container.get(AsyncResource)

    with pytest.raises(AggregateDisposalError) as exc_info:
        await registry.remove_container(container)

    error = exc_info.value
    assert sorted(type(failure).__name__ for failure in error.errors) == [
        "RuntimeError",
        "ValueError",
    ]
    assert error.container_id == "a"
    assert len(error.context["failures"]) == 2
    assert resource.disposed
    assert async_resource.disposed
    assert not registry.has_container("a")
    assert container.disposed


@pytest.mark.asyncio
async def test_singleton_survives_container_removal(registry):
    container = registry.create_container("a")
    container.set(Config, scope=ServiceScope.SINGLETON)
    config = container.get(Config)

    await registry.remove_container(container)

    assert not config.disposed
    assert registry.default_container.get(Config) is config
    record = registry.default_container._metadata_map[Config][0]
    assert "a" not in record.referenced_by


@pytest.mark.asyncio
async def test_default_container_fallback_survives_removal(registry):
    registry.default_container.set(Resource)
    shared = registry.default_container.get(Resource)
    container = registry.create_container("a")
    local = container.get(Resource)

    await registry.remove_container(container)

    assert local.disposed
    assert not shared.disposed


@pytest.mark.asyncio
async def test_container_id_can_be_reused_after_removal(registry):
    container = registry.create_container("a")
    await registry.remove_container(container)
    replacement = registry.create_container("a")
    assert registry.get_container("a") is replacement


@pytest.mark.asyncio
async def test_close_disposes_everything(registry):
    registry.default_container.set(Config, scope=ServiceScope.SINGLETON)
    config = registry.default_container.get(Config)
    container = registry.create_container("a")
    container.set(Resource)
    resource = container.get(Resource)

    await registry.close()

    assert resource.disposed
    assert config.disposed
    assert len(registry) == 0
    assert registry.default_container.disposed


@pytest.mark.asyncio
async def test_close_reports_failure_after_disposing_everything(registry):
    broken = registry.create_container("broken")
    broken.set(BrokenResource)
    broken.get(BrokenResource)
    healthy = registry.create_container("healthy")
    healthy.set(Resource)
    resource = healthy.get(Resource)

    with pytest.raises(AggregateDisposalError):
        await registry.close()

    assert resource.disposed
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_close_reports_every_container_failure(registry):
    first = registry.create_container("first-broken")
    first.set(BrokenResource)
    first.get(BrokenResource)
    second = registry.create_container("second-broken")
    second.set(AsyncBrokenResource)
    second.get(AsyncBrokenResource)
    healthy = registry.create_container("healthy")
    healthy.set(Resource)
    resource = healthy.get(Resource)

    with pytest.raises(AggregateDisposalError) as exc_info:
        await registry.close()

    error = exc_info.value
    assert error.message == "2 container(s) failed to close."
    assert [failure.container_id for failure in error.errors] == [
        "first-broken",
        "second-broken",
    ]
    assert isinstance(error.errors[0].errors[0], RuntimeError)
    assert isinstance(error.errors[1].errors[0], ValueError)
    assert resource.disposed


def test_group_merges_shared_and_local_members(registry):
    container = registry.create_container("a")
    container.set(
        ServiceOptions(
            identifier=Plugin,
            service_type=SharedPlugin,
            multiple=True,
            scope=ServiceScope.SINGLETON,
        )
    )
    container.set(ServiceOptions(identifier=Plugin, service_type=LocalPlugin, multiple=True))

    plugins = container.get_many(Plugin)

    assert [type(plugin) for plugin in plugins] == [SharedPlugin, LocalPlugin]
    assert plugins[0] is registry.default_container.get_many(Plugin)[0]


def test_group_members_keep_registration_order(registry):
    container = registry.create_container("a")
    container.set(identifier=Plugin, service_type=LocalPlugin, multiple=True)
    container.set(
        identifier=Plugin,
        service_type=SharedPlugin,
        multiple=True,
        scope=ServiceScope.SINGLETON,
    )
    assert [type(plugin) for plugin in container.get_many(Plugin)] == [
        LocalPlugin,
        SharedPlugin,
    ]


def test_cloned_group_shares_singleton_member(registry):
    default = registry.default_container
    default.set(
        identifier=Plugin,
        service_type=SharedPlugin,
        multiple=True,
        scope=ServiceScope.SINGLETON,
    )
    default.set(identifier=Plugin, service_type=LocalPlugin, multiple=True)
    first = registry.create_container("a")
    second = registry.create_container("b")

    first_plugins = first.get_many(Plugin)
    second_plugins = second.get_many(Plugin)

    assert first_plugins[0] is second_plugins[0]
    assert first_plugins[0] is default.get_many(Plugin)[0]
    assert first_plugins[1] is not second_plugins[1]
    assert "a" in default._metadata_map[Plugin][0].referenced_by


@pytest.mark.asyncio
async def test_removing_container_keeps_shared_group_member(registry):
    default = registry.default_container
    default.set(
        identifier=Plugin,
        service_type=SharedPlugin,
        multiple=True,
        scope=ServiceScope.SINGLETON,
    )
    default.set(identifier=Plugin, service_type=LocalPlugin, multiple=True)
    container = registry.create_container("a")
    shared, local = container.get_many(Plugin)

    await registry.remove_container(container)

    assert local.disposed
    assert not shared.disposed
    assert default.get_many(Plugin)[0] is shared

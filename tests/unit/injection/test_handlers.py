from typing import Any

import pytest

from injectry.injection import (
    AnnotationTypeResolver,
    CannotInjectValueError,
    ContainerRegistry,
    Handler,
    InjectionSettings,
    ServiceNotFoundError,
    ServiceRegistrar,
    Token,
    TypeResolver,
    TypeWrapper,
)


class Logger:
    pass


class Service:
    logger: Logger


class Car:
    engine: "Engine"


class Engine:
    pass


class Garage:
    pass


class Husband:
    wife: "Wife"


class Wife:
    husband: Husband


class Untyped:
    pass


class Loose:
    anything: Any
    thing: object


class App:
    def __init__(self, logger: Logger):
        self.logger = logger


class Greeter:
    def __init__(self, name: str):
        self.name = name


class Retrying:
    def __init__(self, retries: int = 3, logger: Logger = None):
        self.retries = retries
        self.logger = logger


class PositionalOnly:
    def __init__(self, logger: Logger, /):
        self.logger = logger


class Plugin:
    pass


class Host:
    plugins: list


class Base:
    logger: Logger


class Child(Base):
    pass


def test_attribute_injection_from_annotation(registrar, default_container):
    registrar.service(Logger)
    registrar.service(Service)
    registrar.inject(Service, "logger")
    service = default_container.get(Service)
    assert service.logger is default_container.get(Logger)


def test_inject_returns_handler(registrar):
    handler = registrar.inject(Service, "logger")
    assert isinstance(handler, Handler)
    assert handler.target is Service
    assert handler.member == "logger"
    assert not handler.is_parameter


def test_forward_reference_annotation(registrar, default_container):
    registrar.service(Car)
    registrar.service(Engine)
    registrar.inject(Car, "engine")
    assert isinstance(default_container.get(Car).engine, Engine)


def test_forward_reference_thunk(registrar, default_container):
    registrar.service(Garage)
    registrar.inject(Garage, "car", lambda: Car)
    registrar.service(Car)
    assert isinstance(default_container.get(Garage).car, Car)


def test_explicit_string_identifier(registrar, default_container):
    default_container.set(identifier="greeting", value="hello")
    registrar.service(Untyped)
    registrar.inject(Untyped, "greeting", "greeting")
    assert default_container.get(Untyped).greeting == "hello"


def test_explicit_token_identifier(registrar, default_container):
    api_key = Token[str]("api-key")
    default_container.set(identifier=api_key, value="secret")
    registrar.service(Untyped)
    registrar.inject(Untyped, "api_key", api_key)
    assert default_container.get(Untyped).api_key == "secret"


def test_missing_annotation_fails_at_declaration(registrar):
    with pytest.raises(CannotInjectValueError) as exc_info:
        registrar.inject(Untyped, "dep")
    assert exc_info.value.target is Untyped
    assert exc_info.value.member == "dep"
    assert 'Cannot inject value into "Untyped.dep"' in exc_info.value.message


@pytest.mark.parametrize("member", ["anything", "thing"])
def test_unconstrained_annotation_fails_at_declaration(registrar, member):
    with pytest.raises(CannotInjectValueError):
        registrar.inject(Loose, member)


def test_thunk_returning_any_fails_at_injection(registrar, default_container):
    registrar.service(Untyped)
    registrar.inject(Untyped, "dep", lambda: Any)
    with pytest.raises(CannotInjectValueError):
        default_container.get(Untyped)


def test_injection_point_needs_member_or_index(registrar):
    with pytest.raises(ValueError):
        registrar.inject(Service)


def test_unknown_dependency_raises_service_not_found(registrar, default_container):
    registrar.service(Service)
    registrar.inject(Service, "logger")
    with pytest.raises(ServiceNotFoundError):
        default_container.get(Service)


def test_constructor_parameter_handler(registrar, default_container):
    registrar.service(Logger)
    registrar.service(App)
    handler = registrar.inject(App, index=0)
    assert handler.is_parameter
    assert default_container.get(App).logger is default_container.get(Logger)


def test_constructor_parameter_handler_with_identifier(registrar, default_container):
    default_container.set(identifier="name", value="Ada")
    registrar.service(Greeter)
    registrar.inject(Greeter, index=0, type_or_identifier="name")
    assert default_container.get(Greeter).name == "Ada"


def test_constructor_auto_wiring(registrar, default_container):
    registrar.service(Logger)
    registrar.service(App)
    assert isinstance(default_container.get(App).logger, Logger)


def test_auto_wiring_unregistered_class_raises(registrar, default_container):
    registrar.service(App)
    with pytest.raises(ServiceNotFoundError):
        default_container.get(App)


def test_builtin_parameter_without_default_cannot_be_injected(registrar, default_container):
    registrar.service(Greeter)
    with pytest.raises(CannotInjectValueError) as exc_info:
        default_container.get(Greeter)
    assert exc_info.value.member == "name"


def test_defaults_are_used_for_unregistered_parameters(registrar, default_container):
    registrar.service(Retrying)
    retrying = default_container.get(Retrying)
    assert retrying.retries == 3
    assert retrying.logger is None


def test_registered_type_wins_over_default(registrar, default_container):
    registrar.service(Logger)
    registrar.service(Retrying)
    assert isinstance(default_container.get(Retrying).logger, Logger)


def test_positional_only_parameter(registrar, default_container):
    registrar.service(Logger)
    registrar.service(PositionalOnly)
    assert isinstance(default_container.get(PositionalOnly).logger, Logger)


def test_auto_wiring_can_be_disabled():
    registry = ContainerRegistry(settings=InjectionSettings(auto_wire=False))
    registry.default_container.set(Logger)
    registry.default_container.set(App)
    registry.default_container.set(Retrying)
    with pytest.raises(CannotInjectValueError):
        registry.default_container.get(App)
    assert registry.default_container.get(Retrying).logger is None


def test_inject_many(registrar, default_container):
    class First(Plugin):
        pass

    class Second(Plugin):
        pass

    default_container.set(identifier=Plugin, service_type=First, multiple=True)
    default_container.set(identifier=Plugin, service_type=Second, multiple=True)
    registrar.service(Host)
    registrar.inject_many(Host, "plugins", Plugin)
    plugins = default_container.get(Host).plugins
    assert [type(plugin) for plugin in plugins] == [First, Second]


def test_handlers_apply_to_subclasses(registrar, default_container):
    registrar.service(Logger)
    registrar.service(Child)
    registrar.inject(Base, "logger")
    assert isinstance(default_container.get(Child).logger, Logger)


def test_attribute_cycle_resolves(registrar, default_container):
    registrar.service(Husband)
    registrar.service(Wife)
    registrar.inject(Husband, "wife")
    registrar.inject(Wife, "husband")
    husband = default_container.get(Husband)
    assert husband.wife.husband is husband


def test_default_handlers_resolve_against_active_container(registry, registrar):
    registrar.service(Logger)
    registrar.service(Service)
    registrar.inject(Service, "logger")
    container = registry.create_container("request")
    service = container.get(Service)
    assert service.logger is container.get(Logger)
    assert service.logger is not registry.default_container.get(Logger)


def test_container_handlers_stay_local(registry, default_container):
    container = registry.create_container("request")
    ServiceRegistrar(registry, container).inject(Service, "logger")
    default_container.set(Logger)
    default_container.set(Service)
    assert isinstance(container.get(Service).logger, Logger)
    assert not hasattr(default_container.get(Service), "logger")


def test_custom_type_resolver():
    class FixedResolver:
        def resolve(self, target, member, index):
            return TypeWrapper(Logger, lambda: Logger)

    resolver = FixedResolver()
    assert isinstance(resolver, TypeResolver)
    registry = ContainerRegistry(settings=InjectionSettings(), type_resolver=resolver)
    ServiceRegistrar(registry).inject(Untyped, "dep")
    registry.default_container.set(Logger)
    registry.default_container.set(Untyped)
    assert isinstance(registry.default_container.get(Untyped).dep, Logger)


def test_annotation_type_resolver():
    resolver = AnnotationTypeResolver()

    attribute = resolver.resolve(Car, "engine", None)
    assert attribute.eager_type == "Engine"
    assert attribute.lazy_type() is Engine

    parameter = resolver.resolve(App, None, 0)
    assert parameter.eager_type is Logger
    assert parameter.lazy_type() is Logger

    assert resolver.resolve(App, None, 5) is None
    assert resolver.resolve(Untyped, "dep", None) is None
    assert resolver.resolve(Untyped, None, None) is None

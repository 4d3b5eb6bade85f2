# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Container implementation for injectry.

A ``ContainerInstance`` stores service records per identifier, resolves them
according to their scope and runs handler injection on the instances it
builds. Containers belong to a ``ContainerRegistry``; the registry's default
container holds singleton records and acts as the fallback for identifiers a
container does not know itself.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar, overload

from injectry.injection.config import (
    DEFAULT_CONTAINER_ID,
    InjectionSettings,
    ResetStrategy,
    ServiceScope,
)
from injectry.injection.disposal import _DisposalManager
from injectry.injection.errors import (
    AggregateDisposalError,
    CannotInjectValueError,
    CannotInstantiateValueError,
    ContainerDisposedError,
    ServiceNotFoundError,
)
from injectry.injection.handlers import (
    Handler,
    constructor_parameters,
    is_unconstrained,
)
from injectry.injection.identifiers import ContainerIdentifier, Token
from injectry.injection.metadata import EMPTY_VALUE, ServiceMetadata, ServiceOptions
from injectry.logging import get_logger

if TYPE_CHECKING:
    from injectry.injection.registry import ContainerRegistry

T = TypeVar("T")

logger = get_logger(__name__)


class ContainerInstance:
    """Dependency injection container.

    Services are registered with ``set`` and resolved with ``get`` or
    ``get_many``. Three scopes control caching:

    - ``container``: one value per container
    - ``singleton``: one value per registry, shared by every container
    - ``transient``: a new value on every resolution

    Example:
        ```python
        registry = ContainerRegistry()
        container = ContainerInstance("request-42", registry)
        container.set(Logger)
        container.set(identifier="greeting", value="hello")
        assert container.get(Logger) is container.get(Logger)
        await registry.remove_container(container)
        ```
    """

    def __init__(
        self,
        container_id: ContainerIdentifier,
        registry: ContainerRegistry,
        *,
        _register: bool = True,
    ) -> None:
        """Create a container and register it with ``registry``.

        Args:
            container_id: Unique id within the registry.
            registry: Registry owning this container.

        Raises:
            ReservedContainerIdError: If ``container_id`` is ``"default"``.
            DuplicateContainerIdError: If the id is already registered.
        """
        self.id = container_id
        self.registry = registry
        self._metadata_map: dict[Any, list[ServiceMetadata]] = {}
        self._handlers: list[Handler] = []
        self._disposed = False
        self._disposal_manager = _DisposalManager(container_id)
        if _register:
            registry.register_container(self)
        logger.debug("Container created", extra={"container_id": container_id})

    def __repr__(self) -> str:
        return f"ContainerInstance(id={self.id!r})"

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def settings(self) -> InjectionSettings:
        return self.registry.settings

    @property
    def _default(self) -> ContainerInstance:
        return self.registry.default_container

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set(
        self,
        options: ServiceOptions | type[Any] | None = None,
        /,
        **kwargs: Any,
    ) -> ContainerInstance:
        """Register a service.

        Accepts a ``ServiceOptions``, a class (shorthand for
        ``ServiceOptions(service_type=cls)``) or the options as keywords.
        Keywords given alongside a ``ServiceOptions`` or a class override it.

        Example:
            ```python
            container.set(Logger)
            container.set(Logger, scope=ServiceScope.TRANSIENT)
            container.set(identifier="db", factory=lambda c: connect())
            container.set(ServiceOptions(identifier=Plugin, service_type=A, multiple=True))
            ```

        Singleton registrations are always stored on the default container
        and referenced from this one.
        """
        self._check_not_disposed("set")
        options = _build_options(options, kwargs)
        scope = options.scope or self.settings.default_scope

        if scope is ServiceScope.SINGLETON and self is not self._default:
            identifier = options.resolved_identifier
            # first registration of a shared singleton wins
            if options.multiple or self._default._singleton_record(identifier) is None:
                self._default.set(options)
            for record in self._default._metadata_map[identifier]:
                record.referenced_by.add(self.id)
            return self

        metadata = ServiceMetadata.from_options(
            options,
            self.settings.default_scope,
            self.id,
            order=self.registry.next_registration_order(),
        )
        self._store(metadata)
        logger.debug(
            "Service registered",
            extra={
                "container_id": self.id,
                "identifier": repr(metadata.identifier),
                "scope": metadata.scope,
                "multiple": metadata.multiple,
            },
        )

        if (
            metadata.eager
            and metadata.scope is not ServiceScope.TRANSIENT
            and self.settings.eager_services
        ):
            self._get_service_value(metadata)
        return self

    def _store(self, metadata: ServiceMetadata) -> None:
        records = self._metadata_map.setdefault(metadata.identifier, [])
        if not metadata.multiple:
            for position, existing in enumerate(records):
                if not existing.multiple:
                    records[position] = metadata
                    return
        records.append(metadata)

    def _singleton_record(self, identifier: Any) -> ServiceMetadata | None:
        for record in self._metadata_map.get(identifier, []):
            if record.scope is ServiceScope.SINGLETON and not record.multiple:
                return record
        return None

    def has(self, identifier: Any) -> bool:
        """True if ``get`` can find a record for ``identifier``."""
        return identifier in self._metadata_map or identifier in self._default._metadata_map

    def remove(self, identifier: Any | list[Any]) -> ContainerInstance:
        """Forget the records of one or more identifiers, disposing cached values.

        Every record is forgotten and every hook runs even when some fail.

        Raises:
            AggregateDisposalError: If any disposal hook raised.
        """
        self._check_not_disposed("remove")
        identifiers = identifier if isinstance(identifier, list | tuple) else [identifier]
        removed = [
            record
            for current in identifiers
            for record in self._metadata_map.pop(current, [])
        ]
        self._dispose_records(removed)
        return self

    def register_handler(self, handler: Handler) -> ContainerInstance:
        """Add a deferred injection instruction."""
        self._check_not_disposed("register_handler")
        self._handlers.append(handler)
        return self

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @overload
    def get(self, identifier: type[T]) -> T: ...

    @overload
    def get(self, identifier: Token[T]) -> T: ...

    @overload
    def get(self, identifier: str) -> Any: ...

    def get(self, identifier: Any) -> Any:
        """Resolve ``identifier`` to a value.

        When several records share the identifier, the last registered
        non-multiple one is used if present, otherwise the last registered.

        Raises:
            ServiceNotFoundError: If no record exists here or in the default container.
            CannotInstantiateValueError: If the record has nothing to build from.
            CannotInjectValueError: If a constructor parameter cannot be typed.
        """
        self._check_not_disposed("get")
        records = self._find_records(identifier)
        single = [record for record in records if not record.multiple]
        return self._get_service_value(single[-1] if single else records[-1])

    def get_many(self, identifier: Any) -> list[Any]:
        """Resolve every ``multiple`` record of ``identifier`` in registration order."""
        self._check_not_disposed("get_many")
        records = self._find_records(identifier)
        grouped = [record for record in records if record.multiple]
        if not grouped:
            return [self._get_service_value(records[-1])]
        return [self._get_service_value(record) for record in grouped]

    def get_instances_of(self, cls: type[T]) -> list[T]:
        """Cached values in this container that are instances of ``cls``."""
        found: dict[int, Any] = {}
        for records in self._metadata_map.values():
            for record in records:
                if record.has_value and isinstance(record.value, cls):
                    found.setdefault(id(record.value), record.value)
        return list(found.values())

    def of(self, container_id: ContainerIdentifier = DEFAULT_CONTAINER_ID) -> ContainerInstance:
        """Return the container registered under ``container_id``, creating it if needed."""
        self._check_not_disposed("of")
        if container_id == DEFAULT_CONTAINER_ID:
            return self._default
        if self.registry.has_container(container_id):
            return self.registry.get_container(container_id)
        return ContainerInstance(container_id, self.registry)

    def _find_records(self, identifier: Any) -> list[ServiceMetadata]:
        """Records visible from this container, in registration order.

        Singleton records are the default container's canonical ones. Other
        records are this container's own, or clones of the default
        container's when this container has none.
        """
        local_records = self._metadata_map.get(identifier, [])
        if self is self._default:
            if not local_records:
                raise ServiceNotFoundError(identifier, self.id)
            return local_records

        global_records = self._default._metadata_map.get(identifier, [])
        shared = [
            record for record in global_records if record.scope is ServiceScope.SINGLETON
        ]
        for record in shared:
            record.referenced_by.add(self.id)

        if not local_records:
            local_records = [
                record.clone_for(self.id)
                for record in global_records
                if record.scope is not ServiceScope.SINGLETON
            ]
            if local_records:
                self._metadata_map[identifier] = local_records

        records = sorted([*shared, *local_records], key=lambda record: record.order)
        if not records:
            raise ServiceNotFoundError(identifier, self.id)
        return records

    def _get_service_value(self, metadata: ServiceMetadata) -> Any:
        if metadata.has_value:
            return metadata.value

        if metadata.factory is None and metadata.service_type is None:
            raise CannotInstantiateValueError(metadata.identifier)

        if metadata.factory is not None:
            value = self._call_factory(metadata)
        else:
            value = self._construct(metadata.service_type)

        # cached before attribute injection so attribute cycles find this value
        if metadata.scope is not ServiceScope.TRANSIENT:
            metadata.value = value

        if metadata.service_type is not None:
            self._apply_property_handlers(metadata.service_type, value)
        return value

    def _call_factory(self, metadata: ServiceMetadata) -> Any:
        factory = metadata.factory
        if isinstance(factory, tuple):
            factory_class, method_name = factory
            try:
                factory_instance = self.get(factory_class)
            except ServiceNotFoundError:
                factory_instance = self._construct(factory_class)
            factory = getattr(factory_instance, method_name)
        return _invoke_factory(factory, self, metadata.identifier)

    def _construct(self, cls: type[T]) -> T:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        handlers = self._parameter_handlers(cls)

        for index, param in enumerate(constructor_parameters(cls)):
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            handler = handlers.get(index)
            if handler is not None:
                value = handler.value(self)
            else:
                value = self._resolve_parameter(cls, index, param)
                if value is inspect.Parameter.empty:
                    if param.kind is not param.POSITIONAL_ONLY:
                        continue
                    value = param.default
            if param.kind is param.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[param.name] = value

        return cls(*args, **kwargs)

    def _resolve_parameter(
        self, cls: type[Any], index: int, param: inspect.Parameter
    ) -> Any:
        """Resolve an unhandled constructor parameter.

        Resolution precedence:
        1. registered annotated type
        2. unregistered non-builtin class, unless a default exists
        3. default
        4. error.
        """
        has_default = param.default is not inspect.Parameter.empty
        if self.settings.auto_wire:
            type_wrapper = self.registry.type_resolver.resolve(cls, None, index)
            candidate = type_wrapper.lazy_type() if type_wrapper is not None else None
            if not is_unconstrained(candidate):
                if self.has(candidate):
                    return self.get(candidate)
                if not has_default and _is_injectable_class(candidate):
                    return self.get(candidate)

        if has_default:
            return inspect.Parameter.empty
        raise CannotInjectValueError(cls, param.name)

    def _all_handlers(self) -> list[Handler]:
        if self is self._default:
            return list(self._handlers)
        return [*self._default._handlers, *self._handlers]

    def _parameter_handlers(self, cls: type[Any]) -> dict[int, Handler]:
        # handlers follow the class whose __init__ is actually called
        init_owner = next(
            (klass for klass in cls.__mro__ if "__init__" in vars(klass)), object
        )
        found: dict[int, Handler] = {}
        for handler in self._all_handlers():
            if handler.index is None:
                continue
            if handler.target is cls or handler.target is init_owner:
                found[handler.index] = handler
        return found

    def _apply_property_handlers(self, target: type[Any], instance: Any) -> None:
        for handler in self._all_handlers():
            if handler.is_parameter or handler.member is None:
                continue
            if not issubclass(target, handler.target):
                continue
            setattr(instance, handler.member, handler.value(self))

    # ------------------------------------------------------------------
    # Disposal
    # ------------------------------------------------------------------

    def reset(
        self, strategy: ResetStrategy | str = ResetStrategy.RESET_VALUE
    ) -> ContainerInstance:
        """Drop cached values, or with ``RESET_SERVICES`` every record as well.

        Raises:
            AggregateDisposalError: If any disposal hook raised; the reset is
                complete regardless.
        """
        self._check_not_disposed("reset")
        strategy = ResetStrategy(strategy)
        records = [record for group in self._metadata_map.values() for record in group]
        if strategy is ResetStrategy.RESET_SERVICES:
            self._metadata_map.clear()
        self._dispose_records(records)
        return self

    async def dispose(self) -> None:
        """Dispose the container and the service values it owns.

        The container is unusable afterwards. Owned values are those of
        container-scoped records built by this container (and singleton
        records when this is the default container). Their ``dispose`` hooks
        run concurrently; every hook runs even when others fail.

        Raises:
            AggregateDisposalError: If any hook raised.
        """
        if self._disposed:
            return
        self._disposed = True

        failures = await self._disposal_manager.wait_for_pending_tasks()
        values = _release_values(self._owned_records())
        failures.extend(await self._disposal_manager.dispose_services(values))

        if self is not self._default:
            for records in self._default._metadata_map.values():
                for record in records:
                    record.referenced_by.discard(self.id)

        self._metadata_map.clear()
        self._handlers.clear()
        logger.debug(
            "Container disposed",
            extra={"container_id": self.id, "failures": len(failures)},
        )
        if failures:
            raise AggregateDisposalError(self.id, failures)

    def _owned_records(self) -> list[ServiceMetadata]:
        owned_scopes = {ServiceScope.CONTAINER}
        if self is self._default:
            owned_scopes.add(ServiceScope.SINGLETON)
        return [
            record
            for records in self._metadata_map.values()
            for record in records
            if record.is_constructed and record.scope in owned_scopes
        ]

    def _dispose_records(self, records: list[ServiceMetadata]) -> None:
        values = _release_values(records)
        failures = self._disposal_manager.dispose_services_sync(values)
        if failures:
            raise AggregateDisposalError(self.id, failures)

    def _check_not_disposed(self, operation: str) -> None:
        if self._disposed:
            raise ContainerDisposedError(self.id, operation)


def _build_options(
    options: ServiceOptions | type[Any] | None, overrides: dict[str, Any]
) -> ServiceOptions:
    if isinstance(options, ServiceOptions):
        if not overrides:
            return options
        data = {name: getattr(options, name) for name in ServiceOptions.model_fields}
        return ServiceOptions(**{**data, **overrides})
    if inspect.isclass(options):
        return ServiceOptions(service_type=options, **overrides)
    if options is None:
        return ServiceOptions(**overrides)
    raise TypeError(
        f"Expected ServiceOptions or a class, got {type(options).__name__}"
    )


def _invoke_factory(factory: Callable[..., Any], container: ContainerInstance, identifier: Any) -> Any:
    """Call ``factory`` with as many of (container, identifier) as it accepts."""
    try:
        params = list(inspect.signature(factory).parameters.values())
    except (TypeError, ValueError):
        return factory(container, identifier)

    if any(param.kind is param.VAR_POSITIONAL for param in params):
        return factory(container, identifier)
    positional = [
        param
        for param in params
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
    ]
    return factory(*(container, identifier)[: len(positional)])


def _is_injectable_class(candidate: Any) -> bool:
    return inspect.isclass(candidate) and candidate.__module__ != "builtins"


def _release_values(records: Iterable[ServiceMetadata]) -> list[Any]:
    """Empty the caches of constructed records and return their distinct values."""
    values: dict[int, Any] = {}
    for record in records:
        if record.is_constructed and record.has_value:
            values.setdefault(id(record.value), record.value)
            record.value = EMPTY_VALUE
    return list(values.values())

# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Service registration options and the per-container service records built from them.

``ServiceOptions`` is the validated input handed to ``ContainerInstance.set``.
``ServiceMetadata`` is the mutable record a container stores; its ``value``
holds the cached instance once resolved.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, model_validator

from injectry.injection.config import ServiceScope


class _EmptyValue:
    """Marker for a record whose value has not been computed."""

    _instance: _EmptyValue | None = None

    def __new__(cls) -> _EmptyValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY_VALUE"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _EmptyValue:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _EmptyValue:
        return self


EMPTY_VALUE: Final = _EmptyValue()

ServiceFactory = Callable[..., Any] | tuple[type[Any], str]


class ServiceOptions(BaseModel):
    """Options describing one service registration.

    Attributes:
        identifier: Key the service is resolved by; defaults to ``service_type``.
        service_type: Class constructed when no factory or value is given.
        factory: ``(container, identifier) -> value`` callable, or a
            ``(FactoryClass, "method_name")`` pair.
        value: Preset value; the service is never constructed.
        multiple: Part of a group resolved together with ``get_many``.
        eager: Compute the value as soon as it is registered.
        scope: Caching policy; the container's configured default when omitted.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    identifier: Any = None
    service_type: type[Any] | None = None
    factory: ServiceFactory | None = None
    value: Any = EMPTY_VALUE
    multiple: bool = False
    eager: bool = False
    scope: ServiceScope | None = None

    @model_validator(mode="after")
    def check_consistency(self) -> ServiceOptions:
        if self.identifier is None and self.service_type is None:
            raise ValueError("Either `identifier` or `service_type` must be provided.")
        if self.factory is not None and self.value is not EMPTY_VALUE:
            raise ValueError("Provide either `factory` or `value`, not both.")
        if isinstance(self.factory, tuple) and not isinstance(self.factory[1], str):
            raise ValueError("Factory method pairs must be (FactoryClass, 'method_name').")
        return self

    @property
    def resolved_identifier(self) -> Any:
        return self.service_type if self.identifier is None else self.identifier


@dataclass(eq=False)
class ServiceMetadata:
    """A service record held by a container.

    ``order`` is the registry-wide registration sequence number; clones keep
    the number of the record they were copied from.
    """

    identifier: Any
    service_type: type[Any] | None
    factory: ServiceFactory | None
    scope: ServiceScope
    multiple: bool = False
    eager: bool = False
    value: Any = EMPTY_VALUE
    preset: bool = False
    order: int = 0
    referenced_by: set[str] = field(default_factory=set)

    @classmethod
    def from_options(
        cls,
        options: ServiceOptions,
        default_scope: ServiceScope,
        container_id: str,
        order: int = 0,
    ) -> ServiceMetadata:
        return cls(
            identifier=options.resolved_identifier,
            service_type=options.service_type,
            factory=options.factory,
            scope=options.scope or default_scope,
            multiple=options.multiple,
            eager=options.eager,
            value=options.value,
            preset=options.value is not EMPTY_VALUE,
            order=order,
            referenced_by={container_id},
        )

    @property
    def has_value(self) -> bool:
        return self.value is not EMPTY_VALUE

    @property
    def is_constructed(self) -> bool:
        """True when the container builds the value itself rather than receiving it."""
        if self.preset:
            return False
        return self.service_type is not None or self.factory is not None

    def clone_for(self, container_id: str) -> ServiceMetadata:
        """Copy this record for another container, without its cached value."""
        if self.is_constructed:
            value = EMPTY_VALUE
        else:
            value = self.value
        return replace(self, value=value, referenced_by={container_id})

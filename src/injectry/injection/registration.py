# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Explicit registration API.

Services and injection points are declared once at startup through a
``ServiceRegistrar`` bound to a container (the registry's default container
unless another is given).

Example:
    ```python
    registry = ContainerRegistry()
    services = ServiceRegistrar(registry)

    services.service(Logger)
    services.service(App)
    services.inject(App, "logger")                # type from App's annotations
    services.inject(App, "repo", lambda: Repo)    # Repo defined further down
    services.inject(App, index=0)                 # first __init__ parameter
    services.inject_many(App, "plugins", Plugin)

    app = registry.default_container.get(App)
    ```
"""

from __future__ import annotations

from typing import Any, TypeVar

from injectry.injection.container import ContainerInstance
from injectry.injection.errors import CannotInjectValueError
from injectry.injection.handlers import (
    DEFERRED,
    Handler,
    is_unconstrained,
    make_injection_value,
    resolve_to_type_wrapper,
)
from injectry.injection.metadata import ServiceOptions
from injectry.injection.registry import ContainerRegistry

T = TypeVar("T")


class ServiceRegistrar:
    """Declares services and injection points on a container."""

    def __init__(
        self,
        registry: ContainerRegistry,
        container: ContainerInstance | None = None,
    ) -> None:
        self.registry = registry
        self.container = container or registry.default_container

    def service(self, service_type: type[T] | None = None, **options: Any) -> type[T] | None:
        """Register a service; keyword options are those of ``ServiceOptions``.

        Returns ``service_type`` so the call can be chained or used inline.
        """
        self.container.set(ServiceOptions(service_type=service_type, **options))
        return service_type

    def inject(
        self,
        target: type[Any],
        member: str | None = None,
        type_or_identifier: Any = None,
        *,
        index: int | None = None,
    ) -> Handler:
        """Declare an injection point resolved with ``get``.

        Args:
            target: Class whose instances receive the value.
            member: Attribute name; omit for a constructor parameter.
            type_or_identifier: Identifier, class, or zero-argument callable
                returning the class. Inferred from annotations when omitted.
            index: Constructor parameter position (``self`` excluded).

        Raises:
            CannotInjectValueError: If no usable type can be determined.
        """
        return self._register(target, member, type_or_identifier, index, many=False)

    def inject_many(
        self,
        target: type[Any],
        member: str | None = None,
        type_or_identifier: Any = None,
        *,
        index: int | None = None,
    ) -> Handler:
        """Declare an injection point resolved with ``get_many``."""
        return self._register(target, member, type_or_identifier, index, many=True)

    def _register(
        self,
        target: type[Any],
        member: str | None,
        type_or_identifier: Any,
        index: int | None,
        *,
        many: bool,
    ) -> Handler:
        if member is None and index is None:
            raise ValueError("An injection point needs a member name or a parameter index.")

        type_wrapper = resolve_to_type_wrapper(
            type_or_identifier, target, member, index, self.registry.type_resolver
        )
        point = member if member is not None else index
        if type_wrapper is None or (
            type_wrapper.eager_type is not DEFERRED
            and is_unconstrained(type_wrapper.eager_type)
        ):
            raise CannotInjectValueError(target, point)

        handler = Handler(
            target=target,
            member=member if index is None else None,
            index=index,
            value=make_injection_value(type_wrapper, target, point, many=many),
        )
        self.container.register_handler(handler)
        return handler

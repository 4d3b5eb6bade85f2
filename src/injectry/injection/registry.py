# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Container registry.

The registry owns the default container and every container created against
it. Applications create one registry at startup and pass it to whatever needs
to create or look up containers; nothing here is module-level state.
"""

from __future__ import annotations

import itertools
from typing import Any, TypeVar

from injectry.injection.config import DEFAULT_CONTAINER_ID, InjectionSettings
from injectry.injection.container import ContainerInstance
from injectry.injection.errors import (
    AggregateDisposalError,
    ContainerNotFoundError,
    DuplicateContainerIdError,
    ReservedContainerIdError,
)
from injectry.injection.handlers import AnnotationTypeResolver, TypeResolver
from injectry.injection.identifiers import ContainerIdentifier
from injectry.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class ContainerRegistry:
    """Holds the default container and every registered container by id.

    The default container is not part of the id map; ``"default"`` cannot be
    registered.

    Attributes:
        settings: Injection settings shared by all containers of this registry.
        type_resolver: Infers injection types for handlers and constructor
            parameters.
        default_container: The container that stores singleton records and
            serves as fallback for every other container.
    """

    def __init__(
        self,
        settings: InjectionSettings | None = None,
        type_resolver: TypeResolver | None = None,
    ) -> None:
        self.settings = settings or InjectionSettings.load()
        self.type_resolver: TypeResolver = type_resolver or AnnotationTypeResolver()
        self._container_map: dict[ContainerIdentifier, ContainerInstance] = {}
        self._registration_sequence = itertools.count(1)
        self.default_container = ContainerInstance(
            DEFAULT_CONTAINER_ID, self, _register=False
        )

    def __contains__(self, container_id: object) -> bool:
        return container_id in self._container_map

    def __len__(self) -> int:
        return len(self._container_map)

    def register_container(self, container: ContainerInstance) -> None:
        """Register ``container`` under its id.

        Called by ``ContainerInstance.__init__``; there is no need to call it
        directly.

        Raises:
            TypeError: If ``container`` is not a ContainerInstance.
            ReservedContainerIdError: If the id is ``"default"``.
            DuplicateContainerIdError: If the id is already registered.
        """
        if not isinstance(container, ContainerInstance):
            raise TypeError("Only ContainerInstance instances can be registered.")
        if container.id == DEFAULT_CONTAINER_ID:
            raise ReservedContainerIdError(container.id)
        if container.id in self._container_map:
            raise DuplicateContainerIdError(container.id)
        self._container_map[container.id] = container
        logger.debug("Container registered", extra={"container_id": container.id})

    def next_registration_order(self) -> int:
        """Sequence number ordering service records across all containers."""
        return next(self._registration_sequence)

    def create_container(self, container_id: ContainerIdentifier) -> ContainerInstance:
        """Create and register a new container."""
        return ContainerInstance(container_id, self)

    def has_container(self, container_id: ContainerIdentifier) -> bool:
        return container_id in self._container_map

    def get_container(self, container_id: ContainerIdentifier) -> ContainerInstance:
        """Return the container registered under ``container_id``.

        Raises:
            ContainerNotFoundError: If no container has that id.
        """
        try:
            return self._container_map[container_id]
        except KeyError:
            raise ContainerNotFoundError(container_id) from None

    def containers(self) -> list[ContainerInstance]:
        """The default container followed by every registered container."""
        return [self.default_container, *self._container_map.values()]

    def get_instances_of(self, cls: type[T]) -> list[T]:
        """Every cached instance of ``cls`` across all containers, without duplicates."""
        found: dict[int, Any] = {}
        for container in self.containers():
            for instance in container.get_instances_of(cls):
                found.setdefault(id(instance), instance)
        return list(found.values())

    async def remove_container(self, container: ContainerInstance) -> None:
        """Unregister ``container`` and dispose the services it owns.

        The container leaves the registry before disposal starts, so lookups
        by its id fail with ``ContainerNotFoundError`` while hooks are running.

        Raises:
            ContainerNotFoundError: If the container's id is not registered.
            AggregateDisposalError: If any disposal hook raised.
        """
        registered = self._container_map.get(container.id)
        if registered is None:
            raise ContainerNotFoundError(container.id)

        del self._container_map[container.id]
        logger.debug("Container removed", extra={"container_id": container.id})
        await registered.dispose()

    async def close(self) -> None:
        """Remove every container, then dispose the default container.

        Disposal failures of individual containers do not stop the others.

        Raises:
            AggregateDisposalError: Once everything has been disposed, if any
                container failed; ``errors`` holds each container's failure.
        """
        failures: list[Exception] = []
        for container in list(self._container_map.values()):
            try:
                await self.remove_container(container)
            except Exception as exc:
                logger.warning(
                    "Container failed to close",
                    extra={"container_id": container.id, "error": repr(exc)},
                )
                failures.append(exc)
        try:
            await self.default_container.dispose()
        except Exception as exc:
            failures.append(exc)
        if failures:
            raise AggregateDisposalError(
                DEFAULT_CONTAINER_ID,
                failures,
                message=f"{len(failures)} container(s) failed to close.",
            )

# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry
"""
Error classes for the injectry dependency injection runtime.

Every error carries an ``ErrorCode`` from the ``INJECTION`` category (or its
``CONTAINER`` child) plus structured context describing the identifier,
target, or container involved.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

from injectry.errors.base import ErrorCategory, ErrorCode, ErrorSeverity, InjectryError
from injectry.injection.identifiers import describe_identifier

INJECTION: Final = ErrorCategory.get_or_create("INJECTION")
INJECTION_ERROR: Final = ErrorCode.get_or_create("INJECTION_ERROR", INJECTION)
INJECTION_SERVICE_NOT_FOUND: Final = ErrorCode.get_or_create(
    "INJECTION_SERVICE_NOT_FOUND", INJECTION
)
INJECTION_CANNOT_INJECT: Final = ErrorCode.get_or_create(
    "INJECTION_CANNOT_INJECT", INJECTION
)
INJECTION_CANNOT_INSTANTIATE: Final = ErrorCode.get_or_create(
    "INJECTION_CANNOT_INSTANTIATE", INJECTION
)

CONTAINER: Final = ErrorCategory.get_or_create("CONTAINER", parent=INJECTION)
CONTAINER_ERROR: Final = ErrorCode.get_or_create("CONTAINER_ERROR", CONTAINER)
CONTAINER_DUPLICATE_ID: Final = ErrorCode.get_or_create(
    "CONTAINER_DUPLICATE_ID", CONTAINER
)
CONTAINER_RESERVED_ID: Final = ErrorCode.get_or_create(
    "CONTAINER_RESERVED_ID", CONTAINER
)
CONTAINER_NOT_FOUND: Final = ErrorCode.get_or_create("CONTAINER_NOT_FOUND", CONTAINER)
CONTAINER_DISPOSED: Final = ErrorCode.get_or_create("CONTAINER_DISPOSED", CONTAINER)
CONTAINER_DISPOSAL: Final = ErrorCode.get_or_create("CONTAINER_DISPOSAL", CONTAINER)


class InjectionError(InjectryError):
    """Base class for all injection errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = INJECTION_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code=code,
            severity=severity,
            context=context,
            **kwargs,
        )


class ServiceNotFoundError(InjectionError):
    """Raised when a requested identifier has no record in the container."""

    def __init__(self, identifier: Any, container_id: str | None = None) -> None:
        name = describe_identifier(identifier)
        ctx: dict[str, Any] = {"identifier": name}
        if container_id is not None:
            ctx["container_id"] = container_id
        super().__init__(
            f'Service with "{name}" identifier was not found in the container. '
            'Register it before usage via "ContainerInstance.set" or a '
            "ServiceRegistrar.",
            code=INJECTION_SERVICE_NOT_FOUND,
            **ctx,
        )
        self.identifier = identifier


class CannotInjectValueError(InjectionError):
    """Raised when the type of an injection point cannot be determined."""

    def __init__(self, target: type[Any], member: str | int | None) -> None:
        target_name = getattr(target, "__qualname__", repr(target))
        super().__init__(
            f'Cannot inject value into "{target_name}.{member}". '
            "Annotate the injection point with a concrete type or pass an "
            "explicit identifier.",
            code=INJECTION_CANNOT_INJECT,
            target=target_name,
            member=member,
        )
        self.target = target
        self.member = member


class CannotInstantiateValueError(InjectionError):
    """Raised when a record has neither a factory nor a type to construct."""

    def __init__(self, identifier: Any) -> None:
        name = describe_identifier(identifier)
        super().__init__(
            f'Cannot instantiate the requested value for the "{name}" identifier. '
            "The related metadata doesn't contain a factory or a type to instantiate.",
            code=INJECTION_CANNOT_INSTANTIATE,
            identifier=name,
        )
        self.identifier = identifier


class ContainerError(InjectionError):
    """Base class for container lifecycle errors."""

    def __init__(
        self,
        message: str,
        container_id: str,
        code: ErrorCode = CONTAINER_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code=code,
            severity=severity,
            container_id=container_id,
            **kwargs,
        )
        self.container_id = container_id


class DuplicateContainerIdError(ContainerError):
    """Raised when a container id is registered twice."""

    def __init__(self, container_id: str) -> None:
        super().__init__(
            f'Cannot register container with the "{container_id}" ID: '
            "a container with the same ID already exists.",
            container_id,
            code=CONTAINER_DUPLICATE_ID,
        )


class ReservedContainerIdError(ContainerError):
    """Raised when a container tries to register under the reserved default id."""

    def __init__(self, container_id: str) -> None:
        super().__init__(
            f'You cannot register a container with the "{container_id}" ID.',
            container_id,
            code=CONTAINER_RESERVED_ID,
        )


class ContainerNotFoundError(ContainerError):
    """Raised when no container is registered under the requested id."""

    def __init__(self, container_id: str) -> None:
        super().__init__(
            f'No container is registered with the "{container_id}" ID.',
            container_id,
            code=CONTAINER_NOT_FOUND,
        )


class ContainerDisposedError(ContainerError):
    """Raised when a disposed container is used."""

    def __init__(self, container_id: str, operation: str) -> None:
        super().__init__(
            f'Cannot {operation} on container "{container_id}" after it has been disposed.',
            container_id,
            code=CONTAINER_DISPOSED,
            operation=operation,
        )


class AggregateDisposalError(ContainerError):
    """Raised after disposal when one or more disposal hooks failed.

    Every hook runs regardless of the others; ``errors`` holds each failure.
    ``ContainerRegistry.close`` raises one whose ``errors`` are the failures of
    the individual containers.
    """

    def __init__(
        self,
        container_id: str,
        errors: Sequence[BaseException],
        message: str | None = None,
    ) -> None:
        super().__init__(
            message
            or f'{len(errors)} service(s) failed to dispose in container "{container_id}".',
            container_id,
            code=CONTAINER_DISPOSAL,
            failures=[f"{type(error).__name__}: {error}" for error in errors],
        )
        self.errors = list(errors)
        if errors:
            self.__cause__ = errors[0]

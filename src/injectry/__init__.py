# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
injectry: a dependency injection runtime.

Containers hold service records keyed by class, string name or ``Token`` and
resolve them with container, singleton or transient caching. Attribute and
constructor injection is declared through ``ServiceRegistrar`` and evaluated
lazily, so injection points may reference classes defined later.
"""

from injectry.injection import (
    DEFAULT_CONTAINER_ID,
    EMPTY_VALUE,
    AggregateDisposalError,
    AnnotationTypeResolver,
    CannotInjectValueError,
    CannotInstantiateValueError,
    ContainerDisposedError,
    ContainerError,
    ContainerInstance,
    ContainerNotFoundError,
    ContainerRegistry,
    DuplicateContainerIdError,
    Handler,
    InjectionError,
    InjectionSettings,
    ReservedContainerIdError,
    ResetStrategy,
    ServiceIdentifier,
    ServiceMetadata,
    ServiceNotFoundError,
    ServiceOptions,
    ServiceRegistrar,
    ServiceScope,
    Token,
    TypeResolver,
    TypeWrapper,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONTAINER_ID",
    "EMPTY_VALUE",
    "AggregateDisposalError",
    "AnnotationTypeResolver",
    "CannotInjectValueError",
    "CannotInstantiateValueError",
    "ContainerDisposedError",
    "ContainerError",
    "ContainerInstance",
    "ContainerNotFoundError",
    "ContainerRegistry",
    "DuplicateContainerIdError",
    "Handler",
    "InjectionError",
    "InjectionSettings",
    "ReservedContainerIdError",
    "ResetStrategy",
    "ServiceIdentifier",
    "ServiceMetadata",
    "ServiceNotFoundError",
    "ServiceOptions",
    "ServiceRegistrar",
    "ServiceScope",
    "Token",
    "TypeResolver",
    "TypeWrapper",
]

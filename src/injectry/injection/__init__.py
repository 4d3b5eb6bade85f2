# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Public API for the injectry injection runtime.
"""

from __future__ import annotations

from injectry.injection.config import (
    DEFAULT_CONTAINER_ID,
    InjectionSettings,
    ResetStrategy,
    ServiceScope,
)
from injectry.injection.container import ContainerInstance
from injectry.injection.errors import (
    AggregateDisposalError,
    CannotInjectValueError,
    CannotInstantiateValueError,
    ContainerDisposedError,
    ContainerError,
    ContainerNotFoundError,
    DuplicateContainerIdError,
    InjectionError,
    ReservedContainerIdError,
    ServiceNotFoundError,
)
from injectry.injection.handlers import (
    AnnotationTypeResolver,
    Handler,
    TypeResolver,
    TypeWrapper,
)
from injectry.injection.identifiers import ServiceIdentifier, Token
from injectry.injection.metadata import EMPTY_VALUE, ServiceMetadata, ServiceOptions
from injectry.injection.registration import ServiceRegistrar
from injectry.injection.registry import ContainerRegistry

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

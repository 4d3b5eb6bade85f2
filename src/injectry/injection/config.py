# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Scope definitions and environment-driven settings for the injection runtime.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONTAINER_ID = "default"


class ServiceScope(str, Enum):
    """Caching policy applied to a resolved service value."""

    CONTAINER = "container"
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ResetStrategy(str, Enum):
    """What ``ContainerInstance.reset`` discards."""

    RESET_VALUE = "resetValue"
    RESET_SERVICES = "resetServices"


class InjectionSettings(BaseSettings):
    """
    Settings for container behaviour.
    Loads from ``INJECTRY_*`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="INJECTRY_",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    default_scope: ServiceScope = Field(
        default=ServiceScope.CONTAINER,
        description="Scope applied when a registration does not name one",
    )
    eager_services: bool = Field(
        default=True,
        description="Compute eager services when they are registered",
    )
    auto_wire: bool = Field(
        default=True,
        description="Resolve unhandled constructor parameters by their annotated type",
    )

    @classmethod
    def load(cls) -> InjectionSettings:
        """Load injection settings from environment variables or defaults."""
        return cls()

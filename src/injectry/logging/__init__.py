# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Public API for the injectry logging system.
"""

from __future__ import annotations

from injectry.logging.config import LoggingSettings
from injectry.logging.level import LogLevel
from injectry.logging.logger import StructuredFormatter, configure_logger, get_logger

__all__ = [
    "LogLevel",
    "LoggingSettings",
    "StructuredFormatter",
    "configure_logger",
    "get_logger",
]

# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Error handling for injectry.
"""

from __future__ import annotations

from injectry.errors.base import (
    INTERNAL,
    INTERNAL_ERROR,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    InjectryError,
)
from injectry.errors.registry import ErrorRegistry, registry

__all__ = [
    "INTERNAL",
    "INTERNAL_ERROR",
    "ErrorCategory",
    "ErrorCode",
    "ErrorRegistry",
    "ErrorSeverity",
    "InjectryError",
    "registry",
]

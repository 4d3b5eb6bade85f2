# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry
"""Registry of error categories and codes for injectry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from injectry.errors.base import ErrorCategory, ErrorCode


class ErrorRegistry:
    """Process-wide registry for all error codes and categories."""

    _instance: ErrorRegistry | None = None

    def __new__(cls) -> ErrorRegistry:
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._categories = {}
            instance._codes = {}
            cls._instance = instance
        return cls._instance

    def __init__(self) -> None:
        if not hasattr(self, "_categories"):
            self._categories: dict[str, ErrorCategory] = {}
        if not hasattr(self, "_codes"):
            self._codes: dict[str, ErrorCode] = {}

    def register_category(
        self, name: str, parent: ErrorCategory | None = None
    ) -> ErrorCategory:
        """Register a category in the registry.

        Args:
            name: The category name
            parent: Optional parent category

        Returns:
            The registered ErrorCategory
        """
        if name in self._categories:
            return self._categories[name]

        from injectry.errors.base import ErrorCategory

        category = ErrorCategory(name, parent)
        self._categories[name] = category
        return category

    def register_code(self, code: str, category_name: str) -> ErrorCode:
        """Register a code under the given category name."""
        key = f"{category_name}.{code}"
        if key in self._codes:
            return self._codes[key]

        category = self.get_category(category_name)

        from injectry.errors.base import ErrorCode

        error_code = ErrorCode(code, category)
        self._codes[key] = error_code
        self._codes[code] = error_code
        return error_code

    def get_category(
        self, name: str, parent: ErrorCategory | None = None
    ) -> ErrorCategory:
        """Get or create a category."""
        if name in self._categories:
            return self._categories[name]
        return self.register_category(name, parent)

    def get_code(self, code: str, category_name: str = "INTERNAL") -> ErrorCode:
        """Get or create an error code.

        Args:
            code: The error code
            category_name: The category name (defaults to INTERNAL)

        Returns:
            The ErrorCode
        """
        key = f"{category_name}.{code}"
        if key in self._codes:
            return self._codes[key]
        if code in self._codes:
            return self._codes[code]
        return self.register_code(code, category_name)

    def lookup_category(self, name: str) -> ErrorCategory | None:
        return self._categories.get(name)

    def lookup_code(self, code: str) -> ErrorCode | None:
        """Look up an error code without creating it if missing."""
        if code in self._codes:
            return self._codes[code]

        for key, error_code in self._codes.items():
            if key.endswith(f".{code}") or error_code.code == code:
                return error_code

        logging.getLogger(__name__).debug(
            "Error code '%s' not found in registry", code
        )
        return None

    def get_all_categories(self) -> list[ErrorCategory]:
        return list(self._categories.values())

    def get_all_codes(self) -> list[ErrorCode]:
        # codes are stored under two keys each
        return list({id(code): code for code in self._codes.values()}.values())


registry = ErrorRegistry()

# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Service identifiers.

A service is named by a class, a string, or a ``Token``. Tokens are opaque
keys compared by identity; their name only shows up in diagnostics.
"""

from __future__ import annotations

from typing import Any, Generic, TypeAlias, TypeVar

T = TypeVar("T")


class Token(Generic[T]):
    """Opaque service identifier.

    Example:
        ```python
        DATABASE_URL = Token[str]("database-url")
        container.set(identifier=DATABASE_URL, value="postgres://...")
        ```
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Token<{self.name or 'UNSET_NAME'}>"


ServiceIdentifier: TypeAlias = type[Any] | str | Token[Any]
ContainerIdentifier: TypeAlias = str


def describe_identifier(identifier: Any) -> str:
    """Render an identifier for error messages."""
    if isinstance(identifier, str):
        return identifier
    if isinstance(identifier, Token):
        return repr(identifier)
    name = getattr(identifier, "__name__", None)
    if name:
        return f"MaybeConstructable<{name}>"
    return "<UNKNOWN_IDENTIFIER>"

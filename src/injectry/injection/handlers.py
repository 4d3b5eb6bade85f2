# SPDX-FileCopyrightText: 2024-present Richard Dahl <richard@dahl.us>
# SPDX-License-Identifier: MIT
# SPDX-Package-Name: injectry

"""
Deferred injection handlers and type inference for injection points.

A ``Handler`` describes one injection point: an attribute of ``target`` (when
``index`` is None) or a constructor parameter at position ``index``. Its
``value`` is a closure evaluated against the active container each time an
instance of ``target`` is built.

Types are looked up in two phases. When the injection point is declared, the
``TypeResolver`` returns a ``TypeWrapper`` whose ``eager_type`` is whatever is
known at that moment (possibly a string forward reference). ``lazy_type`` is a
thunk evaluated only when the value is needed, by which point classes declared
later in the module exist.
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Protocol, runtime_checkable

from injectry.injection.errors import CannotInjectValueError
from injectry.injection.identifiers import Token
from injectry.logging import get_logger

if TYPE_CHECKING:
    from injectry.injection.container import ContainerInstance

logger = get_logger(__name__)


class _Deferred:
    def __repr__(self) -> str:
        return "DEFERRED"


DEFERRED: Final = _Deferred()
"""Eager type of an injection point whose type is only known through a thunk."""


@dataclass(frozen=True)
class Handler:
    """Deferred injection instruction."""

    target: type[Any]
    member: str | None
    index: int | None
    value: Callable[[ContainerInstance], Any]

    @property
    def is_parameter(self) -> bool:
        return self.index is not None


@dataclass(frozen=True)
class TypeWrapper:
    eager_type: Any
    lazy_type: Callable[[], Any]


@runtime_checkable
class TypeResolver(Protocol):
    """Maps an injection point to a candidate identifier.

    ``member`` names an attribute; ``index`` selects a constructor parameter.
    Returns None when no type information is available.
    """

    def resolve(
        self, target: type[Any], member: str | None, index: int | None
    ) -> TypeWrapper | None: ...


def is_unconstrained(candidate: Any) -> bool:
    """True for types that say nothing about what to inject."""
    return candidate is None or candidate is object or candidate is typing.Any


def constructor_parameters(target: type[Any]) -> list[inspect.Parameter]:
    """Parameters of ``target.__init__`` without ``self``."""
    init = target.__init__
    if init is object.__init__:
        return []
    return list(inspect.signature(init).parameters.values())[1:]


class AnnotationTypeResolver:
    """Infers injection types from class and ``__init__`` annotations."""

    def resolve(
        self, target: type[Any], member: str | None, index: int | None
    ) -> TypeWrapper | None:
        if index is not None:
            return self._resolve_parameter(target, index)
        if member is not None:
            return self._resolve_attribute(target, member)
        return None

    def _resolve_attribute(self, target: type[Any], member: str) -> TypeWrapper | None:
        for klass in target.__mro__:
            try:
                annotations = inspect.get_annotations(klass)
            except NameError:
                # an annotation refers to a name that does not exist yet
                return TypeWrapper(DEFERRED, lambda: _hint(target, member))
            if member in annotations:
                eager = annotations[member]
                return TypeWrapper(eager, lambda: _hint(target, member))
        return None

    def _resolve_parameter(self, target: type[Any], index: int) -> TypeWrapper | None:
        params = constructor_parameters(target)
        if index >= len(params):
            return None
        param = params[index]
        if param.annotation is inspect.Parameter.empty:
            return None
        return TypeWrapper(
            param.annotation, lambda: _hint(target.__init__, param.name)
        )


def _hint(owner: Any, name: str) -> Any:
    try:
        hints = typing.get_type_hints(owner)
    except NameError as exc:
        logger.warning(
            "'%s' name error retrieving %s type hints",
            exc.name,
            getattr(owner, "__qualname__", owner),
        )
        return None
    return hints.get(name)


def resolve_to_type_wrapper(
    type_or_identifier: Any,
    target: type[Any],
    member: str | None,
    index: int | None,
    type_resolver: TypeResolver,
) -> TypeWrapper | None:
    """Build the ``TypeWrapper`` for an injection point.

    ``type_or_identifier`` may be a string name or ``Token`` (used as is), a
    class (used as is), a zero-argument callable returning the type (evaluated
    lazily), or None (inferred through ``type_resolver``).
    """
    if isinstance(type_or_identifier, str | Token) or inspect.isclass(
        type_or_identifier
    ):
        return TypeWrapper(type_or_identifier, lambda: type_or_identifier)
    if callable(type_or_identifier):
        return TypeWrapper(DEFERRED, type_or_identifier)
    if type_or_identifier is None:
        return type_resolver.resolve(target, member, index)
    return TypeWrapper(type_or_identifier, lambda: type_or_identifier)


def make_injection_value(
    type_wrapper: TypeWrapper,
    target: type[Any],
    member: str | int | None,
    *,
    many: bool = False,
) -> Callable[[ContainerInstance], Any]:
    """Build the deferred resolver stored in a ``Handler``."""

    def value(container: ContainerInstance) -> Any:
        evaluated = type_wrapper.lazy_type()
        if is_unconstrained(evaluated):
            raise CannotInjectValueError(target, member)
        if many:
            return container.get_many(evaluated)
        return container.get(evaluated)

    return value

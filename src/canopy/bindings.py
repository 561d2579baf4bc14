"""Batch registration — a unit's whole API in one call.

A middleware or service usually exposes several handlers at once and
removes them together when it unloads. ``ApiBinding`` pairs a pattern
with a handler; ``register_bindings`` / ``unregister_bindings`` apply a
batch and report every failure at the end instead of stopping at the
first one.

Usage::

    class Contacts:
        def bindings(self) -> list[ApiBinding]:
            return [
                ApiBinding("CREATE_CONTACT", self.create),
                ApiBinding("DELETE_CONTACT", self.delete),
            ]

    register_bindings(registry, contacts.bindings())
    ...
    unregister_bindings(registry, contacts.bindings())

Bound methods compare equal when bound to the same object, so building
the list again at unload time is fine.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from canopy.errors import CanopyError
from canopy.registry import ScopedRegistry


@dataclass(frozen=True, slots=True)
class ApiBinding:
    """A pattern and the handler that answers it."""

    pattern: str
    handler: Callable[..., Any]


def register_bindings(registry: ScopedRegistry, bindings: Iterable[ApiBinding]) -> None:
    """Register every binding on *registry*.

    Raises an ``ExceptionGroup`` of the ``CanopyError``s hit along the way;
    the bindings that were valid stay registered.
    """
    _apply(registry, bindings, registry.register, "register_bindings")


def unregister_bindings(registry: ScopedRegistry, bindings: Iterable[ApiBinding]) -> None:
    """Unregister every binding from *registry*. Same error policy as registering."""
    _apply(registry, bindings, registry.unregister, "unregister_bindings")


def _apply(
    registry: ScopedRegistry,
    bindings: Iterable[ApiBinding],
    operation: Callable[[str, Callable[..., Any]], bool],
    name: str,
) -> None:
    errors: list[CanopyError] = []
    for binding in bindings:
        try:
            operation(binding.pattern, binding.handler)
        except CanopyError as exc:
            errors.append(exc)

    if errors:
        msg = f"{registry.domain_path}::{name}: {len(errors)} binding(s) failed"
        raise ExceptionGroup(msg, errors)

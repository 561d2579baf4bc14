"""Scoped registry — hierarchical capability lookup with parent fallback.

One ``ScopedRegistry`` per organizational scope (typically a bounded
context), wired into a tree at startup and chained up to a single root.
Units register handlers on their own node; any unit resolves a pattern
from wherever it sits. Resolution looks in the node and its descendants
first, then climbs through ancestors, so a nested scope can shadow a
capability provided further up the tree.

Wiring is two-phase: construct the node, then attach it::

    root = ScopedRegistry("server")
    users = root.create_child("users")          # construct + attach
    profile = ScopedRegistry("profile", users)  # construct...
    users.attach_child("profile", profile)      # ...then publish

    profile.register("CREATE_CONTACT", create_contact)
    root.resolve("users::profile::create_contact")  # [create_contact]

Handlers are compared by identity, never by value: two equal-looking
callables are two registrations. Bound methods count as the same handler
when bound to the same object with the same function, since every
attribute access builds a new method object. Keep the handler you
registered (or rebind the same method) to unregister it.

Free-threading safety:
    - Each node guards its handler and child tables with its own RLock
    - No lock is held while calling into another node, so parent/child
      lock order never matters
    - ``resolve()`` returns a copy; a returned handler may be unregistered
      before the caller gets to run it
"""

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType, MethodType
from typing import Any

from canopy.config import RegistryConfig
from canopy.errors import ConfigurationError, DuplicateScopeError, InvalidHandlerError
from canopy.pattern import Pattern, normalize_scope, parse_pattern

Handler = Callable[..., Any]

logger = logging.getLogger("canopy.registry")


class ScopedRegistry:
    """A node in a tree of named registries.

    Owns a handler table (local pattern -> ordered handler list) and a
    child table (scope name -> child node). ``parent`` is fixed at
    construction and only ever cleared by ``unregister_all()``.
    """

    __slots__ = ("_children", "_config", "_handlers", "_lock", "_parent", "_scope_name")

    def __init__(
        self,
        scope_name: str,
        parent: "ScopedRegistry | None" = None,
        *,
        config: RegistryConfig | None = None,
    ) -> None:
        if config is None:
            config = parent.config if parent is not None else RegistryConfig()
        self._config = config
        self._scope_name = normalize_scope(scope_name, config.delimiter)
        self._parent = parent
        self._handlers: dict[str, list[Handler]] = {}
        self._children: dict[str, ScopedRegistry] = {}
        self._lock = threading.RLock()

    # -- Tree ------------------------------------------------------------

    @property
    def scope_name(self) -> str:
        return self._scope_name

    @property
    def parent(self) -> "ScopedRegistry | None":
        return self._parent

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def domain_path(self) -> str:
        """Scope names from the root down to this node, for diagnostics."""
        return self._config.delimiter.join(self._path_segments())

    @property
    def children(self) -> Mapping[str, "ScopedRegistry"]:
        """Read-only snapshot of the child table."""
        with self._lock:
            return MappingProxyType(dict(self._children))

    def get_child(self, name: str) -> "ScopedRegistry | None":
        key = normalize_scope(name, self._config.delimiter)
        with self._lock:
            return self._children.get(key)

    def attach_child(self, name: str, child: "ScopedRegistry") -> None:
        """Publish *child* under *name* in this node's child table.

        Raises ``DuplicateScopeError`` if the name is taken; the existing
        child stays in place. The child's own ``parent`` is not touched;
        pass this node as ``parent`` when constructing it.
        """
        key = normalize_scope(name, self._config.delimiter)
        if not isinstance(child, ScopedRegistry):
            msg = f"Expected a ScopedRegistry for scope {key!r}, got {type(child).__name__}"
            raise ConfigurationError(msg)
        if child.scope_name != key:
            msg = f"Cannot attach scope {child.scope_name!r} under the name {key!r}"
            raise ConfigurationError(msg)

        with self._lock:
            duplicate = key in self._children
            if not duplicate:
                self._children[key] = child

        if duplicate:
            domain_path = self.domain_path
            logger.warning("attach_child: %s already has a child %r", domain_path, key)
            raise DuplicateScopeError(key, domain_path)

    def create_child(
        self,
        name: str,
        *,
        config: RegistryConfig | None = None,
    ) -> "ScopedRegistry":
        """Construct a child bound to this node, then attach it."""
        child = ScopedRegistry(name, self, config=config or self._config)
        self.attach_child(name, child)
        return child

    def detach_child(self, name: str) -> "ScopedRegistry | None":
        """Remove a child from the child table. Returns it, or ``None``."""
        key = normalize_scope(name, self._config.delimiter)
        with self._lock:
            return self._children.pop(key, None)

    def walk(self) -> Iterator["ScopedRegistry"]:
        """Yield this node and every descendant, depth-first, parents first."""
        yield self
        for child in self.children.values():
            yield from child.walk()

    # -- Handlers --------------------------------------------------------

    @property
    def patterns(self) -> tuple[str, ...]:
        """Local pattern keys with at least one handler, in insertion order."""
        with self._lock:
            return tuple(self._handlers)

    def handlers_for(self, pattern: str) -> list[Handler]:
        """Handlers stored locally for *pattern*. No descent, no fallback."""
        key = self._local_key(parse_pattern(pattern, self._config.delimiter))
        with self._lock:
            return list(self._handlers.get(key, ()))

    def register(self, pattern: str, handler: Handler) -> bool:
        """Register *handler* for *pattern* on this node.

        Registering the same handler twice under one pattern is a no-op;
        first-registration order is kept.
        """
        self._check_handler("register", pattern, handler)
        key = self._local_key(parse_pattern(pattern, self._config.delimiter))

        with self._lock:
            handlers = self._handlers.setdefault(key, [])
            if _index_of(handlers, handler) is not None:
                return True
            handlers.append(handler)

        if self._config.log_registrations:
            logger.info("register: %s%s%s", self.domain_path, self._config.delimiter, key)
        return True

    def unregister(self, pattern: str, handler: Handler) -> bool:
        """Remove *handler* from *pattern* on this node.

        Always returns ``True``: unregistering something that was never
        registered is already satisfied.
        """
        self._check_handler("unregister", pattern, handler)
        key = self._local_key(parse_pattern(pattern, self._config.delimiter))

        with self._lock:
            handlers = self._handlers.get(key)
            index = _index_of(handlers, handler) if handlers is not None else None
            if index is None:
                return True
            del handlers[index]
            if not handlers:
                del self._handlers[key]

        if self._config.log_registrations:
            logger.info("unregister: %s%s%s", self.domain_path, self._config.delimiter, key)
        return True

    def unregister_all(self) -> bool:
        """Clear the handler and child tables and detach from the parent.

        Not cascading: former children keep their own handlers but are
        orphaned (their ``parent`` becomes ``None``) so none of them holds
        a reference to a cleared node. Use ``teardown_tree()`` to clear a
        whole subtree.
        """
        if self._config.log_registrations:
            logger.info("unregister_all: %s", self.domain_path)

        with self._lock:
            children = list(self._children.values())
            self._handlers.clear()
            self._children.clear()
            self._parent = None

        for child in children:
            child._orphan(self)
        return True

    # -- Resolution ------------------------------------------------------

    def resolve(self, pattern: str) -> list[Handler]:
        """Return every handler that answers *pattern*, in registration order.

        Looks in this node and its descendants, then climbs the ancestor
        chain. Returns an empty list when nothing matches.

        A malformed pattern (empty, or with an empty segment) is a caller
        bug, not a miss: it raises ``InvalidPatternError``.
        """
        parsed = parse_pattern(pattern, self._config.delimiter)
        node: ScopedRegistry | None = self
        while node is not None:
            found = node._find(parsed, 0)
            if found is not None:
                return found
            node = node.parent
        return []

    def _find(self, pattern: Pattern, offset: int) -> list[Handler] | None:
        """Search this node and downwards.

        Returns ``None`` when the pattern is outside this subtree, so the
        caller can keep climbing. A list (even empty) is authoritative.
        """
        segments = pattern.segments
        remaining = len(segments) - offset
        head = segments[offset]

        # 1. Pattern is scoped to this node
        if head == self._scope_name and remaining > 1:
            offset += 1
            child = self._child(segments[offset]) if remaining > 2 else None
            if child is not None:
                found = child._find(pattern, offset)
                return found if found is not None else []
            return self._lookup(pattern.local(offset)) or []

        # 2. Pattern is scoped to one of our children
        if remaining > 1:
            child = self._child(head)
            if child is not None:
                found = child._find(pattern, offset)
                return found if found is not None else []

        # 3. Unscoped pattern stored on this node as-is
        return self._lookup(pattern.local(offset))

    def _lookup(self, key: str) -> list[Handler] | None:
        with self._lock:
            handlers = self._handlers.get(key)
            return list(handlers) if handlers is not None else None

    def _child(self, name: str) -> "ScopedRegistry | None":
        with self._lock:
            return self._children.get(name)

    # -- Internals -------------------------------------------------------

    def _path_segments(self) -> tuple[str, ...]:
        names = [self._scope_name]
        node = self._parent
        while node is not None:
            names.append(node.scope_name)
            node = node.parent
        return tuple(reversed(names))

    def _local_key(self, pattern: Pattern) -> str:
        """Strip a leading qualifier that spells the tail of our domain path.

        On ``ROOT::DOMAIN::CONTEXT``, ``DOMAIN::CONTEXT::DO_THING`` and
        ``CONTEXT::DO_THING`` both store under ``DO_THING``.
        """
        path = self._path_segments()
        segments = pattern.segments
        for size in range(min(len(path), len(segments) - 1), 0, -1):
            if segments[:size] == path[-size:]:
                return pattern.local(size)
        return pattern.key

    def _check_handler(self, operation: str, pattern: str, handler: object) -> None:
        if not callable(handler):
            detail = (
                f"{self.domain_path}::{operation} expects a callable for the "
                f"pattern {pattern!r}, got {type(handler).__name__}"
            )
            raise InvalidHandlerError(str(pattern), handler, detail)

    def _orphan(self, former_parent: "ScopedRegistry") -> None:
        with self._lock:
            if self._parent is former_parent:
                self._parent = None

    def __repr__(self) -> str:
        return f"ScopedRegistry({self.domain_path!r})"


def _same_handler(a: object, b: object) -> bool:
    if a is b:
        return True
    if isinstance(a, MethodType) and isinstance(b, MethodType):
        return a.__self__ is b.__self__ and a.__func__ is b.__func__
    return False


def _index_of(handlers: list[Handler], handler: Handler) -> int | None:
    for index, existing in enumerate(handlers):
        if _same_handler(existing, handler):
            return index
    return None


def teardown_tree(root: ScopedRegistry) -> None:
    """Clear *root* and every descendant, leaves first."""
    for node in reversed(list(root.walk())):
        node.unregister_all()

"""Pattern parsing — raw strings to typed segment tuples.

Patterns look like ``DOMAIN::CONTEXT::ACTION``. They are parsed once at
the registry boundary; the resolution walk only ever sees ``Pattern``
values, never raw strings.

Examples::

    "users::profile::create" -> Pattern(segments=("USERS", "PROFILE", "CREATE"))
    "CREATE_CONTACT"         -> Pattern(segments=("CREATE_CONTACT",))
"""

from dataclasses import dataclass

from canopy.errors import InvalidPatternError

DEFAULT_DELIMITER = "::"


@dataclass(frozen=True, slots=True)
class Pattern:
    """A parsed, case-normalized pattern.

    ``raw`` keeps the caller's original string for diagnostics.
    """

    raw: str
    segments: tuple[str, ...]
    delimiter: str = DEFAULT_DELIMITER

    @property
    def head(self) -> str:
        return self.segments[0]

    @property
    def tail(self) -> tuple[str, ...]:
        return self.segments[1:]

    @property
    def key(self) -> str:
        """Canonical string form, as stored in handler tables."""
        return self.delimiter.join(self.segments)

    def local(self, offset: int) -> str:
        """Table key for the segments after the first *offset* ones."""
        return self.delimiter.join(self.segments[offset:])

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return self.key


def normalize_scope(name: str, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Return the canonical form of a scope name.

    Scope names are single segments: they may not be empty or contain
    the delimiter.
    """
    if not isinstance(name, str):
        msg = f"Scope name must be a string, got {type(name).__name__}"
        raise InvalidPatternError(msg)
    normalized = name.upper()
    if not normalized.strip():
        msg = "Scope name must not be empty."
        raise InvalidPatternError(msg)
    if delimiter in normalized:
        msg = f"Scope name {name!r} must not contain the delimiter {delimiter!r}"
        raise InvalidPatternError(msg)
    return normalized


def parse_pattern(raw: str, delimiter: str = DEFAULT_DELIMITER) -> Pattern:
    """Parse and case-normalize a pattern string.

    Only case is normalized: surrounding whitespace stays part of the
    segment, so ``"X "`` and ``"X"`` are different keys. Raises
    ``InvalidPatternError`` for non-strings, empty patterns, and patterns
    with empty or blank segments (``"A::::B"``, ``"::A"``, ``"A:: "``).

    A ``Pattern`` parsed with another delimiter is rebuilt for this one.
    """
    if isinstance(raw, Pattern):
        if raw.delimiter == delimiter:
            return raw
        return _redelimit(raw, delimiter)
    if not isinstance(raw, str):
        msg = f"Pattern must be a string, got {type(raw).__name__}"
        raise InvalidPatternError(msg)

    parts = [part.upper() for part in raw.split(delimiter)]
    if not any(part.strip() for part in parts):
        msg = "Pattern must not be empty."
        raise InvalidPatternError(msg)
    if not all(part.strip() for part in parts):
        msg = f"Pattern {raw!r} contains an empty segment."
        raise InvalidPatternError(msg)

    return Pattern(raw=raw, segments=tuple(parts), delimiter=delimiter)


def _redelimit(pattern: Pattern, delimiter: str) -> Pattern:
    """Rebuild *pattern* for a registry that uses another delimiter."""
    for segment in pattern.segments:
        if delimiter in segment:
            msg = f"Pattern {pattern.raw!r} has a segment containing the delimiter {delimiter!r}"
            raise InvalidPatternError(msg)
    return Pattern(raw=pattern.raw, segments=pattern.segments, delimiter=delimiter)

"""Canopy exception hierarchy.

Shared across the registry, pattern parsing, and dispatch helpers so
every module raises and catches the same types.
"""


class CanopyError(Exception):
    """Base for all canopy-specific errors."""


class ConfigurationError(CanopyError):
    """Raised when the registry tree is wired incorrectly.

    Expected at startup, while scopes attach and handlers register.
    Not meant to be caught in steady state.
    """


class DuplicateScopeError(ConfigurationError):
    """A child scope with the same (case-insensitive) name already exists."""

    def __init__(self, name: str, domain_path: str = "") -> None:
        self.name = name
        self.domain_path = domain_path
        where = f" under {domain_path!r}" if domain_path else ""
        super().__init__(f"Child registry {name!r} is already registered{where}")


class InvalidHandlerError(ConfigurationError, TypeError):
    """A non-callable value was passed where a handler was expected."""

    def __init__(self, pattern: str, handler: object, detail: str = "") -> None:
        self.pattern = pattern
        self.handler = handler
        msg = detail or (
            f"Expected a callable handler for pattern {pattern!r}, "
            f"got {type(handler).__name__}"
        )
        super().__init__(msg)


class InvalidPatternError(ConfigurationError, ValueError):
    """A pattern or scope name is empty or malformed."""


class HandlerNotFoundError(CanopyError, LookupError):
    """No handler answered a pattern that required one.

    ``ScopedRegistry.resolve()`` never raises this; absence is an empty
    list there. Only dispatch helpers that demand a result do.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(f"No handler registered for {pattern!r}")

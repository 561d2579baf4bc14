"""Registry configuration.

RegistryConfig is a frozen dataclass: immutable after creation, passed
explicitly at construction instead of read from process-wide state.
"""

from dataclasses import dataclass

from canopy.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Registry configuration. Immutable after creation.

    Children created through ``ScopedRegistry.create_child()`` inherit
    their parent's config. Override what you need::

        config = RegistryConfig(log_registrations=True)
    """

    # Separator between scope segments and the local pattern
    delimiter: str = "::"

    # Emit INFO records for register / unregister / unregister_all
    log_registrations: bool = False

    def __post_init__(self) -> None:
        if not self.delimiter:
            msg = "RegistryConfig.delimiter must be a non-empty string."
            raise ConfigurationError(msg)

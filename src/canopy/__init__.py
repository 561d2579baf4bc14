"""Canopy — a hierarchical API registry for modular monoliths.

Each bounded context gets a registry node; nodes are wired into a tree
at startup. Units register handlers on their own node and call each
other by pattern instead of importing each other.

Basic usage::

    from canopy import ScopedRegistry

    root = ScopedRegistry("server")
    profile = root.create_child("users").create_child("profile")

    profile.register("CREATE_CONTACT", create_contact)
    root.resolve("users::profile::create_contact")  # [create_contact]

Dispatch (sync and async handlers alike)::

    from canopy import execute
    results = await execute(root, "USERS::PROFILE::CREATE_CONTACT", data)
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "ApiBinding",
    "CanopyError",
    "ConfigurationError",
    "DuplicateScopeError",
    "HandlerNotFoundError",
    "InvalidHandlerError",
    "InvalidPatternError",
    "Pattern",
    "RegistryConfig",
    "ScopedRegistry",
    "execute",
    "execute_one",
    "parse_pattern",
    "register_bindings",
    "teardown_tree",
    "unregister_bindings",
]

# name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "ApiBinding": "canopy.bindings",
    "register_bindings": "canopy.bindings",
    "unregister_bindings": "canopy.bindings",
    "RegistryConfig": "canopy.config",
    "CanopyError": "canopy.errors",
    "ConfigurationError": "canopy.errors",
    "DuplicateScopeError": "canopy.errors",
    "HandlerNotFoundError": "canopy.errors",
    "InvalidHandlerError": "canopy.errors",
    "InvalidPatternError": "canopy.errors",
    "execute": "canopy.execute",
    "execute_one": "canopy.execute",
    "Pattern": "canopy.pattern",
    "parse_pattern": "canopy.pattern",
    "ScopedRegistry": "canopy.registry",
    "teardown_tree": "canopy.registry",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import canopy`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)

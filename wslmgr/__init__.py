"""wsl-distro-manager package."""

__all__ = [
    "catalog",
    "cli",
    "config",
    "constants",
    "exceptions",
    "handle",
    "manager",
    "mediator",
    "models",
    "poller",
    "utils",
]

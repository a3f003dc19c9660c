from . import (
    auth,
    catalog,
    files,
    inventory,
    pmr,
    suggestions,
    trending,
    users,
)

__all__ = [
    "auth",
    "catalog",
    "files",
    "inventory",
    "pmr",
    "suggestions",
    "trending",
    "users",
]

"""Sous-package CLI commands - re-exporte les commandes publiques."""

from bangumi_list.adapters.cli.commands.cache_commands import (
    refresh,
    status,
)
from bangumi_list.adapters.cli.commands.catalog_commands import (
    update,
)

__all__ = [
    # cache
    "refresh",
    "status",
    # catalogue
    "update",
]

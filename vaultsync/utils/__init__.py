# vaultsync Utilities Module
# Helper functions for path handling and platform detection

from vaultsync.utils.paths import (
    atomic_write,
    ensure_dir,
    matches_any_pattern,
    matches_pattern,
    safe_delete,
    to_vault_path,
)
from vaultsync.utils.platform import (
    can_spawn_processes,
    get_host_identifier,
)

__all__ = [
    # Platform
    "can_spawn_processes",
    "get_host_identifier",
    # Paths
    "atomic_write",
    "ensure_dir",
    "matches_any_pattern",
    "matches_pattern",
    "safe_delete",
    "to_vault_path",
]

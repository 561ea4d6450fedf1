# vaultsync Platform Detection Utilities
# Host identity and process-spawning capability

import platform
import socket
import sys

# Runtimes that cannot spawn child processes
_NO_SUBPROCESS_PLATFORMS: frozenset[str] = frozenset({"emscripten", "wasi"})


def get_host_identifier() -> str:
    """
    Get the name identifying this device in commit messages.

    Returns:
        Hostname, or the platform node name if the hostname is empty.
    """
    return socket.gethostname() or platform.node() or "unknown-host"


def can_spawn_processes() -> bool:
    """
    Check whether the current runtime can spawn native processes.

    Returns:
        False on WebAssembly runtimes (Pyodide, WASI), True elsewhere.
    """
    return sys.platform not in _NO_SUBPROCESS_PLATFORMS

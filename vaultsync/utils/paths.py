# vaultsync Path Utilities
# Atomic writes, vault-relative path handling and pattern matching

import fnmatch
import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, creating parents if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_delete(path: Path, *, missing_ok: bool = False) -> bool:
    """
    Delete a file or directory tree.

    Args:
        path: Path to delete.
        missing_ok: If True, don't raise error if path doesn't exist.

    Returns:
        True if something was deleted, False if path didn't exist.

    Raises:
        FileNotFoundError: If path doesn't exist and missing_ok is False.
    """
    if not path.exists():
        if missing_ok:
            return False
        raise FileNotFoundError(f"Path does not exist: {path}")

    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True


def atomic_write(path: Path, content: str | bytes, *, encoding: str = "utf-8") -> None:
    """
    Atomically write content to file.

    Uses a temporary file in the target directory and an atomic rename.

    Args:
        path: Target file path.
        content: Content to write (str or bytes).
        encoding: Encoding for string content (default utf-8).
    """
    ensure_dir(path.parent)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        if isinstance(content, str):
            with os.fdopen(fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def to_vault_path(path: str, base_path: str = "") -> str:
    """
    Normalize a path to vault-relative POSIX form.

    Absolute paths under ``base_path`` are made relative to it. The vault
    root itself is returned as ``""``.

    Args:
        path: Absolute or relative path.
        base_path: Vault root directory.

    Returns:
        Vault-relative path without leading or trailing slashes.
    """
    posix = path.replace("\\", "/")
    base = base_path.replace("\\", "/").rstrip("/")

    if base and (posix == base or posix.startswith(base + "/")):
        posix = posix[len(base):]

    parts = [p for p in PurePosixPath(posix).parts if p not in ("/", ".")]
    return "/".join(parts)


def matches_pattern(path: str | Path, pattern: str) -> bool:
    """
    Check if path matches a glob pattern.

    A pattern without a slash also matches any single path component, so
    ``.git`` excludes everything under a ``.git`` directory.

    Args:
        path: Path to check.
        pattern: Glob pattern.

    Returns:
        True if path matches pattern.
    """
    path_str = str(path).replace("\\", "/")

    if fnmatch.fnmatch(path_str, pattern):
        return True

    if "/" not in pattern:
        return any(fnmatch.fnmatch(part, pattern) for part in path_str.split("/"))

    return False


def matches_any_pattern(path: str | Path, patterns: list[str]) -> bool:
    """Check if path matches any of the given patterns."""
    return any(matches_pattern(path, p) for p in patterns)

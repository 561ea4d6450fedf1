# vaultsync Virtual Filesystem
# Generic filesystem contract over the host vault storage primitives

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from vaultsync.errors import NotFoundError
from vaultsync.utils.paths import to_vault_path
from vaultsync.vault import Vault

if TYPE_CHECKING:
    from vaultsync.notify import Notifier


@dataclass(frozen=True)
class FileStat:
    """Result of ``VirtualFilesystem.stat``."""

    is_file: bool
    is_directory: bool
    size: int = 0


class VirtualFilesystem:
    """
    Filesystem adapter consumed by the embedded git engine.

    Host storage is text-oriented. When the vault provides ``read_binary`` /
    ``write_binary`` those are used and bytes round-trip exactly. Otherwise
    payloads are converted as UTF-8 text, which is lossy for binary content
    (attachments, compressed git objects); undecodable writes are replaced
    with U+FFFD and reported once through the notifier.
    """

    def __init__(self, vault: Vault, notifier: Optional["Notifier"] = None):
        """
        Initialize adapter.

        Args:
            vault: Host vault providing the storage primitives.
            notifier: Optional notifier for lossy-conversion warnings.
        """
        self.vault = vault
        self.notifier = notifier
        self.base_path = vault.get_base_path()
        self.lossy_paths: list[str] = []

    def _path(self, path: str) -> str:
        return to_vault_path(path, self.base_path)

    @property
    def binary_safe(self) -> bool:
        """True if the host vault exposes binary read/write primitives."""
        return hasattr(self.vault, "read_binary") and hasattr(self.vault, "write_binary")

    def read_bytes(self, path: str) -> bytes:
        """
        Read a file as bytes.

        Raises:
            NotFoundError: If the file does not exist.
        """
        relative = self._path(path)
        if not self.exists(relative):
            raise NotFoundError("File does not exist", relative)
        if self.binary_safe:
            return self.vault.read_binary(relative)  # type: ignore[attr-defined]
        return self.vault.read(relative).encode("utf-8")

    def write_bytes(self, path: str, data: bytes | str) -> None:
        """Write bytes (or text) to a file, replacing its content."""
        relative = self._path(path)
        if isinstance(data, str):
            self.vault.write(relative, data)
            return

        if self.binary_safe:
            self.vault.write_binary(relative, data)  # type: ignore[attr-defined]
            return

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            text = data.decode("utf-8", errors="replace")
            self.lossy_paths.append(relative)
            if self.notifier is not None and len(self.lossy_paths) == 1:
                self.notifier.warning(f"Binary content written as text, data may be corrupted: {relative}")
        self.vault.write(relative, text)

    def list_directory(self, path: str) -> list[str]:
        """
        List the names of the direct children of a directory.

        Raises:
            NotFoundError: If the directory does not exist.
        """
        relative = self._path(path)
        if relative and not self.exists(relative):
            raise NotFoundError("Directory does not exist", relative)
        listed = self.vault.list(relative)
        return [entry.rsplit("/", 1)[-1] for entry in [*listed.folders, *listed.files]]

    def make_directory(self, path: str) -> None:
        self.vault.create_folder(self._path(path))

    def exists(self, path: str) -> bool:
        """Check existence. Never raises; storage failures count as missing."""
        try:
            return bool(self.vault.exists(self._path(path)))
        except Exception:
            return False

    def stat(self, path: str) -> FileStat:
        """
        Describe a path.

        Raises:
            NotFoundError: If the path does not exist.
        """
        relative = self._path(path)
        if not self.exists(relative):
            raise NotFoundError("File does not exist", relative)

        info = self.vault.stat(relative)
        if info is None:
            raise NotFoundError("File does not exist", relative)
        is_directory = info.type == "folder"
        return FileStat(is_file=not is_directory, is_directory=is_directory, size=info.size)

    def delete(self, path: str) -> None:
        """
        Delete a file.

        Raises:
            NotFoundError: If the path does not exist.
        """
        relative = self._path(path)
        if not self.exists(relative):
            raise NotFoundError("File does not exist", relative)
        self.vault.delete(relative)

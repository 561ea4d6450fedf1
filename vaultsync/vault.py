# vaultsync Vault
# Host vault interface and a directory-backed implementation

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from vaultsync.utils.paths import atomic_write, ensure_dir, safe_delete


@dataclass(frozen=True)
class VaultFile:
    """A file in the vault, addressed by its vault-relative POSIX path."""

    path: str
    size: int = 0

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass
class ListedFiles:
    """Direct children of a vault folder."""

    files: list[str] = field(default_factory=list)
    folders: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class VaultStat:
    """Kind of a vault entry: "file" or "folder"."""

    type: str
    size: int = 0


class Vault(Protocol):
    """
    File storage primitives provided by the host application.

    All paths are vault-relative and use forward slashes. Hosts may also
    provide ``read_binary(path) -> bytes`` and ``write_binary(path, data)``;
    the virtual filesystem adapter prefers them when present.
    """

    def get_base_path(self) -> str: ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, data: str) -> None: ...

    def list(self, path: str) -> ListedFiles: ...

    def list_all_files(self) -> list[VaultFile]: ...

    def create_folder(self, path: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def stat(self, path: str) -> Optional[VaultStat]: ...

    def delete(self, path: str) -> None: ...


class LocalVault:
    """
    Vault backed by a directory on the local filesystem.

    Used by the CLI and tests as the host vault.
    """

    def __init__(self, base_path: Path | str):
        """
        Initialize vault.

        Args:
            base_path: Vault root directory.
        """
        self.base_path = Path(base_path).expanduser()

    def _resolve(self, path: str) -> Path:
        relative = path.strip("/")
        if relative in ("", "."):
            return self.base_path
        return self.base_path / relative

    def get_base_path(self) -> str:
        return str(self.base_path)

    def read(self, path: str) -> str:
        return self._resolve(path).read_text(encoding="utf-8")

    def read_binary(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def write(self, path: str, data: str) -> None:
        target = self._resolve(path)
        ensure_dir(target.parent)
        atomic_write(target, data)

    def write_binary(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        ensure_dir(target.parent)
        atomic_write(target, data)

    def list(self, path: str) -> ListedFiles:
        folder = self._resolve(path)
        listed = ListedFiles()
        prefix = path.strip("/")
        for child in sorted(folder.iterdir()):
            child_path = f"{prefix}/{child.name}" if prefix not in ("", ".") else child.name
            if child.is_dir():
                listed.folders.append(child_path)
            else:
                listed.files.append(child_path)
        return listed

    def list_all_files(self) -> list[VaultFile]:
        """List every file under the vault root, recursively."""
        files: list[VaultFile] = []
        if not self.base_path.is_dir():
            return files
        for item in sorted(self.base_path.rglob("*")):
            if item.is_file():
                files.append(VaultFile(path=item.relative_to(self.base_path).as_posix(), size=item.stat().st_size))
        return files

    def create_folder(self, path: str) -> None:
        ensure_dir(self._resolve(path))

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def stat(self, path: str) -> Optional[VaultStat]:
        target = self._resolve(path)
        if not target.exists():
            return None
        if target.is_dir():
            return VaultStat(type="folder")
        return VaultStat(type="file", size=target.stat().st_size)

    def delete(self, path: str) -> None:
        safe_delete(self._resolve(path))

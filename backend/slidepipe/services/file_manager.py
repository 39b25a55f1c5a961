"""
File store service for the ffmpeg engine.

Backs the engine's virtual file store with a private working directory.
File names are flat (no sub-directories) and resolved with path traversal
protection so an instruction can never touch files outside the store.
"""
import shutil
import tempfile
from pathlib import Path
from typing import Optional


class FileManager:
    """
    Manage the working directory that acts as the engine file store.

    Layout:
    - {base_dir}/slidepipe-XXXX/ - one private directory per engine instance

    Implements path traversal protection to prevent directory escape attacks.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize FileManager with base directory.

        Args:
            base_dir: Parent directory for the store.
                     If None, the system temp directory is used.
        """
        self.base_dir = Path(base_dir).resolve() if base_dir is not None else None
        self._root: Optional[Path] = None

    @property
    def root(self) -> Path:
        """
        Get or create the store directory.

        Returns:
            Resolved Path to the store directory
        """
        if self._root is None:
            if self.base_dir is not None:
                self.base_dir.mkdir(parents=True, exist_ok=True)
            self._root = Path(
                tempfile.mkdtemp(prefix="slidepipe-", dir=self.base_dir)
            ).resolve()
        return self._root

    def path_for(self, name: str) -> Path:
        """
        Resolve a store file name to its path.

        Args:
            name: Flat file name (e.g., 'image_0.jpg')

        Returns:
            Path inside the store directory

        Raises:
            ValueError: If name escapes the store (traversal attack)
        """
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid file name: {name!r}")
        path = (self.root / name).resolve()

        # Path traversal protection
        if path.parent != self.root:
            raise ValueError(f"Invalid file name: {name!r}")

        return path

    def write(self, name: str, data: bytes) -> Path:
        path = self.path_for(name)
        path.write_bytes(data)
        return path

    def read(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"No such file in engine store: {name}")
        return path.read_bytes()

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"No such file in engine store: {name}")
        path.unlink()

    def list_files(self) -> list[str]:
        if self._root is None:
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_file())

    def destroy(self) -> None:
        """Remove the store directory and everything in it."""
        if self._root is not None:
            shutil.rmtree(self._root, ignore_errors=True)
            self._root = None

"""
File Service

Sandboxed file access for a single workspace root.
Every path handed in by the agent is resolved relative to the root and
refused if it would land outside of it.
"""

import logging
from pathlib import Path
from typing import Optional

from stagecoder.utils.path_utils import is_safe_path

logger = logging.getLogger("StageCoder.FileService")


class WorkspaceError(Exception):
    """Raised when a workspace path is unsafe or a write cannot be completed."""
    pass


class FileService:
    """
    Service class for workspace file operations.

    Provides:
    - Reads that never raise (missing or unreadable files yield None)
    - Writes that create parent directories and raise WorkspaceError on failure
    - Path containment inside base_dir
    """

    def __init__(self, base_dir: Path):
        """
        Initialize file service.

        Args:
            base_dir: Workspace root all relative paths resolve against
        """
        self.base_dir = Path(base_dir).resolve()
        logger.info(f"FileService initialized (base_dir: {self.base_dir})")

    def read(self, path: str, encoding: str = "utf-8") -> Optional[str]:
        """
        Read file content.

        Args:
            path: File path relative to the workspace root
            encoding: File encoding

        Returns:
            File content or None if missing, unreadable, or outside the root
        """
        try:
            p = self._resolve_path(path)
        except WorkspaceError as e:
            logger.warning(f"Refusing read: {e}")
            return None

        if not p.is_file():
            logger.warning(f"File not found: {path}")
            return None
        try:
            # newline="" keeps \r\n and lone \r exactly as stored
            with p.open("r", encoding=encoding, newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    def write(self, path: str, content: str, encoding: str = "utf-8") -> Path:
        """
        Write file content, creating missing parent directories.

        Args:
            path: File path relative to the workspace root
            content: Full new file content
            encoding: File encoding

        Returns:
            The resolved path that was written

        Raises:
            WorkspaceError: If the path escapes the root or the write fails
        """
        p = self._resolve_path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            with p.open("w", encoding=encoding, newline="") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise WorkspaceError(f"Failed to write {path}: {e}") from e
        logger.debug(f"File written: {path}")
        return p

    def exists(self, path: str) -> bool:
        """Check if path exists inside the workspace."""
        try:
            return self._resolve_path(path).exists()
        except WorkspaceError:
            return False

    def _resolve_path(self, path: str) -> Path:
        """
        Resolve path relative to base_dir.

        Raises:
            WorkspaceError: If the path is empty or resolves outside base_dir
        """
        if not path or not str(path).strip():
            raise WorkspaceError("Empty file path")
        p = Path(path)
        target = p if p.is_absolute() else self.base_dir / p
        if not is_safe_path(self.base_dir, target):
            raise WorkspaceError(f"Path escapes workspace: {path}")
        return target.resolve()

"""
Repository Snapshot: recursive directory listing used as agent context
"""

import logging
from pathlib import Path
from typing import List, Set

logger = logging.getLogger(__name__)


class RepositorySnapshot:
    """
    Render a project directory as an indented plain-text tree.

    Hidden entries (dotfiles, .git) and dependency/build folders are left
    out; they only add noise to the agent's picture of the codebase.
    """

    def __init__(self, base_dir: Path, max_depth: int = 7, max_entries: int = 2000):
        self.base_dir = Path(base_dir).resolve()
        self.max_depth = max_depth
        self.max_entries = max_entries

        self.ignore_dirs: Set[str] = {
            'node_modules', '__pycache__', 'venv', 'dist', 'build',
        }

        self.ignore_exts: Set[str] = {
            '.pyc', '.pyo', '.swo', '.swp',
        }

    def _should_ignore(self, path: Path) -> bool:
        if path.name.startswith("."):
            return True
        if path.is_dir():
            return path.name in self.ignore_dirs or path.name.endswith(".egg-info")
        return path.suffix in self.ignore_exts

    def _build_tree(self, path: Path, lines: List[str], prefix: str = "", depth: int = 0) -> None:
        if depth > self.max_depth:
            lines.append(f"{prefix}... (max depth)")
            return

        try:
            entries = [e for e in path.iterdir() if not self._should_ignore(e)]
        except PermissionError:
            lines.append(f"{prefix}[Permission Denied]")
            return
        except OSError as e:
            lines.append(f"{prefix}[Error: {e.strerror}]")
            return

        entries.sort(key=lambda p: (not p.is_dir(), p.name.lower()))

        for entry in entries:
            if len(lines) >= self.max_entries:
                lines.append(f"{prefix}... (truncated)")
                return
            if entry.is_dir():
                lines.append(f"{prefix}📁 {entry.name}/")
                self._build_tree(entry, lines, prefix + "  ", depth + 1)
            else:
                lines.append(f"{prefix}📄 {entry.name}")

    def render(self) -> str:
        lines: List[str] = []
        self._build_tree(self.base_dir, lines)
        logger.debug(f"Snapshot of {self.base_dir}: {len(lines)} entries")
        return "\n".join(lines) + ("\n" if lines else "")

import os
from pathlib import Path
from typing import Optional, Union


def resolve_base_dir(
    cli_arg: Optional[str] = None,
    config_val: Optional[str] = None,
    cwd: Optional[Union[str, Path]] = None
) -> Path:
    """
    Resolves the absolute workspace root.

    Priority:
    1. CLI argument (--workspace)
    2. Config value (workspace_dir)
    3. Current working directory (cwd)

    Returns:
        Path: Absolute, resolved path to the workspace root.
    """
    path_str = cli_arg or config_val

    if path_str:
        target = Path(path_str).expanduser()
        if not target.is_absolute():
            target = Path(cwd or os.getcwd()) / target
        return target.resolve()

    return Path(cwd or os.getcwd()).resolve()


def is_safe_path(base_dir: Path, target_path: Path) -> bool:
    """
    Verifies that target_path is within base_dir or is base_dir itself.
    Symlinks are followed before the comparison.
    """
    try:
        base = Path(base_dir).resolve()
        target = Path(target_path).resolve()
    except (OSError, RuntimeError):
        return False
    return target == base or base in target.parents

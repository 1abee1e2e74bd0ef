from stagecoder.utils.path_utils import is_safe_path, resolve_base_dir

__all__ = ["is_safe_path", "resolve_base_dir"]

from stagecoder.workspace.tree import RepositorySnapshot

__all__ = ["RepositorySnapshot"]

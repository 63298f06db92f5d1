"""Cross-process locking."""

from .file_mutex import _file_mutex

__all__ = ["_file_mutex"]

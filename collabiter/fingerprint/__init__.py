"""Project fingerprinting."""

from .engine import FingerprintEngine, directory_tree
from .git import RemoteReader

__all__ = ["FingerprintEngine", "RemoteReader", "directory_tree"]

"""reclaim - find and remove reclaimable disk space on macOS."""

__version__ = "0.1.0"

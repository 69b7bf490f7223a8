"""Read XFS on-disk metadata from raw images and serialize values as JSON."""

__version__ = "0.1.0"

__all__ = ["escape", "ordered_map", "output", "serializer", "xfs"]
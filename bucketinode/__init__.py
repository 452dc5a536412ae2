"""Names, inodes and file-system wrappers for showing buckets of objects as a tree."""

__version__ = "0.1.0"
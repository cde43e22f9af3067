"""vfskit - virtual filesystem facades, safe copy, file cache and folder pruner."""

__version__ = "0.1.0"

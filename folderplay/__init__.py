"""Folder-driven video browser: scan a folder, sort, navigate and tidy its videos."""

__version__ = "1.0.0"

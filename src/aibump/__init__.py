"""aibump: semantic version bumps decided from the diff."""

__version__ = "1.0.0"

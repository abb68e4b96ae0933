"""transitgit: turn transit routes into a git commit graph."""

__version__ = "0.3.0"

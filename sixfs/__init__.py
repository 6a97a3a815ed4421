"""An in-memory journaling file system with an image builder, pipes, a console and small tools."""

__version__ = "0.1.0"
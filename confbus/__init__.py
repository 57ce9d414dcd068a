"""Per-application JSON configuration published on an in-process message bus."""

__version__ = "0.1.0"
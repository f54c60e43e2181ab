"""Turn a long recording into a chaptered audiobook by splitting on silence."""

__version__ = "1.0.0"

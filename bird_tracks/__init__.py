"""Bird trajectory map viewer."""

__version__ = "0.1.0"

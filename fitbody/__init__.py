"""FitBody client state layer: API adapters, entity caches and session handling."""

__version__ = "0.1.0"

"""Blog summariser backend: fetch, extract, summarise, translate, persist."""

__version__ = "0.1.0"

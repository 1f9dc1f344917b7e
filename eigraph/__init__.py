"""eigraph - relationship graph explorer for enterprise intelligence data."""

__version__ = "0.1.0"

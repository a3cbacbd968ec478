"""Client-access scoping, resource guards and notification fan-out."""

__version__ = "0.1.0"

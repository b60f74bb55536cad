"""TrashMap citizen waste-reporting backend."""

__version__ = "0.1.0"

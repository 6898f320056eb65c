"""RigCatalog: paginated read API over a PC parts catalog."""

__version__ = "0.1.0"

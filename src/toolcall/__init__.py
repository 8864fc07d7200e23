"""toolcall: entry-point dispatcher for the toolcall command-line platform."""

__version__ = "1.2.0"

__all__ = ["__version__"]

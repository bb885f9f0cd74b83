"""formatd: a long-lived formatting worker speaking framed JSON-RPC over stdio."""

__version__ = "0.1.0"

__all__ = ["__version__"]

"""Borsh binary serialization: primitive and container types, schemas, and schema-prefixed data."""

__version__ = "0.1.0"

__all__ = ["__version__"]
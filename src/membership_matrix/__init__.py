"""Membership matrix between directory principals and groups."""

__version__ = "0.1.0"

__all__ = ["__version__"]

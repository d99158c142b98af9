"""Configurable source repository updater."""

__version__ = "0.3.0"

"""Keychain secrets guarded by an authentication challenge."""

__version__ = "0.1.0"

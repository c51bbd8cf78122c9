"""Keychain and authentication collaborators."""

"""Authentication for Microsoft Graph.

Public API:

CredentialManager : class
    Client-credentials token acquisition with caching and refresh.
"""

from .credential_manager import CredentialManager

__all__ = ["CredentialManager"]

"""Signing credential store."""

from .service import CredentialOutput, CredentialState, CredentialStore

__all__ = ["CredentialOutput", "CredentialState", "CredentialStore"]

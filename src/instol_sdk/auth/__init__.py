"""Credential lifecycle for the instol client."""

from __future__ import annotations
from instol_sdk.auth.manager import CredentialManager, parse_callback
from instol_sdk.auth.tokens import TokenStore


__all__ = ["CredentialManager", "TokenStore", "parse_callback"]

"""Reconciliation of OAuth sign-in payloads into local accounts."""

__version__ = "1.0.0"

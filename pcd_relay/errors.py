"""
Error types raised by the relay and their HTTP status codes.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base error; the app turns it into ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    status_code = 400


class PayloadTooLargeError(RelayError):
    status_code = 413


class NotFoundError(RelayError):
    status_code = 404


class StorageError(RelayError):
    """The provider rejected or failed a request (network, auth, quota)."""

    status_code = 500

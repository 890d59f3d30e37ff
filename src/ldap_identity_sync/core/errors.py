# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Error types raised by LDAP Identity Sync.

Every error carries a machine-readable ``key`` and, where the host maps it to
an HTTP response, a ``status_code``.
"""

from enum import Enum


class ShapeViolation(str, Enum):
    """Reasons a password is rejected before contacting the directory."""

    MISSING_PASSWORD = "missing"
    TOO_SHORT = "too_short"
    EXCESSIVE_LENGTH = "excessive_length"


class LdapIdentityError(Exception):
    """Base class for all errors raised by this package."""

    key = "ldap.error"
    status_code: int | None = None

    def __init__(self, message: str, key: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if key is not None:
            self.key = key
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(LdapIdentityError):
    """Required directory settings are missing or inconsistent."""

    key = "ldap.config.missing"
    status_code = 500


class DirectoryConnectionError(LdapIdentityError):
    """The directory cannot be reached, upgraded to TLS or bound as the service account."""

    key = "ldap.connection.failed"
    status_code = 503


class NotFoundError(LdapIdentityError):
    """No directory entry or local identity exists for the lookup key."""

    key = "user.notFound"
    status_code = 404


class InvalidShapeError(LdapIdentityError):
    """The password failed the shape checks."""

    key = "user.password.invalid"
    status_code = 400

    def __init__(self, reason: ShapeViolation):
        if reason is ShapeViolation.MISSING_PASSWORD:
            super().__init__(
                "Password is missing", key="user.password.missing", status_code=403
            )
        else:
            super().__init__(f"Invalid password: {reason.value}")
        self.reason = reason


class CredentialMismatchError(LdapIdentityError):
    """The directory rejected the supplied credentials."""

    key = "user.password.notSame"
    status_code = 401


class UsageError(LdapIdentityError):
    """An operation was called in violation of its contract."""

    key = "ldap.usage"

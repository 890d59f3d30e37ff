# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Password shape checks performed before any directory round-trip."""

from ..config.models import PasswordPolicyConfig
from .errors import InvalidShapeError, ShapeViolation


class PasswordPolicyGuard:
    """Reject obviously malformed passwords without touching the network."""

    def __init__(self, config: PasswordPolicyConfig | None = None):
        config = config or PasswordPolicyConfig()
        self.min_length = config.min_length
        self.max_length = config.max_length

    def check_shape(self, password: str | None) -> ShapeViolation | None:
        """
        Check password shape.

        Rules are evaluated in order and the first violation wins.

        Args:
            password: Plaintext password, may be None

        Returns:
            The violation, or None if the password may be verified
        """
        if not password:
            return ShapeViolation.MISSING_PASSWORD
        if len(password) < self.min_length:
            return ShapeViolation.TOO_SHORT
        if len(password) > self.max_length:
            return ShapeViolation.EXCESSIVE_LENGTH
        return None

    def validate(self, password: str | None) -> None:
        """Raise InvalidShapeError if the password fails check_shape."""
        violation = self.check_shape(password)
        if violation is not None:
            raise InvalidShapeError(violation)

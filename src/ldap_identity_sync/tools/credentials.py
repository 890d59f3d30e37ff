# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Credential verification by binding as the user."""

from typing import Callable

from ..core.errors import CredentialMismatchError, DirectoryConnectionError, UsageError
from ..core.logging import audit_credential_check, get_logger
from .directory_search import DirectoryRecord, DirectorySearch

logger = get_logger(__name__)


class CredentialVerifier:
    """Check a plaintext password by binding as the user's DN."""

    def __init__(self, search: DirectorySearch):
        self.search = search
        self.connector = search.connector

    def verify(self, mail: str, password: str | None) -> bool:
        """
        Verify a mail/password pair against the directory.

        Failures of the user bind are reported as False. Errors while
        resolving the DN with the service account propagate.

        Args:
            mail: Mail address of the user
            password: Plaintext password

        Returns:
            True only if the directory accepted the bind

        Raises:
            UsageError: If mail is empty
        """
        if not mail:
            raise UsageError("Validate password without mail")
        return self._verify(mail, password, self.search.find_by_mail)

    def verify_username(self, uid: str, password: str | None) -> bool:
        """Verify a uid/password pair, with the same rules as ``verify``."""
        if not uid:
            raise UsageError("Validate password without username")
        return self._verify(uid, password, self.search.find_by_uid)

    def _verify(
        self,
        subject: str,
        password: str | None,
        lookup: Callable[[str], DirectoryRecord | None],
    ) -> bool:
        # An empty simple bind is an unauthenticated bind and succeeds on most servers
        if not password:
            logger.debug(f"Empty password for {subject}, not binding")
            return False

        record = lookup(subject)
        if record is None:
            audit_credential_check(subject, False, "no directory entry")
            return False

        try:
            self.connector.bind_as(record.distinguished_name, password)
        except (CredentialMismatchError, DirectoryConnectionError) as e:
            audit_credential_check(subject, False, type(e).__name__)
            return False

        audit_credential_check(subject, True)
        return True

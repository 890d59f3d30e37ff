# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Find-or-create reconciliation of local identities with directory entries."""

from typing import Any

from ..core.logging import get_logger
from .directory_search import DirectoryRecord, DirectorySearch
from .identity import DIRECTORY_ROLE, IdentityStore, LocalIdentity

logger = get_logger(__name__)

ID_PREFIX = "LDAP_"


def identity_id_for(uid: str) -> str:
    """Deterministic local id for a directory uid."""
    return f"{ID_PREFIX}{uid}"


class IdentityReconciler:
    """Resolve the local identity for a mail address, provisioning it from the directory."""

    def __init__(
        self,
        search: DirectorySearch,
        store: IdentityStore,
        default_language: str = "en",
    ):
        """Initialize the reconciler.

        Args:
            search: Directory lookup tool
            store: Host identity store
            default_language: Language assigned to directory identities
        """
        self.search = search
        self.store = store
        self.default_language = default_language

    def authenticate(self, mail: str | None) -> LocalIdentity | None:
        """
        Return the local identity for ``mail``, syncing it from the directory.

        Identities that exist locally with a role other than the directory
        marker are returned untouched. Otherwise the directory entry is
        looked up and the identity created or refreshed; a locally set
        display name is kept.

        Identities are stored under the directory's mail, so a login with
        another address of the same entry also checks that mail before
        creating anything.

        Args:
            mail: Mail address from the login request

        Returns:
            The identity, or None if neither store nor directory know the mail
        """
        if not mail:
            return None

        existing = self.store.find_by_email(mail)
        if _is_local_account(existing):
            logger.debug(f"{mail} is a local account with role {existing.role}, skipping sync")
            return existing

        record = self.search.find_by_mail(mail)
        if record is None:
            logger.info(f"{mail} not found in directory")
            return None

        if existing is None and record.mail and record.mail != mail:
            existing = self.store.find_by_email(record.mail)
            if _is_local_account(existing):
                logger.debug(f"{record.mail} is a local account, skipping sync for {mail}")
                return existing

        return self._sync(record, existing, mail)

    def authenticate_username(self, uid: str | None) -> LocalIdentity | None:
        """
        Return the local identity for a directory uid, syncing it.

        Same rules as ``authenticate``; the store is searched by the
        entry's mail since identities are keyed by email.

        Args:
            uid: User id from the login request

        Returns:
            The identity, or None if the directory has no usable entry
        """
        if not uid:
            return None

        record = self.search.find_by_uid(uid)
        if record is None:
            logger.info(f"uid {uid} not found in directory")
            return None

        if not record.mail:
            logger.warning(f"Directory entry {record.distinguished_name} has no mail, not syncing")
            return None

        existing = self.store.find_by_email(record.mail)
        if _is_local_account(existing):
            logger.debug(f"{record.mail} is a local account, skipping sync for uid {uid}")
            return existing

        return self._sync(record, existing, record.mail)

    def _sync(
        self, record: DirectoryRecord, existing: LocalIdentity | None, mail: str
    ) -> LocalIdentity | None:
        """Create or refresh the identity for a directory record."""
        if not record.uid:
            logger.warning(f"Directory entry {record.distinguished_name} has no uid, not syncing")
            return None

        props = self._merge(record, existing, mail)
        # Validate every field before the store sees anything
        merged = LocalIdentity(**props)

        if existing is None:
            identity = self.store.create(props)
            logger.info(f"Created directory identity {merged.id} for {merged.email}")
        else:
            identity = existing.model_copy(update=merged.model_dump())
            logger.info(f"Refreshed directory identity {merged.id} for {merged.email}")

        self.store.persist(identity, props)
        self.store.register(identity)
        return identity

    def _merge(
        self, record: DirectoryRecord, existing: LocalIdentity | None, mail: str
    ) -> dict[str, Any]:
        """Compute the identity properties from a directory record."""
        if existing is not None and existing.display_name:
            display_name = existing.display_name
        else:
            display_name = record.name

        return {
            "id": identity_id_for(record.uid),
            "email": record.mail or mail,
            "display_name": display_name,
            "language": self.default_language,
            "role": DIRECTORY_ROLE,
            "ldap_dn": record.distinguished_name,
            "ldap_uid": record.uid,
            "ldap_mail": record.mail,
            "ldap_name": record.name,
        }


def _is_local_account(identity: LocalIdentity | None) -> bool:
    """Whether an identity belongs to the host and must not be synced."""
    return identity is not None and bool(identity.role) and identity.role != DIRECTORY_ROLE

# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Local identity model and the identity store interface consumed from the host."""

from typing import Any, Protocol

from pydantic import BaseModel, Field

DIRECTORY_ROLE = "LdapUser"


class LocalIdentity(BaseModel):
    """The host's user record, as far as directory sync is concerned."""

    id: str = Field(description="Stable identifier, LDAP_<uid> for directory accounts")
    email: str = Field(description="Mail address")
    display_name: str | None = Field(None, description="Display name, may be customized")
    language: str = Field(default="en", description="Interface language")
    role: str | None = Field(None, description="Role marker")
    ldap_dn: str | None = Field(None, description="Mirrored distinguished name")
    ldap_uid: str | None = Field(None, description="Mirrored uid")
    ldap_mail: str | None = Field(None, description="Mirrored mail")
    ldap_name: str | None = Field(None, description="Mirrored directory name")

    @property
    def is_directory_managed(self) -> bool:
        """Whether the directory is the source of truth for this identity."""
        return self.role == DIRECTORY_ROLE


class IdentityStore(Protocol):
    """Identity storage provided by the host application."""

    def find_by_email(self, email: str) -> LocalIdentity | None: ...

    def create(self, props: dict[str, Any]) -> LocalIdentity: ...

    def persist(self, identity: LocalIdentity, props: dict[str, Any]) -> None: ...

    def register(self, identity: LocalIdentity) -> None: ...


class InMemoryIdentityStore:
    """Identity store kept in process memory, for hosts without persistence and for tests."""

    def __init__(self, identities: list[LocalIdentity] | None = None):
        self._collection: dict[str, LocalIdentity] = {}
        self.persisted: dict[str, dict[str, Any]] = {}
        for identity in identities or []:
            self.register(identity)

    def find_by_email(self, email: str) -> LocalIdentity | None:
        return self._collection.get(email.lower())

    def create(self, props: dict[str, Any]) -> LocalIdentity:
        return LocalIdentity(**props)

    def persist(self, identity: LocalIdentity, props: dict[str, Any]) -> None:
        self.persisted[identity.id] = dict(props)

    def register(self, identity: LocalIdentity) -> None:
        self._collection[identity.email.lower()] = identity

    def __len__(self) -> int:
        return len(self._collection)

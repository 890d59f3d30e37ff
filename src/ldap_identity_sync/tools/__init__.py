# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Directory lookup, credential verification and identity reconciliation."""

from .credentials import CredentialVerifier
from .directory_search import DirectoryRecord, DirectorySearch
from .identity import DIRECTORY_ROLE, IdentityStore, InMemoryIdentityStore, LocalIdentity
from .reconciler import IdentityReconciler

__all__ = [
    "CredentialVerifier",
    "DirectoryRecord",
    "DirectorySearch",
    "DIRECTORY_ROLE",
    "IdentityReconciler",
    "IdentityStore",
    "InMemoryIdentityStore",
    "LocalIdentity",
]

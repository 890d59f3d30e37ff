# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""LDAP Identity Sync - directory authentication and local identity provisioning."""

__version__ = "0.1.0"
__description__ = "Authenticate against LDAP and keep local identities in sync with the directory"

# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Host-facing authentication service."""

from typing import Any

from .config.loader import load_config
from .config.models import Config
from .core.errors import CredentialMismatchError, NotFoundError, UsageError
from .core.ldap_connector import DirectoryConnection
from .core.logging import get_logger, setup_logging
from .core.password_policy import PasswordPolicyGuard
from .tools.credentials import CredentialVerifier
from .tools.directory_search import DirectoryRecord, DirectorySearch
from .tools.identity import IdentityStore, InMemoryIdentityStore, LocalIdentity
from .tools.reconciler import IdentityReconciler

logger = get_logger(__name__)

LOGIN_PATH = "api/auth/login"


class LdapAuthService:
    """
    Directory authentication for a host application.

    The host calls ``resolve_identity`` once per login request and then
    ``verify_password`` for the resolved identity.
    """

    def __init__(
        self,
        config: Config,
        store: IdentityStore,
        connector: DirectoryConnection | None = None,
    ):
        """
        Initialize the service.

        Args:
            config: Loaded configuration, captured for the service lifetime
            store: Host identity store
            connector: Directory connection, created from config if omitted
        """
        self.config = config
        self.store = store
        self.connector = connector or DirectoryConnection(config.ldap, config.tls_options)

        self.search = DirectorySearch(self.connector, config.attributes)
        self.guard = PasswordPolicyGuard(config.password_policy)
        self.verifier = CredentialVerifier(self.search)
        self.reconciler = IdentityReconciler(
            self.search, store, default_language=config.default_language
        )

    def resolve_identity(self, email: str | None) -> LocalIdentity | None:
        """Find or provision the local identity for a login email."""
        return self.reconciler.authenticate(email)

    def resolve_identity_by_username(self, username: str | None) -> LocalIdentity | None:
        """Find or provision the local identity for a directory uid."""
        return self.reconciler.authenticate_username(username)

    def login_with_username(self, username: str | None, password: str | None) -> LocalIdentity:
        """
        Verify a uid/password pair, then find or provision its identity.

        Args:
            username: Directory uid from the login form
            password: Plaintext password

        Returns:
            The synced identity

        Raises:
            UsageError: If username is empty
            InvalidShapeError: If the password fails the shape checks
            CredentialMismatchError: If the directory rejected the credentials
            NotFoundError: If the entry cannot be turned into an identity
        """
        if not username:
            raise UsageError("Login without username")

        self.guard.validate(password)

        if not self.verifier.verify_username(username, password):
            raise CredentialMismatchError("Incorrect credentials")

        identity = self.resolve_identity_by_username(username)
        if identity is None:
            raise NotFoundError(f"No identity for uid {username}")
        return identity

    def is_elevated(self, identity: LocalIdentity) -> bool:
        """Return the configured admin flag for directory-managed identities."""
        return identity.is_directory_managed and self.config.is_admin

    def verify_password(self, identity: LocalIdentity | None, password: str | None) -> bool:
        """
        Verify a password for a directory-managed identity.

        Args:
            identity: Identity returned by resolve_identity
            password: Plaintext password from the login request

        Returns:
            True if the directory confirmed the credentials

        Raises:
            NotFoundError: If there is no identity
            UsageError: If the identity is not directory-managed or has no email
            InvalidShapeError: If the password fails the shape checks
            CredentialMismatchError: If the directory rejected the credentials
        """
        if identity is None:
            raise NotFoundError("No identity to verify")
        if not identity.is_directory_managed:
            raise UsageError(f"Identity {identity.id} is not managed by the directory")
        if not identity.email:
            raise UsageError(f"Identity {identity.id} has no email")

        self.guard.validate(password)

        if not self.verifier.verify(identity.email, password):
            raise CredentialMismatchError("Incorrect credentials")
        return True

    def handle_login_request(self, path: str, method: str, params: dict[str, Any]) -> None:
        """
        Route hook run before the host handles a request.

        Provisions the identity for login requests so the host's own
        lookup finds it.
        """
        if path.strip("/") == LOGIN_PATH and method.upper() == "POST":
            self.resolve_identity(params.get("email"))

    def directory_record(self, identity: LocalIdentity) -> DirectoryRecord:
        """
        Look up the directory entry behind an identity.

        Raises:
            NotFoundError: If the directory has no entry for the identity's email
        """
        record = self.search.find_by_mail(identity.email)
        if record is None:
            raise NotFoundError(f"No directory entry for {identity.email}")
        return record

    def ldap_dn(self, identity: LocalIdentity) -> str:
        return self.directory_record(identity).distinguished_name

    def ldap_uid(self, identity: LocalIdentity) -> str:
        return self.directory_record(identity).uid

    def ldap_mail(self, identity: LocalIdentity) -> str:
        return self.directory_record(identity).mail

    def ldap_name(self, identity: LocalIdentity) -> str:
        return self.directory_record(identity).name


def create_service(
    config_path: str | None = None,
    store: IdentityStore | None = None,
) -> LdapAuthService:
    """
    Load configuration and build a service.

    Args:
        config_path: Configuration file, defaults to LDAP_IDENTITY_SYNC_CONFIG
        store: Host identity store, defaults to an in-memory store

    Returns:
        Configured service
    """
    config = load_config(config_path)
    setup_logging(config.logging, trace_ldap=config.ldap.debug)

    service = LdapAuthService(config, store if store is not None else InMemoryIdentityStore())
    logger.info("LDAP auth service initialized")
    return service

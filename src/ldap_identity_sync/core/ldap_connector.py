# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Directory connection management for LDAP Identity Sync."""

import logging
import ssl
from threading import RLock
from typing import Any

import ldap3
from ldap3 import NONE, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPBindError, LDAPException, LDAPInvalidCredentialsResult
from ldap3.utils.log import (
    EXTENDED,
    set_library_log_activation_level,
    set_library_log_detail_level,
    set_library_log_hide_sensitive_data,
)

from ..config.models import LDAPConfig, TLSOptions
from .errors import ConfigurationError, CredentialMismatchError, DirectoryConnectionError
from .logging import audit_service_operation

logger = logging.getLogger(__name__)

VALIDATION_MODES = {
    "required": ssl.CERT_REQUIRED,
    "optional": ssl.CERT_OPTIONAL,
    "none": ssl.CERT_NONE,
}

# Protocols disabled to enforce each minimum TLS version
MINIMUM_VERSION_OPTIONS = {
    "1.0": [],
    "1.1": [ssl.OP_NO_TLSv1],
    "1.2": [ssl.OP_NO_TLSv1, ssl.OP_NO_TLSv1_1],
    "1.3": [ssl.OP_NO_TLSv1, ssl.OP_NO_TLSv1_1, ssl.OP_NO_TLSv1_2],
}


class DirectoryConnection:
    """
    Connection to the LDAP directory.

    Holds one long-lived connection bound as the service account, used for
    searches only. Credential checks run on separate short-lived connections
    (see ``bind_as``) so the service bind is never replaced.
    """

    def __init__(self, ldap_config: LDAPConfig, tls_options: TLSOptions | None = None):
        """
        Initialize the directory connection.

        Args:
            ldap_config: LDAP connection configuration
            tls_options: TLS parameters, defaults to certificate validation required
        """
        self.ldap_config = ldap_config
        self.tls_options = tls_options or TLSOptions()

        self._connection: Connection | None = None
        self._server: Server | None = None
        self._lock = RLock()

        if self.ldap_config.debug:
            self._enable_protocol_tracing()

    @staticmethod
    def _enable_protocol_tracing() -> None:
        """Turn on ldap3's extended library log, with credentials hidden."""
        set_library_log_hide_sensitive_data(True)
        set_library_log_detail_level(EXTENDED)
        set_library_log_activation_level(logging.DEBUG)
        logging.getLogger("ldap3").setLevel(logging.DEBUG)
        logger.debug("LDAP protocol tracing enabled")

    def _build_tls(self) -> Tls:
        """Build the TLS settings used for STARTTLS and ldaps:// connections."""
        options = self.tls_options
        ssl_options = MINIMUM_VERSION_OPTIONS[options.version] if options.version else []
        return Tls(
            validate=VALIDATION_MODES[options.validate_cert],
            ssl_options=ssl_options or None,
            ciphers=options.ciphers,
            ca_certs_file=options.ca_cert_file,
        )

    def _get_server(self) -> Server:
        """Return the configured server, creating it on first use."""
        if self._server is not None:
            return self._server

        host = self.ldap_config.host
        if not host:
            raise ConfigurationError("LDAP host is not configured")

        try:
            self._server = Server(
                host,
                get_info=NONE,
                tls=self._build_tls(),
                connect_timeout=self.ldap_config.timeout,
            )
        except LDAPException as e:
            raise ConfigurationError(f"Invalid LDAP host {host}: {e}") from e

        logger.info(f"Configured LDAP server: {host}")
        return self._server

    @property
    def uses_start_tls(self) -> bool:
        """Whether plain connections are upgraded before binding."""
        host = self.ldap_config.host or ""
        return self.ldap_config.start_tls and not host.startswith("ldaps://")

    def _create_connection(self, user: str | None, password: str | None) -> Connection:
        """
        Create an unopened connection for the given bind identity.

        Args:
            user: DN to bind as, None for an anonymous bind
            password: Password for the DN

        Returns:
            Connection: LDAP connection object
        """
        authentication = ldap3.SIMPLE if user else ldap3.ANONYMOUS
        return Connection(
            self._get_server(),
            user=user,
            password=password,
            authentication=authentication,
            version=3,
            auto_referrals=False,
            read_only=True,
            receive_timeout=self.ldap_config.receive_timeout,
            check_names=True,
            raise_exceptions=True,
        )

    def _open(self, connection: Connection) -> None:
        """Open the socket and upgrade it to TLS when configured."""
        connection.open()
        if self.uses_start_tls and not connection.start_tls():
            raise DirectoryConnectionError(f"STARTTLS failed on {self.ldap_config.host}")

    @staticmethod
    def _close(connection: Connection) -> None:
        """Unbind a connection that is being discarded."""
        try:
            connection.unbind()
        except LDAPException as e:
            logger.debug(f"Error closing connection: {e}")

    def connect(self) -> Connection:
        """
        Return the service-bound connection, establishing it if needed.

        Returns:
            Connection: Active LDAP connection bound as the service account

        Raises:
            ConfigurationError: If the host is not configured
            DirectoryConnectionError: If connecting, STARTTLS or the bind fails
        """
        with self._lock:
            if self._connection is not None and self._connection.bound:
                return self._connection

            bind_dn = self.ldap_config.bind_dn
            if not bind_dn:
                logger.warning("No bind_dn configured, binding anonymously")

            connection = self._create_connection(bind_dn, self.ldap_config.bind_pw)
            try:
                self._open(connection)
                if not connection.bind():
                    raise DirectoryConnectionError(
                        f"Service account bind failed: {connection.result.get('description')}"
                    )
            except LDAPException as e:
                self._close(connection)
                audit_service_operation("bind", bind_dn or "anonymous", False, str(e))
                raise DirectoryConnectionError(
                    f"Failed to connect to LDAP server {self.ldap_config.host}: {e}"
                ) from e
            except DirectoryConnectionError as e:
                self._close(connection)
                audit_service_operation("bind", bind_dn or "anonymous", False, str(e))
                raise

            self._connection = connection
            audit_service_operation("bind", bind_dn or "anonymous", True)
            logger.info(f"Connected to LDAP server {self.ldap_config.host}")
            return connection

    def disconnect(self) -> None:
        """Disconnect from LDAP server."""
        with self._lock:
            if self._connection:
                try:
                    self._connection.unbind()
                    logger.info("Disconnected from LDAP server")
                except LDAPException as e:
                    logger.warning(f"Error during disconnect: {e}")
                finally:
                    self._connection = None

    def search(
        self,
        search_base: str,
        search_filter: str,
        attributes: list[str],
    ) -> list[dict[str, Any]]:
        """
        Search the directory with the service-bound connection.

        Args:
            search_base: Base DN for search
            search_filter: LDAP filter string
            attributes: Attributes to retrieve

        Returns:
            List of entries as ``{"dn": ..., "attributes": {name: [values]}}``
            with lower-cased attribute names

        Raises:
            DirectoryConnectionError: If the search fails
        """
        with self._lock:
            connection = self.connect()
            logger.debug(f"Searching: base={search_base}, filter={search_filter}")

            try:
                connection.search(
                    search_base=search_base,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=attributes,
                )
            except LDAPException as e:
                audit_service_operation("search", search_base, False, str(e))
                raise DirectoryConnectionError(f"Search failed: {e}") from e

            if connection.result.get("result", 0) != 0:
                audit_service_operation("search", search_base, False, str(connection.result))
                raise DirectoryConnectionError(f"Search failed: {connection.result}")

            entries = [self._process_entry(entry) for entry in connection.entries]

        logger.debug(f"Search returned {len(entries)} entries")
        return entries

    def _process_entry(self, entry) -> dict[str, Any]:
        """
        Process LDAP entry into dictionary format.

        Attribute names are lower-cased since the server matches them
        case-insensitively but the returned structure does not.

        Args:
            entry: LDAP entry from ldap3

        Returns:
            Dictionary representation of entry
        """
        attributes = {}
        for name, values in entry.entry_attributes_as_dict.items():
            if not isinstance(values, (list, tuple)):
                values = [values]
            attributes[name.lower()] = list(values)

        return {"dn": entry.entry_dn, "attributes": attributes}

    def bind_as(self, dn: str, password: str) -> None:
        """
        Verify credentials by binding as ``dn`` on a separate connection.

        The connection is closed again before returning; the service-bound
        connection is untouched.

        Args:
            dn: Distinguished name of the user
            password: Plaintext password

        Raises:
            CredentialMismatchError: If the directory rejects the credentials
            DirectoryConnectionError: If the connection or STARTTLS fails
        """
        connection = self._create_connection(dn, password)
        try:
            self._open(connection)
            if not connection.bind():
                raise CredentialMismatchError(f"Bind rejected for {dn}")
        except (LDAPBindError, LDAPInvalidCredentialsResult) as e:
            raise CredentialMismatchError(f"Bind rejected for {dn}") from e
        except LDAPException as e:
            raise DirectoryConnectionError(f"User bind failed for {dn}: {e}") from e
        finally:
            self._close(connection)

    def test_connection(self) -> dict[str, Any]:
        """
        Test the service connection and return server information.

        Returns:
            Dictionary with connection test results
        """
        try:
            connection = self.connect()

            server_info = {
                "connected": True,
                "server": connection.server.host,
                "port": connection.server.port,
                "ssl": connection.server.ssl,
                "start_tls": self.uses_start_tls,
                "bound": connection.bound,
                "user": connection.user,
            }

            logger.info("Connection test successful")
            return server_info

        except (ConfigurationError, DirectoryConnectionError) as e:
            logger.error(f"Connection test failed: {e}")
            return {"connected": False, "error": str(e)}

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Lookup of single directory entries by mail address or uid."""

from typing import Any

from ldap3.utils.conv import escape_filter_chars
from pydantic import BaseModel, Field

from ..config.models import AttributesConfig
from ..core.errors import ConfigurationError, UsageError
from ..core.ldap_connector import DirectoryConnection
from ..core.logging import audit_service_operation, get_logger
from ..core.schema import resolve_attributes

logger = get_logger(__name__)


class DirectoryRecord(BaseModel):
    """Canonical result of a directory lookup."""

    distinguished_name: str = Field(description="Distinguished name of the entry")
    uid: str = Field(default="", description="User id")
    mail: str = Field(default="", description="Mail address")
    name: str = Field(default="", description="Display name")

    model_config = {"frozen": True}


class DirectorySearch:
    """Find exactly one directory entry and normalize it into a DirectoryRecord."""

    def __init__(
        self,
        connector: DirectoryConnection,
        attributes: AttributesConfig | None = None,
    ):
        """Initialize the search tool.

        Args:
            connector: Directory connection used for searches
            attributes: Attribute name overrides
        """
        self.connector = connector
        self.mapping = resolve_attributes(attributes)

    def find_by_mail(self, mail: str) -> DirectoryRecord | None:
        """
        Find the directory entry for a mail address.

        Args:
            mail: Mail address to look up

        Returns:
            The first matching record, or None if nothing matches

        Raises:
            UsageError: If mail is empty
            ConfigurationError: If no base DN is configured
        """
        if not mail:
            raise UsageError("Directory lookup without mail")
        return self._find_one(self.mapping.mail, mail)

    def find_by_uid(self, uid: str) -> DirectoryRecord | None:
        """
        Find the directory entry for a user id.

        Args:
            uid: User id to look up

        Returns:
            The first matching record, or None if nothing matches
        """
        if not uid:
            raise UsageError("Directory lookup without uid")
        return self._find_one(self.mapping.uid, uid)

    def _find_one(self, attribute: str, value: str) -> DirectoryRecord | None:
        base_dn = self.connector.ldap_config.base_dn
        if not base_dn:
            raise ConfigurationError("LDAP base_dn is not configured")

        search_filter = f"({attribute}={escape_filter_chars(value)})"
        entries = self.connector.search(
            search_base=base_dn,
            search_filter=search_filter,
            attributes=self.mapping.search_attributes(),
        )

        if not entries:
            logger.info(f"No directory entry for {search_filter}")
            audit_service_operation("search", base_dn, True, f"no match for {search_filter}")
            return None

        if len(entries) > 1:
            logger.warning(
                f"{len(entries)} directory entries match {search_filter}, using the first"
            )

        record = self._to_record(entries[0])
        audit_service_operation("search", record.distinguished_name, True)
        return record

    def _to_record(self, entry: dict[str, Any]) -> DirectoryRecord:
        """
        Normalize a search entry using the resolved attribute mapping.

        Args:
            entry: Entry as returned by DirectoryConnection.search

        Returns:
            DirectoryRecord with the first value of each mapped attribute
        """
        attrs = entry.get("attributes", {})
        fields = {
            field: _first_value(attrs.get(key))
            for field, key in self.mapping.lookup_keys().items()
        }
        return DirectoryRecord(distinguished_name=entry["dn"], **fields)


def _first_value(values) -> str:
    if not values:
        return ""
    if isinstance(values, (list, tuple)):
        values = values[0]
    if isinstance(values, bytes):
        return values.decode("utf-8", errors="replace")
    return str(values)

# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Mapping of logical identity fields onto directory attribute names."""

from pydantic import BaseModel, Field

from ..config.models import AttributesConfig

DEFAULT_ATTRIBUTES = {"uid": "uid", "mail": "mail", "name": "cn"}


class AttributeMapping(BaseModel):
    """Directory attribute name for each logical field."""

    uid: str = Field(default=DEFAULT_ATTRIBUTES["uid"])
    mail: str = Field(default=DEFAULT_ATTRIBUTES["mail"])
    name: str = Field(default=DEFAULT_ATTRIBUTES["name"])

    model_config = {"frozen": True}

    def search_attributes(self) -> list[str]:
        """Attribute names as configured, for filters and attribute lists."""
        return [self.uid, self.mail, self.name]

    def lookup_keys(self) -> dict[str, str]:
        """Lower-cased attribute names keyed by logical field, for reading entries."""
        return {
            "uid": self.uid.lower(),
            "mail": self.mail.lower(),
            "name": self.name.lower(),
        }


def resolve_attributes(config: AttributesConfig | None) -> AttributeMapping:
    """
    Resolve the attribute mapping from configuration.

    Empty or missing overrides fall back to the built-in defaults.

    Args:
        config: Attribute overrides, may be None

    Returns:
        Resolved attribute mapping
    """
    resolved = dict(DEFAULT_ATTRIBUTES)
    if config is not None:
        for field in DEFAULT_ATTRIBUTES:
            override = getattr(config, field)
            if override and override.strip():
                resolved[field] = override.strip()
    return AttributeMapping(**resolved)

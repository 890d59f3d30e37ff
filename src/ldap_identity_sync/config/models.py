# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Configuration models for LDAP Identity Sync."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LDAPConfig(BaseModel):
    """LDAP connection configuration."""

    host: str | None = Field(
        default=None, description="LDAP server URI (ldap://host:port or ldaps://host:port)"
    )
    base_dn: str | None = Field(default=None, description="Base Distinguished Name for searches")
    bind_dn: str | None = Field(default=None, description="Service account DN used for searches")
    bind_pw: str | None = Field(default=None, description="Service account password")
    start_tls: bool = Field(default=True, description="Upgrade plain connections with STARTTLS")
    debug: bool = Field(default=False, description="Enable ldap3 protocol tracing")
    timeout: int = Field(default=10, description="Connection timeout in seconds")
    receive_timeout: int = Field(default=10, description="Receive timeout in seconds")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v):
        """Validate server URI format."""
        if v and not v.startswith(("ldap://", "ldaps://")):
            raise ValueError("Host must start with ldap:// or ldaps://")
        return v

    @field_validator("timeout", "receive_timeout")
    @classmethod
    def validate_positive_timeout(cls, v):
        """Validate timeouts are bounded."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v


class TLSOptions(BaseModel):
    """TLS parameters applied before STARTTLS or on ldaps:// connections."""

    validate_cert: Literal["required", "optional", "none"] = Field(
        default="required", alias="validate", description="Server certificate validation mode"
    )
    version: Literal["1.0", "1.1", "1.2", "1.3"] | None = Field(
        default=None, description="Minimum TLS protocol version"
    )
    ciphers: str | None = Field(default=None, description="OpenSSL cipher suite string")
    ca_cert_file: str | None = Field(default=None, description="CA certificate file path")

    model_config = {"populate_by_name": True}


class AttributesConfig(BaseModel):
    """Directory attribute names for the logical identity fields."""

    uid: str | None = Field(default=None, description="Attribute holding the user id")
    mail: str | None = Field(default=None, description="Attribute holding the mail address")
    name: str | None = Field(default=None, description="Attribute holding the display name")


class PasswordPolicyConfig(BaseModel):
    """Password shape bounds checked before contacting the directory."""

    min_length: int = Field(default=8, description="Minimum password length")
    max_length: int = Field(default=1000, description="Maximum password length")

    @field_validator("min_length", "max_length")
    @classmethod
    def validate_positive_int(cls, v):
        """Validate positive integers."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    file: str | None = Field(default=None, description="Log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Level must be one of: {valid_levels}")
        return v.upper()


class Config(BaseModel):
    """Main configuration class for LDAP Identity Sync."""

    ldap: LDAPConfig = Field(default_factory=LDAPConfig)
    tls_options: TLSOptions = Field(default_factory=TLSOptions)
    attributes: AttributesConfig = Field(default_factory=AttributesConfig)
    password_policy: PasswordPolicyConfig = Field(default_factory=PasswordPolicyConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    is_admin: bool = Field(default=False, description="Grant admin to directory-managed users")
    default_language: str = Field(default="en", description="Language for new identities")

    @field_validator("password_policy")
    @classmethod
    def validate_password_bounds(cls, v):
        """Validate the password bounds are ordered."""
        if v.min_length > v.max_length:
            raise ValueError("min_length must not exceed max_length")
        return v


OPENLDAP_SAMPLE = {
    "ldap": {
        "host": "ldap://ldap.example.com:389",
        "base_dn": "ou=people,dc=example,dc=com",
        "bind_dn": "cn=readonly,dc=example,dc=com",
        "bind_pw": "readonly_password",
        "start_tls": True,
        "debug": False,
    },
    "tls_options": {"validate": "required", "version": "1.2"},
    "attributes": {"uid": "uid", "mail": "mail", "name": "cn"},
    "is_admin": False,
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

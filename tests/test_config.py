# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Tests for configuration management."""

import json
from pathlib import Path
from tempfile import NamedTemporaryFile
from unittest.mock import patch

import pytest

from ldap_identity_sync.config.loader import create_sample_config, load_config, validate_config
from ldap_identity_sync.config.models import (
    OPENLDAP_SAMPLE,
    Config,
    LDAPConfig,
    LoggingConfig,
    PasswordPolicyConfig,
    TLSOptions,
)
from ldap_identity_sync.core.errors import ConfigurationError


class TestConfigModels:
    """Test configuration model validation."""

    def test_ldap_config_defaults(self):
        """Test LDAP configuration defaults."""
        config = LDAPConfig(host="ldap://test.example.com", base_dn="dc=test,dc=com")

        assert config.start_tls is True
        assert config.debug is False
        assert config.timeout == 10
        assert config.receive_timeout == 10
        assert config.bind_dn is None

    def test_ldap_config_invalid_host(self):
        """Test invalid host URI."""
        with pytest.raises(ValueError, match="Host must start with ldap://"):
            LDAPConfig(host="http://invalid.com")

    def test_ldap_config_allows_missing_settings(self):
        """Test missing host and base DN are reported at use, not at load."""
        config = LDAPConfig()

        assert config.host is None
        assert config.base_dn is None

    def test_ldap_config_timeout_must_be_positive(self):
        """Test unbounded timeouts are rejected."""
        with pytest.raises(ValueError, match="Timeout must be positive"):
            LDAPConfig(host="ldap://test.com", receive_timeout=0)

    def test_tls_options(self):
        """Test TLS options accept the validate alias."""
        options = TLSOptions(validate="optional", version="1.3", ciphers="HIGH")

        assert options.validate_cert == "optional"
        assert options.version == "1.3"
        assert TLSOptions().validate_cert == "required"

        with pytest.raises(ValueError):
            TLSOptions(validate="sometimes")

    def test_password_policy_bounds(self):
        """Test password bounds validation."""
        assert PasswordPolicyConfig().min_length == 8
        assert PasswordPolicyConfig().max_length == 1000

        with pytest.raises(ValueError, match="Value must be positive"):
            PasswordPolicyConfig(min_length=0)

        with pytest.raises(ValueError, match="min_length must not exceed max_length"):
            Config(password_policy=PasswordPolicyConfig(min_length=20, max_length=10))

    def test_logging_config_validation(self):
        """Test logging level validation."""
        config = LoggingConfig(level="info")
        assert config.level == "INFO"

        with pytest.raises(ValueError, match="Level must be one of"):
            LoggingConfig(level="invalid")

    def test_full_config(self):
        """Test complete configuration parsing."""
        config = Config(**OPENLDAP_SAMPLE)

        assert config.ldap.host == "ldap://ldap.example.com:389"
        assert config.tls_options.version == "1.2"
        assert config.attributes.name == "cn"
        assert config.is_admin is False
        assert config.default_language == "en"


class TestConfigLoader:
    """Test configuration loading functionality."""

    def test_load_config_from_file(self):
        """Test loading configuration from JSON file."""
        config_data = {
            "ldap": {
                "host": "ldap://test.example.com",
                "base_dn": "dc=test,dc=com",
                "bind_dn": "cn=admin,dc=test,dc=com",
                "bind_pw": "secret",
                "start_tls": False,
            },
            "attributes": {"mail": "userPrincipalName"},
            "is_admin": True,
        }

        with NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump(config_data, f)
            config_file = f.name

        try:
            config = load_config(config_file)
            assert config.ldap.host == "ldap://test.example.com"
            assert config.ldap.start_tls is False
            assert config.attributes.mail == "userPrincipalName"
            assert config.is_admin is True
        finally:
            Path(config_file).unlink()

    def test_load_config_file_not_found(self):
        """Test error handling for missing config file."""
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent.json")

    def test_load_config_invalid_json(self):
        """Test error handling for invalid JSON."""
        with NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("{ invalid json }")
            config_file = f.name

        try:
            with pytest.raises(json.JSONDecodeError):
                load_config(config_file)
        finally:
            Path(config_file).unlink()

    def test_load_config_invalid_values(self):
        """Test error handling for invalid values."""
        with NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({"ldap": {"host": "ftp://nope"}}, f)
            config_file = f.name

        try:
            with pytest.raises(ValueError, match="Host must start with"):
                load_config(config_file)
        finally:
            Path(config_file).unlink()

    def test_load_config_from_environment(self):
        """Test loading config from environment variable."""
        config_data = {"ldap": {"host": "ldap://env.test.com", "base_dn": "dc=env,dc=com"}}

        with NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump(config_data, f)
            config_file = f.name

        try:
            with patch.dict("os.environ", {"LDAP_IDENTITY_SYNC_CONFIG": config_file}):
                config = load_config()
                assert config.ldap.host == "ldap://env.test.com"
        finally:
            Path(config_file).unlink()

    def test_load_config_without_path(self):
        """Test a missing path and environment variable is a configuration error."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ConfigurationError, match="No configuration file specified"):
                load_config()


class TestConfigValidation:
    """Test configuration validation logic."""

    def make_config(self, **ldap):
        settings = {
            "host": "ldap://test.com",
            "base_dn": "dc=test,dc=com",
            "bind_dn": "cn=admin,dc=test,dc=com",
            "bind_pw": "secret",
        }
        settings.update(ldap)
        return Config(ldap=LDAPConfig(**settings))

    def test_valid_config(self):
        """Test a complete configuration passes."""
        validate_config(self.make_config())

    def test_missing_host(self):
        """Test a missing host is rejected."""
        with pytest.raises(ConfigurationError, match="host"):
            validate_config(self.make_config(host=None))

    def test_missing_base_dn(self):
        """Test a missing base DN is rejected."""
        with pytest.raises(ConfigurationError, match="base_dn"):
            validate_config(self.make_config(base_dn=None))

    def test_bind_dn_without_password(self):
        """Test a bind DN without password is rejected."""
        with pytest.raises(ConfigurationError, match="bind_pw"):
            validate_config(self.make_config(bind_pw=None))

    def test_cleartext_warning(self, caplog):
        """Test a warning when credentials would travel unencrypted."""
        validate_config(self.make_config(start_tls=False))

        assert "credentials will be sent in clear text" in caplog.text

    def test_anonymous_warning(self, caplog):
        """Test a warning when no service account is configured."""
        validate_config(self.make_config(bind_dn=None, bind_pw=None))

        assert "anonymous bind" in caplog.text

    def test_no_validation_warning(self, caplog):
        """Test a warning when certificate validation is off."""
        config = self.make_config()
        config.tls_options = TLSOptions(validate="none")

        validate_config(config)

        assert "certificate validation is disabled" in caplog.text


class TestSampleConfigGeneration:
    """Test sample configuration file generation."""

    def test_create_sample_config(self, tmp_path):
        """Test the sample configuration round-trips through the loader."""
        output_path = tmp_path / "nested" / "ldap.json"

        create_sample_config(str(output_path))

        with open(output_path) as f:
            config_data = json.load(f)
        assert config_data["ldap"]["bind_dn"] == "cn=readonly,dc=example,dc=com"

        config = load_config(str(output_path))
        validate_config(config)
        assert config.tls_options.validate_cert == "required"

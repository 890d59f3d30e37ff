# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Tests for the command line checks."""

import json
from unittest.mock import MagicMock, Mock, patch

import pytest

from ldap_identity_sync.cli import main
from ldap_identity_sync.core.errors import DirectoryConnectionError
from ldap_identity_sync.tools.directory_search import DirectoryRecord

JDOE = DirectoryRecord(
    distinguished_name="cn=jdoe,dc=x,dc=org", uid="jdoe", mail="a@x.org", name="Jane Doe"
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "ldap.json"
    path.write_text(
        json.dumps({"ldap": {"host": "ldap://ldap.x.org", "base_dn": "dc=x,dc=org"}})
    )
    return str(path)


class TestCli:
    """Test the command line entry point."""

    @pytest.fixture(autouse=True)
    def patch_components(self):
        """Replace the directory components with mocks."""
        self.connector = Mock()
        connection_cm = MagicMock()
        connection_cm.__enter__.return_value = self.connector

        with patch("ldap_identity_sync.cli.setup_logging"), patch(
            "ldap_identity_sync.cli.DirectoryConnection", return_value=connection_cm
        ) as self.mock_connection, patch(
            "ldap_identity_sync.cli.DirectorySearch"
        ) as mock_search, patch(
            "ldap_identity_sync.cli.CredentialVerifier"
        ) as mock_verifier:
            self.search = mock_search.return_value
            self.verifier = mock_verifier.return_value
            yield

    def test_test_connection(self, config_file, capsys):
        """Test a successful connection check prints the status."""
        self.connector.test_connection.return_value = {"connected": True, "server": "ldap.x.org"}

        assert main(["--config", config_file, "test-connection"]) == 0
        assert json.loads(capsys.readouterr().out)["connected"] is True

    def test_test_connection_failure(self, config_file):
        """Test a failed connection check exits non-zero."""
        self.connector.test_connection.return_value = {"connected": False, "error": "refused"}

        assert main(["--config", config_file, "test-connection"]) == 1

    def test_lookup(self, config_file, capsys):
        """Test a lookup prints the directory record."""
        self.search.find_by_mail.return_value = JDOE

        assert main(["--config", config_file, "lookup", "a@x.org"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["uid"] == "jdoe"
        assert output["distinguished_name"] == "cn=jdoe,dc=x,dc=org"
        self.search.find_by_mail.assert_called_once_with("a@x.org")

    def test_lookup_not_found(self, config_file):
        """Test a lookup without match exits non-zero."""
        self.search.find_by_mail.return_value = None

        assert main(["--config", config_file, "lookup", "a@x.org"]) == 1

    @pytest.mark.parametrize("accepted,exit_code", [(True, 0), (False, 1)])
    def test_verify(self, config_file, capsys, accepted, exit_code):
        """Test password verification reads the password interactively."""
        self.verifier.verify.return_value = accepted

        with patch("ldap_identity_sync.cli.getpass.getpass", return_value="longenough1"):
            assert main(["--config", config_file, "verify", "a@x.org"]) == exit_code

        self.verifier.verify.assert_called_once_with("a@x.org", "longenough1")
        assert "longenough1" not in capsys.readouterr().out

    def test_directory_error(self, config_file):
        """Test directory errors are reported as a failed exit code."""
        self.search.find_by_mail.side_effect = DirectoryConnectionError("unreachable")

        assert main(["--config", config_file, "lookup", "a@x.org"]) == 1

    def test_missing_config_file(self, tmp_path):
        """Test a missing configuration file exits before connecting."""
        missing = str(tmp_path / "missing.json")

        assert main(["--config", missing, "test-connection"]) == 1
        self.mock_connection.assert_not_called()

    def test_incomplete_config(self, tmp_path):
        """Test a configuration without base DN exits before connecting."""
        path = tmp_path / "ldap.json"
        path.write_text(json.dumps({"ldap": {"host": "ldap://ldap.x.org"}}))

        assert main(["--config", str(path), "test-connection"]) == 1
        self.mock_connection.assert_not_called()

    def test_init_config(self, tmp_path, capsys):
        """Test the sample configuration is written without connecting."""
        path = tmp_path / "sample.json"

        assert main(["init-config", str(path)]) == 0

        assert json.loads(path.read_text())["ldap"]["host"] == "ldap://ldap.example.com:389"
        assert "Sample configuration written" in capsys.readouterr().out
        self.mock_connection.assert_not_called()

    @pytest.mark.parametrize("password", ["", "short", "a" * 1001])
    def test_verify_checks_password_shape(self, config_file, password):
        """Test malformed passwords never reach the directory."""
        with patch("ldap_identity_sync.cli.getpass.getpass", return_value=password):
            assert main(["--config", config_file, "verify", "a@x.org"]) == 1

        self.verifier.verify.assert_not_called()

    def test_verify_by_uid(self, config_file):
        """Test --uid verifies against the uid path."""
        self.verifier.verify_username.return_value = True

        with patch("ldap_identity_sync.cli.getpass.getpass", return_value="longenough1"):
            assert main(["--config", config_file, "verify", "--uid", "jdoe"]) == 0

        self.verifier.verify_username.assert_called_once_with("jdoe", "longenough1")
        self.verifier.verify.assert_not_called()

    def test_lookup_by_uid(self, config_file, capsys):
        """Test --uid looks the entry up by uid."""
        self.search.find_by_uid.return_value = JDOE

        assert main(["--config", config_file, "lookup", "--uid", "jdoe"]) == 0

        assert json.loads(capsys.readouterr().out)["mail"] == "a@x.org"
        self.search.find_by_uid.assert_called_once_with("jdoe")
        self.search.find_by_mail.assert_not_called()

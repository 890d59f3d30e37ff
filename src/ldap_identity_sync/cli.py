# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Command line checks for an LDAP Identity Sync configuration."""

import argparse
import getpass
import json
import sys

from .config.loader import create_sample_config, load_config, validate_config
from .core.errors import LdapIdentityError
from .core.ldap_connector import DirectoryConnection
from .core.logging import get_logger, setup_logging
from .core.password_policy import PasswordPolicyGuard
from .tools.credentials import CredentialVerifier
from .tools.directory_search import DirectorySearch

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ldap-identity-sync", description="LDAP Identity Sync configuration checks"
    )
    parser.add_argument(
        "--config", default=None, help="Configuration file (default: $LDAP_IDENTITY_SYNC_CONFIG)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    init = subparsers.add_parser("init-config", help="Write a sample configuration file")
    init.add_argument("path")

    subparsers.add_parser("test-connection", help="Connect and bind as the service account")

    lookup = subparsers.add_parser("lookup", help="Look up a directory entry by mail or uid")
    verify = subparsers.add_parser("verify", help="Verify a user's password")
    for sub in (lookup, verify):
        sub.add_argument("login", help="Mail address, or uid with --uid")
        sub.add_argument("--uid", action="store_true", help="Treat LOGIN as a uid")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool."""
    args = build_parser().parse_args(argv)

    if args.command == "init-config":
        try:
            create_sample_config(args.path)
        except OSError as e:
            logger.error(f"Failed to write sample configuration: {e}")
            return 1
        print(f"Sample configuration written to {args.path}")
        return 0

    try:
        config = load_config(args.config)
        setup_logging(config.logging, trace_ldap=config.ldap.debug)
        validate_config(config)
    except (LdapIdentityError, OSError, ValueError) as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    with DirectoryConnection(config.ldap, config.tls_options) as connector:
        search = DirectorySearch(connector, config.attributes)
        try:
            if args.command == "test-connection":
                result = connector.test_connection()
                print(json.dumps(result, indent=2))
                return 0 if result["connected"] else 1

            if args.command == "lookup":
                if args.uid:
                    record = search.find_by_uid(args.login)
                else:
                    record = search.find_by_mail(args.login)
                if record is None:
                    logger.error(f"No directory entry for {args.login}")
                    return 1
                print(json.dumps(record.model_dump(), indent=2))
                return 0

            password = getpass.getpass(f"Password for {args.login}: ")
            PasswordPolicyGuard(config.password_policy).validate(password)

            verifier = CredentialVerifier(search)
            if args.uid:
                accepted = verifier.verify_username(args.login, password)
            else:
                accepted = verifier.verify(args.login, password)
            if accepted:
                print("Credentials accepted")
                return 0
            print("Credentials rejected")
            return 1

        except LdapIdentityError as e:
            logger.error(f"{args.command} failed: {e}")
            return 1


if __name__ == "__main__":
    sys.exit(main())

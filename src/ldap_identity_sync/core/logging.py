# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Logging setup and the directory audit trail."""

import logging
import sys

from ..config.models import LoggingConfig

ROOT_LOGGER = "ldap-identity-sync"
AUDIT_LOGGER = "audit"
LDAP3_LOGGER = "ldap3"


def setup_logging(config: LoggingConfig, trace_ldap: bool = False) -> None:
    """
    Route package logging to stderr and, if configured, a log file.

    Handlers carry no level of their own; the package logger's level
    decides what is written. With ``trace_ldap`` the ldap3 protocol log
    is sent to the same handlers at DEBUG.

    Args:
        config: Logging configuration
        trace_ldap: Also write ldap3's library log (``ldap.debug``)
    """
    formatter = logging.Formatter(config.format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error = None
    if config.file:
        try:
            handlers.append(logging.FileHandler(config.file, encoding="utf-8"))
        except OSError as e:
            file_error = e

    for handler in handlers:
        handler.setFormatter(formatter)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, config.level))
    logger.handlers[:] = handlers

    if trace_ldap:
        ldap_logger = logging.getLogger(LDAP3_LOGGER)
        ldap_logger.setLevel(logging.DEBUG)
        ldap_logger.handlers[:] = handlers
        ldap_logger.propagate = False

    if file_error is not None:
        logger.warning(f"Cannot open log file {config.file}: {file_error}")
    elif config.file:
        logger.info(f"Writing log to {config.file}")

    logger.info(f"Log level {config.level}, ldap3 tracing {'on' if trace_ldap else 'off'}")


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def audit_service_operation(
    operation: str, dn: str, success: bool, details: str | None = None
) -> None:
    """
    Audit a bind or search made with the service account.

    Args:
        operation: 'bind' or 'search'
        dn: Bind DN, search base or matched entry
        success: Whether the directory accepted the operation
        details: Error text or match summary
    """
    _audit(f"service {operation} {dn}", success, details)


def audit_credential_check(subject: str, success: bool, reason: str | None = None) -> None:
    """
    Audit a user credential check.

    Entries are keyed by the login name (mail or uid) the user typed, so
    they can be matched to login attempts. The password never appears.

    Args:
        subject: Mail or uid used to log in
        success: Whether the user bind succeeded
        reason: Why the check failed
    """
    _audit(f"credential check {subject}", success, reason)


def _audit(event: str, success: bool, details: str | None) -> None:
    message = f"{event}: {'ok' if success else 'failed'}"
    if details:
        message += f" ({details})"
    get_logger(AUDIT_LOGGER).log(logging.INFO if success else logging.WARNING, message)

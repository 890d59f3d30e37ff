# # Copyright (c) 2024 LDAP Identity Sync
# # SPDX-License-Identifier: MIT
# #
# # LDAP Identity Sync
# # Directory authentication and local identity synchronization

"""Configuration loader for LDAP Identity Sync."""

import json
import logging
import os
from pathlib import Path

from ..core.errors import ConfigurationError
from .models import OPENLDAP_SAMPLE, Config

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LDAP_IDENTITY_SYNC_CONFIG"


def load_config(config_path: str | None = None) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to configuration file. If None, uses the
                    LDAP_IDENTITY_SYNC_CONFIG environment variable.

    Returns:
        Config: Loaded and validated configuration

    Raises:
        ConfigurationError: If no path is given or configured
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
        json.JSONDecodeError: If config file is not valid JSON
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR)
        if not config_path:
            raise ConfigurationError(
                "No configuration file specified. Either provide config_path or "
                f"set {CONFIG_ENV_VAR} environment variable."
            )

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    try:
        with open(config_file, encoding="utf-8") as f:
            config_data = json.load(f)

        config = Config(**config_data)
        logger.info("Configuration loaded successfully")

        _log_config_summary(config)

        return config

    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in configuration file: {e}")
        raise
    except ValueError as e:
        logger.error(f"Error loading configuration: {e}")
        raise


def _log_config_summary(config: Config) -> None:
    """
    Log configuration summary without sensitive information.

    Args:
        config: Configuration object to summarize
    """
    logger.debug(f"LDAP Host: {config.ldap.host}")
    logger.debug(f"Base DN: {config.ldap.base_dn}")
    logger.debug(f"Bind DN: {config.ldap.bind_dn or 'anonymous'}")
    logger.debug(f"STARTTLS: {config.ldap.start_tls}")
    logger.debug(f"Certificate validation: {config.tls_options.validate_cert}")
    logger.debug(
        f"Attributes: uid={config.attributes.uid}, mail={config.attributes.mail}, "
        f"name={config.attributes.name}"
    )
    logger.debug(f"Logging Level: {config.logging.level}")


def validate_config(config: Config) -> None:
    """
    Perform additional validation on configuration.

    Args:
        config: Configuration to validate

    Raises:
        ConfigurationError: If required settings are missing
    """
    if not config.ldap.host:
        raise ConfigurationError("LDAP host is not configured")
    if not config.ldap.base_dn:
        raise ConfigurationError("LDAP base_dn is not configured")
    if config.ldap.bind_dn and not config.ldap.bind_pw:
        raise ConfigurationError("bind_dn is configured without bind_pw")

    if not config.ldap.bind_dn:
        logger.warning("No bind_dn configured, searches will use an anonymous bind")

    if config.ldap.host.startswith("ldap://") and not config.ldap.start_tls:
        logger.warning("STARTTLS is disabled, credentials will be sent in clear text")

    if config.tls_options.validate_cert == "none":
        logger.warning("Server certificate validation is disabled")

    logger.info("Configuration validation completed")


def create_sample_config(output_path: str) -> None:
    """
    Create a sample configuration file.

    Args:
        output_path: Path where to create the sample config
    """
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(OPENLDAP_SAMPLE, f, indent=2, ensure_ascii=False)

    logger.info(f"Sample configuration created at: {output_path}")

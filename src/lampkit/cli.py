import logging
import os
from dataclasses import replace

import click
from rich.logging import RichHandler

from .admin import MySQLAdmin
from .constants import (
    MYSQL_MAX_RETRIES,
    MYSQL_RESET_WAIT_SECONDS,
    MYSQL_RETRY_DELAY_SECONDS,
    MYSQL_SERVICE_PATTERN,
)
from .core import WordPressInstaller
from .errors import ProvisionError
from .models import SystemPaths
from .services.config_loader import INSTALLER_KEYS, MYSQL_ADMIN_KEYS, ConfigLoader

DEFAULT_CONFIG_NAME = ".lampkit.yml"


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _load_config(config_path, supported_keys):
    try:
        resolved_config = config_path
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        return ConfigLoader(supported_keys).load(resolved_config)
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose, log_file):
    logger = logging.getLogger("lampkit")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)
    return logger


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_NAME} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def wordpress_main(config, verbose, log_file):
    """Install Apache, MySQL, PHP and WordPress with optional HTTPS and firewall."""
    config_values = _load_config(config, INSTALLER_KEYS)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    path_overrides = {
        key: str(config_values[key])
        for key in ("install_dir", "credentials_file", "manifest_file")
        if key in config_values
    }
    defaults = {
        key: config_values[key]
        for key in ("http_port", "https_port", "ssh_port", "ssl_domain", "ssl_email")
        if key in config_values
    }

    try:
        installer = WordPressInstaller(
            paths=replace(SystemPaths(), **path_overrides),
            defaults=defaults,
        )
    except ProvisionError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(installer.run())


@click.command()
@click.option(
    "--mysql-path",
    required=False,
    type=click.Path(),
    help="MySQL installation directory or its bin directory.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_NAME} if present.",
)
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def mysql_main(mysql_path, config, verbose, log_file):
    """Manage a local MySQL/MariaDB installation on Windows."""
    config_values = _load_config(config, MYSQL_ADMIN_KEYS)

    mysql_path = _resolve_option(mysql_path, config_values, "mysql_path")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    try:
        admin = MySQLAdmin(
            mysql_path=mysql_path,
            service_pattern=str(
                _resolve_option(None, config_values, "service_pattern", default=MYSQL_SERVICE_PATTERN)
            ),
            backup_dir=_resolve_option(None, config_values, "backup_dir"),
            max_retries=int(_resolve_option(None, config_values, "retry_count", default=MYSQL_MAX_RETRIES)),
            retry_delay_seconds=float(
                _resolve_option(
                    None,
                    config_values,
                    "retry_delay_seconds",
                    default=MYSQL_RETRY_DELAY_SECONDS,
                )
            ),
            reset_wait_seconds=float(
                _resolve_option(
                    None,
                    config_values,
                    "reset_wait_seconds",
                    default=MYSQL_RESET_WAIT_SECONDS,
                )
            ),
        )
    except (ProvisionError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(admin.run())


if __name__ == "__main__":
    wordpress_main()

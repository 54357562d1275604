"""Configuration loader for lampkit."""

from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from lampkit.errors import ProvisionError

INSTALLER_KEYS = frozenset(
    {
        "http_port",
        "https_port",
        "ssh_port",
        "ssl_domain",
        "ssl_email",
        "install_dir",
        "credentials_file",
        "manifest_file",
        "verbose",
        "log_file",
    }
)

MYSQL_ADMIN_KEYS = frozenset(
    {
        "mysql_path",
        "service_pattern",
        "backup_dir",
        "retry_count",
        "retry_delay_seconds",
        "reset_wait_seconds",
        "verbose",
        "log_file",
    }
)


class ConfigLoader:
    """Loads YAML configuration files for CLI and prompt defaults."""

    def __init__(self, supported_keys: FrozenSet[str] = INSTALLER_KEYS):
        self.supported_keys = supported_keys

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisionError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisionError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisionError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.supported_keys)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ProvisionError(f"Unknown configuration keys: {unknown_list}")

        return parsed

"""Input validation helpers for lampkit."""

import re
from typing import Tuple

from lampkit.errors import ProvisionError
from lampkit.errors_catalog import actionable_error

_DOMAIN_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*$"
)


def parse_port(value) -> int:
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ProvisionError(actionable_error("invalid_port", value=str(value))) from exc

    if not 1 <= port <= 65535:
        raise ProvisionError(actionable_error("invalid_port", value=str(value)))
    return port


def parse_port_list(value: str) -> Tuple[int, ...]:
    """Parses a comma-separated port list such as ``25, 8080``."""
    if not value or not value.strip():
        return ()

    ports = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        port = parse_port(item)
        if port not in ports:
            ports.append(port)
    return tuple(ports)


def parse_user_host(value: str) -> Tuple[str, str]:
    user, separator, host = (value or "").strip().partition("@")
    if not separator or not user or not host or "@" in host:
        raise ProvisionError(actionable_error("invalid_user_host", value=value or ""))
    return user, host


def is_valid_domain(value: str) -> bool:
    return bool(value) and _DOMAIN_PATTERN.match(value) is not None


def sql_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"


def sql_identifier(value: str) -> str:
    if not value or not value.strip():
        raise ProvisionError("Identifier must not be empty.")
    return "`" + value.replace("`", "``") + "`"


def sql_account(user: str, host: str) -> str:
    return f"{sql_string(user)}@{sql_string(host)}"

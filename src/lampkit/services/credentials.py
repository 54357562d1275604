"""Generation of database credentials."""

import hashlib
import secrets
import time
from typing import Optional

from lampkit.models import GeneratedSecrets


def _time_seeded_password(timestamp: float, length: int = 12) -> str:
    seed = f"{timestamp:.6f}:{secrets.token_hex(16)}".encode("utf-8")
    return hashlib.sha256(seed).hexdigest()[:length]


def generate_secrets(now: Optional[float] = None) -> GeneratedSecrets:
    timestamp = time.time() if now is None else now
    db_name = f"wp{int(timestamp)}"
    return GeneratedSecrets(
        db_name=db_name,
        db_user=db_name,
        db_password=_time_seeded_password(timestamp),
        mysql_root_password=_time_seeded_password(timestamp),
    )


def generate_password(length: int = 12) -> str:
    return _time_seeded_password(time.time(), length)

"""External command execution for the installer and the MySQL admin tool."""

import os
import re
import subprocess
import time
from typing import Dict, List, Optional

from lampkit.errors import ProvisionError

_SQL_SECRET_PATTERN = re.compile(r"(IDENTIFIED\b.*?\bBY\s+)'(?:[^'\\]|\\.|'')*'", re.IGNORECASE | re.DOTALL)


def redact_secrets(text: str) -> str:
    """Masks passwords in ``IDENTIFIED [WITH plugin] BY '...'`` clauses."""
    return _SQL_SECRET_PATTERN.sub(r"\1'***'", text)


class CommandRunner:
    """Runs apt, a2*, systemctl, mysql and Windows service commands.

    ``retry_count`` is the number of extra attempts after the first one, each
    preceded by a fixed ``retry_backoff_seconds`` pause. Extra ``env`` entries
    are layered over the current environment and never logged, since they carry
    ``MYSQL_PWD``. Passwords inside SQL arguments are masked with
    :func:`redact_secrets` in every log line and error message.
    """

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    @staticmethod
    def _environment(env: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not env:
            return None
        merged = dict(os.environ)
        merged.update(env)
        return merged

    def _invoke(self, cmd: List[str], capture_output: bool, timeout: Optional[float], env):
        try:
            return subprocess.run(cmd, text=True, capture_output=capture_output, timeout=timeout, env=env)
        except FileNotFoundError as exc:
            raise ProvisionError(f"Required command not found: {cmd[0]}. Please install it and try again.") from exc
        except OSError as exc:
            raise ProvisionError(f"Failed to execute command: {redact_secrets(' '.join(cmd))}. {exc}") from exc

    @staticmethod
    def _failure_message(result: subprocess.CompletedProcess, cmd_str: str, capture_output: bool) -> str:
        message = f"Command failed ({result.returncode}): {cmd_str}"
        stderr = redact_secrets((result.stderr or "").strip()) if capture_output else ""
        return f"{message}\n{stderr}" if stderr else message

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        retry_count: int = 0,
        retry_backoff_seconds: float = 0.0,
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = redact_secrets(" ".join(cmd))
        timeout = timeout if timeout is not None else self.default_timeout
        attempts = max(1, retry_count + 1)
        process_env = self._environment(env)
        self.logger.debug("Executing: %s", cmd_str)

        for attempt in range(1, attempts + 1):
            last_attempt = attempt == attempts
            try:
                result = self._invoke(cmd, capture_output, timeout, process_env)
            except subprocess.TimeoutExpired as exc:
                if last_attempt:
                    raise ProvisionError(f"Command timed out after {timeout}s: {cmd_str}") from exc
                self.logger.warning(
                    "Attempt %s/%s timed out, retrying in %.1fs: %s",
                    attempt,
                    attempts,
                    retry_backoff_seconds,
                    cmd_str,
                )
                time.sleep(retry_backoff_seconds)
                continue

            if capture_output and result.stdout:
                self.logger.debug("Command output: %s", redact_secrets(result.stdout.strip()))
            if result.returncode == 0:
                return result

            message = self._failure_message(result, cmd_str, capture_output)
            if not last_attempt:
                self.logger.warning(
                    "Attempt %s/%s failed, retrying in %.1fs.\n%s",
                    attempt,
                    attempts,
                    retry_backoff_seconds,
                    message,
                )
                time.sleep(retry_backoff_seconds)
                continue

            if check:
                raise ProvisionError(message)
            self.logger.warning(message)
            return result

        raise ProvisionError(f"Command failed after {attempts} attempts: {cmd_str}")

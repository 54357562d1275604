"""Windows service control for the MySQL/MariaDB server."""

import re
from typing import Callable, Optional

from lampkit.constants import MYSQL_MAX_RETRIES, MYSQL_RETRY_DELAY_SECONDS, MYSQL_SERVICE_PATTERN

_SERVICE_NAME_PATTERN = re.compile(r"^\s*SERVICE_NAME\s*:\s*(.+?)\s*$", re.MULTILINE)
_STATE_PATTERN = re.compile(r"STATE\s*:\s*\d+\s+(\w+)")


class ServiceController:
    """Wraps ``sc query`` and ``net start``/``net stop``."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        pattern: str = MYSQL_SERVICE_PATTERN,
        max_retries: int = MYSQL_MAX_RETRIES,
        retry_delay: float = MYSQL_RETRY_DELAY_SECONDS,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._service_name: Optional[str] = None

    def _run(self, cmd):
        return self.run_cmd(
            cmd,
            check=False,
            capture_output=True,
            retry_count=self.max_retries - 1,
            retry_backoff_seconds=self.retry_delay,
        )

    def find_service(self) -> Optional[str]:
        if self._service_name:
            return self._service_name

        result = self._run(["sc", "query", "type=", "service", "state=", "all"])
        if result.returncode != 0:
            self.logger.warning("Could not list Windows services.")
            return None

        for name in _SERVICE_NAME_PATTERN.findall(result.stdout or ""):
            if self.pattern.search(name):
                self.logger.debug("Using Windows service %s", name)
                self._service_name = name
                return name
        return None

    def status(self, name: str) -> Optional[str]:
        result = self._run(["sc", "query", name])
        if result.returncode != 0:
            return None
        match = _STATE_PATTERN.search(result.stdout or "")
        return match.group(1) if match else None

    def start(self, name: str) -> bool:
        return self._run(["net", "start", name]).returncode == 0

    def stop(self, name: str) -> bool:
        return self._run(["net", "stop", name]).returncode == 0

    def restart(self, name: str) -> bool:
        if not self.stop(name):
            self.logger.warning("Stopping %s failed; trying to start it anyway.", name)
        return self.start(name)

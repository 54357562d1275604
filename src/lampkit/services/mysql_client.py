"""Client-side execution of MySQL statements and dumps."""

from pathlib import Path
from typing import Callable, Dict, List, Optional

from lampkit.constants import MYSQL_MAX_RETRIES, MYSQL_RETRY_DELAY_SECONDS
from lampkit.models import MySQLSession


class MySQLClient:
    """Runs the installation's mysql/mysqldump binaries for the logged-in account.

    Every call except the credential check is attempted ``max_retries`` times
    with a fixed delay and reports success as a boolean.
    """

    def __init__(
        self,
        session: MySQLSession,
        run_cmd: Callable,
        logger,
        max_retries: int = MYSQL_MAX_RETRIES,
        retry_delay: float = MYSQL_RETRY_DELAY_SECONDS,
    ):
        self.session = session
        self.run_cmd = run_cmd
        self.logger = logger
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    def _env(self) -> Dict[str, str]:
        return {"MYSQL_PWD": self.session.password} if self.session.password else {}

    def _client_args(self, *extra: str) -> List[str]:
        return [str(self.session.installation.client), "-u", self.session.username, *extra]

    def _run(self, cmd: List[str], attempts: Optional[int] = None):
        attempts = self.max_retries if attempts is None else attempts
        return self.run_cmd(
            cmd,
            check=False,
            capture_output=True,
            retry_count=attempts - 1,
            retry_backoff_seconds=self.retry_delay,
            env=self._env(),
        )

    def execute(self, sql: str, database: Optional[str] = None) -> bool:
        args = [database] if database else []
        result = self._run(self._client_args(*args, "-e", sql))
        return result.returncode == 0

    def query(self, sql: str, database: Optional[str] = None) -> Optional[List[List[str]]]:
        """Returns tab-split result rows, or None when the statement failed."""
        args = ["--batch", "--skip-column-names"]
        if database:
            args.append(database)
        result = self._run(self._client_args(*args, "-e", sql))
        if result.returncode != 0:
            return None
        return [line.split("\t") for line in (result.stdout or "").splitlines() if line.strip()]

    def test_credentials(self) -> bool:
        result = self._run(self._client_args("-e", "SELECT 1"), attempts=1)
        return result.returncode == 0

    def dump(self, database: Optional[str], output_path: str) -> bool:
        cmd = [
            str(self.session.installation.dump),
            "-u",
            self.session.username,
            database or "--all-databases",
            f"--result-file={output_path}",
        ]
        return self._run(cmd).returncode == 0

    def restore(self, database: str, sql_file: str) -> bool:
        # the client's source command treats backslashes as escapes
        return self.execute(f"source {Path(sql_file).as_posix()}", database=database)

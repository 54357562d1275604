"""MySQL server configuration for the WordPress installer."""

from typing import Callable, Dict, List, Optional

from lampkit.constants import PRIVATE_FILE_MODE
from lampkit.errors import ProvisionError
from lampkit.errors_catalog import actionable_error
from lampkit.models import GeneratedSecrets, SystemPaths
from lampkit.services.validation import sql_identifier, sql_string


class DatabaseService:
    """Secures the root account and creates the WordPress database and user."""

    SERVICE_NAME = "mysql"

    def __init__(self, logger, console, run_cmd: Callable, prompter, filesystem_service, paths: SystemPaths):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.prompter = prompter
        self.filesystem_service = filesystem_service
        self.paths = paths

    @staticmethod
    def _password_env(password: Optional[str]) -> Optional[Dict[str, str]]:
        return {"MYSQL_PWD": password} if password else None

    def _root_query(self, sql: str, password: Optional[str] = None, check: bool = True):
        return self.run_cmd(
            ["mysql", "-u", "root", "-e", sql],
            check=check,
            capture_output=True,
            env=self._password_env(password),
        )

    def _client_query(self, sql: str):
        self.run_cmd(
            ["mysql", f"--defaults-file={self.paths.mysql_client_config}", "-e", sql],
            check=True,
            capture_output=True,
        )

    def root_has_no_password(self) -> bool:
        return self._root_query("SELECT 1", check=False).returncode == 0

    def rotate_root_password(self, new_password: str):
        # one login: after ALTER USER the old credentials no longer work
        sql = (
            "ALTER USER 'root'@'localhost' IDENTIFIED WITH mysql_native_password "
            f"BY {sql_string(new_password)}; FLUSH PRIVILEGES;"
        )

        if self.root_has_no_password():
            current_password = None
        else:
            current_password = self.prompter.secret("Enter current MySQL root password")
            if self._root_query("SELECT 1", password=current_password, check=False).returncode != 0:
                raise ProvisionError(actionable_error("mysql_root_password_invalid"))

        self._root_query(sql, password=current_password)

    def write_client_config(self, root_password: str):
        content = f"[client]\nuser=root\npassword={root_password}\n"
        self.filesystem_service.write_file(self.paths.mysql_client_config, content, PRIVATE_FILE_MODE)

    def create_application_database(self, secrets: GeneratedSecrets):
        account = f"{sql_string(secrets.db_user)}@'localhost'"
        for statement in self.application_statements(secrets, account):
            self._client_query(statement)

    @staticmethod
    def application_statements(secrets: GeneratedSecrets, account: str) -> List[str]:
        database = sql_identifier(secrets.db_name)
        return [
            f"CREATE DATABASE {database};",
            f"CREATE USER {account} IDENTIFIED WITH mysql_native_password BY {sql_string(secrets.db_password)};",
            f"GRANT ALL PRIVILEGES ON {database}.* TO {account};",
            "FLUSH PRIVILEGES;",
        ]

    def configure(self, secrets: GeneratedSecrets):
        self.console.print("[yellow]➜ Configuring MySQL database server...[/yellow]")
        self.run_cmd(["systemctl", "enable", self.SERVICE_NAME], check=True)
        self.run_cmd(["systemctl", "start", self.SERVICE_NAME], check=True)

        self.rotate_root_password(secrets.mysql_root_password)
        self.write_client_config(secrets.mysql_root_password)
        self.create_application_database(secrets)
        self.console.print("[green]✓ MySQL configured successfully[/green]")

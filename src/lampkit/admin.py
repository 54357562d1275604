import logging
import os
import subprocess
import time
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .constants import (
    MYSQL_MAX_RETRIES,
    MYSQL_RESET_WAIT_SECONDS,
    MYSQL_RETRY_DELAY_SECONDS,
    MYSQL_SEARCH_PATTERNS,
    MYSQL_SERVICE_PATTERN,
)
from .errors import ProvisionError
from .models import MySQLSession
from .services.command_runner import CommandRunner
from .services.mysql_client import MySQLClient
from .services.mysql_discovery import InstallationDiscovery
from .services.mysql_session import SessionManager
from .services.password_reset import PasswordResetService
from .services.prompts import Prompter
from .services.validation import parse_user_host, sql_account, sql_identifier, sql_string
from .services.windows_service import ServiceController

console = Console()
logger = logging.getLogger("lampkit")

MenuEntry = Tuple[str, str, str]

MAIN_MENU: Sequence[MenuEntry] = (
    ("1", "Service control", "service_menu"),
    ("2", "User management", "user_menu"),
    ("3", "Database management", "database_menu"),
    ("4", "Table management", "table_menu"),
    ("5", "Backup and restore", "backup_menu"),
    ("6", "Reset root password", "reset_root_password"),
)

SERVICE_MENU: Sequence[MenuEntry] = (
    ("1", "Start service", "start_service"),
    ("2", "Stop service", "stop_service"),
    ("3", "Restart service", "restart_service"),
    ("4", "Service status", "service_status"),
)

USER_MENU: Sequence[MenuEntry] = (
    ("1", "List users", "list_users"),
    ("2", "Create user", "create_user"),
    ("3", "Change password", "change_password"),
    ("4", "Delete user", "delete_user"),
)

DATABASE_MENU: Sequence[MenuEntry] = (
    ("1", "List databases", "list_databases"),
    ("2", "Create database", "create_database"),
    ("3", "Drop database", "drop_database"),
)

TABLE_MENU: Sequence[MenuEntry] = (
    ("1", "List tables", "list_tables"),
    ("2", "Create table", "create_table"),
    ("3", "Drop table", "drop_table"),
)

BACKUP_MENU: Sequence[MenuEntry] = (
    ("1", "Back up a database", "backup_database"),
    ("2", "Back up all databases", "backup_all_databases"),
    ("3", "Restore a database", "restore_database"),
)


def backup_filename(name: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{name}_{now.strftime('%Y%m%d_%H%M%S')}.sql"


class MySQLAdmin:
    """Menu-driven administration of a local MySQL/MariaDB installation."""

    def __init__(
        self,
        mysql_path: Optional[str] = None,
        service_pattern: str = MYSQL_SERVICE_PATTERN,
        backup_dir: Optional[str] = None,
        max_retries: int = MYSQL_MAX_RETRIES,
        retry_delay_seconds: float = MYSQL_RETRY_DELAY_SECONDS,
        reset_wait_seconds: float = MYSQL_RESET_WAIT_SECONDS,
        prompter=None,
        command_runner=None,
        search_patterns: Iterable[str] = MYSQL_SEARCH_PATTERNS,
        popen=subprocess.Popen,
        sleep=time.sleep,
    ):
        self.mysql_path = mysql_path
        self.backup_dir = backup_dir
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.session: Optional[MySQLSession] = None
        self.client: Optional[MySQLClient] = None
        self.table_database: Optional[str] = None

        self.prompter = prompter or Prompter(console)
        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.discovery = InstallationDiscovery(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            search_patterns=search_patterns,
        )
        self.service_controller = ServiceController(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            pattern=service_pattern,
            max_retries=max_retries,
            retry_delay=retry_delay_seconds,
        )
        self.password_reset_service = PasswordResetService(
            logger=logger,
            console=console,
            prompter=self.prompter,
            service_controller=self.service_controller,
            popen=popen,
            sleep=sleep,
            wait_seconds=reset_wait_seconds,
        )
        self.session_manager = SessionManager(
            logger=logger,
            console=console,
            prompter=self.prompter,
            client_factory=self._client_for,
            password_reset_service=self.password_reset_service,
        )

    def _run_cmd(self, cmd: List[str], check: bool = True, capture_output: bool = False, **kwargs):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, **kwargs)

    def _client_for(self, session: MySQLSession) -> MySQLClient:
        return MySQLClient(
            session,
            run_cmd=self._run_cmd,
            logger=logger,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay_seconds,
        )

    def _report(self, ok: bool, success: str, failure: str) -> bool:
        if ok:
            console.print(f"[green]✓ {success}[/green]")
        else:
            console.print(f"[red]✗ {failure}[/red]")
            logger.warning(failure)
        return ok

    def _print_rows(self, title: str, columns: Sequence[str], rows: Optional[List[List[str]]]):
        if rows is None:
            self._report(False, "", f"Could not read {title.lower()}.")
            return
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row[: len(columns)])
        console.print(table)

    def _menu_loop(self, title: str, entries: Sequence[MenuEntry], exit_label: str = "Back"):
        while True:
            console.print(f"\n[bold blue]{title}[/bold blue]")
            for key, label, _ in entries:
                console.print(f"  {key}. {label}")
            console.print(f"  0. {exit_label}")

            choice = self.prompter.choose("Select an option", [key for key, _, _ in entries] + ["0"])
            if choice == "0":
                return

            handler_name = next(name for key, _, name in entries if key == choice)
            try:
                getattr(self, handler_name)()
            except ProvisionError as exc:
                console.print(f"[bold red]Error:[/bold red] {exc}")
                logger.warning(str(exc))

    # Service control

    def _service_name(self) -> Optional[str]:
        name = self.service_controller.find_service()
        if not name:
            console.print("[red]No MySQL/MariaDB Windows service was found.[/red]")
        return name

    def service_menu(self):
        self._menu_loop("Service control", SERVICE_MENU)

    def start_service(self):
        name = self._service_name()
        if name:
            self._report(self.service_controller.start(name), f"{name} started.", f"Could not start {name}.")

    def stop_service(self):
        name = self._service_name()
        if name:
            self._report(self.service_controller.stop(name), f"{name} stopped.", f"Could not stop {name}.")

    def restart_service(self):
        name = self._service_name()
        if name:
            self._report(
                self.service_controller.restart(name),
                f"{name} restarted.",
                f"Could not restart {name}.",
            )

    def service_status(self):
        name = self._service_name()
        if name:
            state = self.service_controller.status(name)
            console.print(f"[blue]{name}:[/blue] {state or 'UNKNOWN'}")

    # Users

    def user_menu(self):
        self._menu_loop("User management", USER_MENU)

    def _ask_account(self) -> Tuple[str, str]:
        return parse_user_host(self.prompter.ask("Account (user@host)"))

    def list_users(self):
        self._print_rows("Users", ("User", "Host"), self.client.query("SELECT User, Host FROM mysql.user;"))

    def create_user(self):
        user, host = self._ask_account()
        password = self.prompter.secret("Password for the new user")
        account = sql_account(user, host)
        sql = (
            f"CREATE USER {account} IDENTIFIED BY {sql_string(password)}; "
            f"GRANT ALL PRIVILEGES ON *.* TO {account} WITH GRANT OPTION; "
            "FLUSH PRIVILEGES;"
        )
        self._report(self.client.execute(sql), f"User {user}@{host} created.", f"Could not create {user}@{host}.")

    def change_password(self):
        user, host = self._ask_account()
        password = self.prompter.secret("New password")
        sql = f"ALTER USER {sql_account(user, host)} IDENTIFIED BY {sql_string(password)}; FLUSH PRIVILEGES;"
        ok = self._report(
            self.client.execute(sql),
            f"Password changed for {user}@{host}.",
            f"Could not change the password for {user}@{host}.",
        )
        if ok and user == self.session.username:
            self.session.password = password

    def delete_user(self):
        user, host = self._ask_account()
        if not self.prompter.confirm(f"Delete {user}@{host}?", default=False):
            console.print("Cancelled.")
            return
        sql = f"DROP USER {sql_account(user, host)}; FLUSH PRIVILEGES;"
        self._report(self.client.execute(sql), f"User {user}@{host} deleted.", f"Could not delete {user}@{host}.")

    # Databases

    def database_menu(self):
        self._menu_loop("Database management", DATABASE_MENU)

    def _ask_database(self, text: str = "Database name") -> str:
        name = self.prompter.ask(text)
        if not name:
            raise ProvisionError("A database name is required.")
        return name

    def list_databases(self):
        self._print_rows("Databases", ("Database",), self.client.query("SHOW DATABASES;"))

    def create_database(self):
        name = self._ask_database()
        self._report(
            self.client.execute(f"CREATE DATABASE {sql_identifier(name)};"),
            f"Database {name} created.",
            f"Could not create database {name}.",
        )

    def drop_database(self):
        name = self._ask_database()
        if not self.prompter.confirm(f"Drop database {name}? This cannot be undone", default=False):
            console.print("Cancelled.")
            return
        self._report(
            self.client.execute(f"DROP DATABASE {sql_identifier(name)};"),
            f"Database {name} dropped.",
            f"Could not drop database {name}.",
        )

    # Tables

    def table_menu(self):
        self.table_database = self._ask_database("Database to work with")
        try:
            self._menu_loop(f"Tables in {self.table_database}", TABLE_MENU)
        finally:
            self.table_database = None

    def _ask_table(self) -> str:
        name = self.prompter.ask("Table name")
        if not name:
            raise ProvisionError("A table name is required.")
        return name

    def list_tables(self):
        self._print_rows("Tables", ("Table",), self.client.query("SHOW TABLES;", database=self.table_database))

    def create_table(self):
        name = self._ask_table()
        columns = self.prompter.ask("Column definitions (e.g. id INT PRIMARY KEY, name VARCHAR(50))")
        if not columns:
            raise ProvisionError("Column definitions are required.")
        self._report(
            self.client.execute(f"CREATE TABLE {sql_identifier(name)} ({columns});", database=self.table_database),
            f"Table {name} created.",
            f"Could not create table {name}.",
        )

    def drop_table(self):
        name = self._ask_table()
        if not self.prompter.confirm(f"Drop table {name}?", default=False):
            console.print("Cancelled.")
            return
        self._report(
            self.client.execute(f"DROP TABLE {sql_identifier(name)};", database=self.table_database),
            f"Table {name} dropped.",
            f"Could not drop table {name}.",
        )

    # Backup and restore

    def backup_menu(self):
        self._menu_loop("Backup and restore", BACKUP_MENU)

    def _backup(self, database: Optional[str]) -> Optional[str]:
        directory = self.prompter.ask("Backup directory", default=self.backup_dir or os.getcwd())
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise ProvisionError(f"Could not create backup directory {directory}: {exc}") from exc

        output_path = os.path.join(directory, backup_filename(database or "all_databases"))
        ok = self._report(
            self.client.dump(database, output_path),
            f"Backup written to {output_path}",
            f"Backup of {database or 'all databases'} failed.",
        )
        return output_path if ok else None

    def backup_database(self):
        return self._backup(self._ask_database("Database to back up"))

    def backup_all_databases(self):
        return self._backup(None)

    def restore_database(self):
        sql_file = self.prompter.ask("Path to the .sql file")
        if not sql_file or not os.path.isfile(sql_file):
            raise ProvisionError(f"Backup file not found: {sql_file}")
        database = self._ask_database("Restore into database")
        self._report(
            self.client.restore(database, sql_file),
            f"{sql_file} restored into {database}.",
            f"Restore into {database} failed.",
        )

    # Root password

    def reset_root_password(self):
        if not self.prompter.confirm("This stops the MySQL service. Continue?", default=False):
            console.print("Cancelled.")
            return
        new_password = self.password_reset_service.reset(self.session.installation)
        if self.session.username == "root":
            self.session.password = new_password

    def run(self) -> int:
        exit_code = 1

        try:
            installations = self.discovery.discover(self.mysql_path)
            installation = self.session_manager.select_installation(installations)
            self.session = self.session_manager.authenticate(installation)
            self.client = self._client_for(self.session)

            self._menu_loop("MySQL administration", MAIN_MENU, exit_label="Exit")
            console.print("Goodbye.")
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return exit_code
        except ProvisionError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return exit_code

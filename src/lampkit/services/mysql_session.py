"""Installation selection and login for the MySQL admin tool."""

from typing import Callable, List

from rich.table import Table

from lampkit.constants import MYSQL_MAX_LOGIN_ATTEMPTS
from lampkit.errors import ProvisionError
from lampkit.errors_catalog import actionable_error
from lampkit.models import MySQLInstallation, MySQLSession


class SessionManager:
    """Drives select -> authenticate -> (offer reset -> authenticate)."""

    def __init__(
        self,
        logger,
        console,
        prompter,
        client_factory: Callable,
        password_reset_service,
        max_attempts: int = MYSQL_MAX_LOGIN_ATTEMPTS,
    ):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.client_factory = client_factory
        self.password_reset_service = password_reset_service
        self.max_attempts = max_attempts

    def select_installation(self, installations: List[MySQLInstallation]) -> MySQLInstallation:
        if not installations:
            raise ProvisionError(actionable_error("mysql_not_found"))

        if len(installations) == 1:
            installation = installations[0]
            self.console.print(f"[green]Using {installation.label} ({installation.bin_dir})[/green]")
            return installation

        table = Table(title="MySQL installations")
        table.add_column("#", justify="right")
        table.add_column("Installation")
        table.add_column("Location")
        for index, installation in enumerate(installations, start=1):
            table.add_row(str(index), installation.label, str(installation.bin_dir))
        self.console.print(table)

        choices = [str(index) for index in range(1, len(installations) + 1)]
        choice = self.prompter.choose("Select an installation", choices, default="1")
        return installations[int(choice) - 1]

    def _check(self, session: MySQLSession) -> bool:
        if self.client_factory(session).test_credentials():
            session.logged_in = True
            self.console.print(f"[green]✓ Logged in as {session.username}[/green]")
            return True
        return False

    def _login_loop(self, session: MySQLSession) -> bool:
        while session.attempts < self.max_attempts:
            session.attempts += 1
            session.username = self.prompter.ask("MySQL username", default=session.username) or "root"
            session.password = self.prompter.secret("MySQL password")
            if self._check(session):
                return True
            self.console.print(
                f"[red]Login failed (attempt {session.attempts}/{self.max_attempts}).[/red]"
            )
            self.logger.warning("Login failed for %s", session.username)
        return False

    def authenticate(self, installation: MySQLInstallation) -> MySQLSession:
        session = MySQLSession(installation=installation)
        if self._login_loop(session):
            return session

        if self.prompter.confirm("Reset the root password now?", default=False):
            session.username = "root"
            session.password = self.password_reset_service.reset(installation)
            session.attempts = 0
            if self._check(session) or self._login_loop(session):
                return session

        raise ProvisionError(f"Unable to log in to MySQL after {self.max_attempts} attempts.")

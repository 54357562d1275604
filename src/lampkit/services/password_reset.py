"""Root password reset through an init-file bootstrap of mysqld."""

import os
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

from lampkit.constants import MYSQL_RESET_WAIT_SECONDS
from lampkit.errors import ProvisionError
from lampkit.models import MySQLInstallation
from lampkit.services.credentials import generate_password
from lampkit.services.validation import sql_string

BOOTSTRAP_STOP_TIMEOUT_SECONDS = 30


def render_init_file(new_password: str) -> str:
    return (
        f"ALTER USER 'root'@'localhost' IDENTIFIED BY {sql_string(new_password)};\n"
        "FLUSH PRIVILEGES;\n"
    )


def bootstrap_command(installation: MySQLInstallation, init_file: str) -> List[str]:
    cmd = [str(installation.server)]
    # mysqld only honours --defaults-file as its first argument
    if installation.defaults_file:
        cmd.append(f"--defaults-file={Path(installation.defaults_file).as_posix()}")
    cmd.extend([f"--init-file={Path(init_file).as_posix()}", "--skip-networking", "--console"])
    return cmd


class PasswordResetService:
    """Stops the service, boots mysqld once with an init file and restarts the service."""

    def __init__(
        self,
        logger,
        console,
        prompter,
        service_controller,
        popen: Callable = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        wait_seconds: float = MYSQL_RESET_WAIT_SECONDS,
        temp_dir: Optional[str] = None,
    ):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.service_controller = service_controller
        self.popen = popen
        self.sleep = sleep
        self.wait_seconds = wait_seconds
        self.temp_dir = temp_dir

    def write_init_file(self, new_password: str) -> str:
        fd, path = tempfile.mkstemp(prefix="mysql-init-", suffix=".sql", dir=self.temp_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
            file_obj.write(render_init_file(new_password))
        return path

    def _remove_init_file(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            self.logger.warning("Could not remove init file %s: %s", path, exc)
            self.console.print(f"[yellow]Warning: delete {path} manually, it contains the new password.[/yellow]")

    def _start_bootstrap(self, installation: MySQLInstallation, init_file: str):
        cmd = bootstrap_command(installation, init_file)
        self.logger.debug("Executing: %s", " ".join(cmd))
        try:
            return self.popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as exc:
            raise ProvisionError(f"Failed to start {installation.server}: {exc}") from exc

    def _terminate(self, process):
        process.terminate()
        try:
            process.wait(timeout=BOOTSTRAP_STOP_TIMEOUT_SECONDS)
        except subprocess.TimeoutExpired:
            self.logger.warning("mysqld did not exit after terminate; killing it.")
            process.kill()
            process.wait()

    def reset(self, installation: MySQLInstallation, new_password: Optional[str] = None) -> str:
        """Sets a new root@localhost password and returns it."""
        if new_password is None:
            new_password = self.prompter.ask("New root password", default=generate_password())
        if not new_password:
            raise ProvisionError("The new root password must not be empty.")

        service_name = self.service_controller.find_service()
        if not service_name:
            self.logger.warning("No MySQL Windows service found; assuming the server is stopped.")

        self.console.print("[blue]Resetting the MySQL root password...[/blue]")
        init_file = None
        process = None
        try:
            if service_name and not self.service_controller.stop(service_name):
                raise ProvisionError(f"Could not stop the {service_name} service.")

            init_file = self.write_init_file(new_password)
            process = self._start_bootstrap(installation, init_file)
            self.sleep(self.wait_seconds)
        finally:
            if process is not None:
                self._terminate(process)
            if init_file is not None:
                self._remove_init_file(init_file)
            if service_name and not self.service_controller.start(service_name):
                self.logger.warning("Could not start the %s service after the reset.", service_name)

        self.console.print("[green]✓ Root password reset.[/green]")
        self.console.print(f"[bold]New root password:[/bold] {new_password}")
        return new_password

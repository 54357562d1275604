import os
import re
import subprocess
import sys

import pytest

from lampkit.errors import ProvisionError
from lampkit.models import GeneratedSecrets, SystemPaths
from lampkit.services.database import DatabaseService
from lampkit.services.filesystem import FileSystemService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class ScriptedPrompter:
    def __init__(self, secrets=()):
        self.secrets = list(secrets)

    def secret(self, _text):
        return self.secrets.pop(0)


class FakeMySQL:
    """A root account whose password changes once ALTER USER succeeds.

    Logins are checked against the current password, either from MYSQL_PWD
    or from the ``password=`` line of a ``--defaults-file``.
    """

    def __init__(self, root_password=None):
        self.root_password = root_password
        self.calls = []

    @staticmethod
    def _defaults_file_password(cmd):
        path = cmd[1].split("=", 1)[1]
        with open(path, encoding="utf-8") as file_obj:
            for line in file_obj:
                if line.startswith("password="):
                    return line.strip().split("=", 1)[1]
        return None

    def __call__(self, cmd, check=True, capture_output=False, env=None, **_kwargs):
        password = (env or {}).get("MYSQL_PWD")
        self.calls.append((cmd, password))
        if cmd[0] != "mysql":
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        if cmd[1].startswith("--defaults-file="):
            password = self._defaults_file_password(cmd)
        if password != self.root_password:
            if check:
                raise ProvisionError(f"Command failed (1): {' '.join(cmd)}")
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Access denied")

        match = re.search(r"ALTER USER 'root'@'localhost' .* BY '([^']*)'", cmd[-1])
        if match:
            self.root_password = match.group(1)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


SECRETS = GeneratedSecrets(
    db_name="wp1700000000",
    db_user="wp1700000000",
    db_password="abc123def456",
    mysql_root_password="0123456789ab",
)


def _service(tmp_path, run_cmd, prompter=None):
    return DatabaseService(
        logger=DummyLogger(),
        console=DummyConsole(),
        run_cmd=run_cmd,
        prompter=prompter or ScriptedPrompter(),
        filesystem_service=FileSystemService(logger=DummyLogger(), console=DummyConsole()),
        paths=SystemPaths(mysql_client_config=str(tmp_path / ".my.cnf")),
    )


def test_rotate_root_password_without_existing_password_skips_prompt(tmp_path):
    mysql = FakeMySQL(root_password=None)
    prompter = ScriptedPrompter()

    _service(tmp_path, mysql, prompter).rotate_root_password("n3w")

    statements = [cmd[-1] for cmd, _password in mysql.calls]
    assert statements == [
        "SELECT 1",
        "ALTER USER 'root'@'localhost' IDENTIFIED WITH mysql_native_password BY 'n3w'; FLUSH PRIVILEGES;",
    ]
    assert mysql.root_password == "n3w"


def test_rotate_root_password_uses_verified_current_password(tmp_path):
    mysql = FakeMySQL(root_password="old")

    _service(tmp_path, mysql, ScriptedPrompter(secrets=["old"])).rotate_root_password("n3w")

    alter_cmd, alter_password = mysql.calls[-1]
    assert alter_password == "old"
    assert "old" not in alter_cmd
    assert alter_cmd[-1].endswith("FLUSH PRIVILEGES;")
    assert mysql.root_password == "n3w"


def test_rotate_root_password_rejects_wrong_current_password(tmp_path):
    mysql = FakeMySQL(root_password="old")

    with pytest.raises(ProvisionError, match="Invalid MySQL root password"):
        _service(tmp_path, mysql, ScriptedPrompter(secrets=["wrong"])).rotate_root_password("n3w")

    assert all("ALTER USER" not in cmd[-1] for cmd, _password in mysql.calls)


def test_configure_writes_private_client_config_and_application_grants(tmp_path):
    mysql = FakeMySQL()
    service = _service(tmp_path, mysql)

    service.configure(SECRETS)

    client_config = tmp_path / ".my.cnf"
    assert "password=0123456789ab" in client_config.read_text(encoding="utf-8")
    if sys.platform != "win32":
        assert oct(os.stat(client_config).st_mode & 0o777) == "0o600"

    client_statements = [cmd[-1] for cmd, _password in mysql.calls if cmd[1].startswith("--defaults-file")]
    assert client_statements == DatabaseService.application_statements(SECRETS, "'wp1700000000'@'localhost'")
    assert client_statements[0] == "CREATE DATABASE `wp1700000000`;"
    assert mysql.calls[0][0] == ["systemctl", "enable", "mysql"]

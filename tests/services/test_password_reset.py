import subprocess
from pathlib import Path

import pytest

from lampkit.errors import ProvisionError
from lampkit.models import MySQLInstallation
from lampkit.services.password_reset import PasswordResetService, bootstrap_command, render_init_file


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def __init__(self):
        self.lines = []

    def print(self, *args, **_kwargs):
        self.lines.append(" ".join(str(arg) for arg in args))


class ScriptedPrompter:
    def __init__(self, answers=()):
        self.answers = list(answers)

    def ask(self, _text, default=""):
        return self.answers.pop(0) if self.answers else default


class FakeServiceController:
    def __init__(self, name="MySQL80", stop_ok=True):
        self.name = name
        self.stop_ok = stop_ok
        self.events = []

    def find_service(self):
        return self.name

    def stop(self, name):
        self.events.append(("stop", name))
        return self.stop_ok

    def start(self, name):
        self.events.append(("start", name))
        return True


class FakeProcess:
    def __init__(self, hang=False):
        self.hang = hang
        self.terminated = False
        self.killed = False

    def terminate(self):
        self.terminated = True

    def wait(self, timeout=None):
        if self.hang and not self.killed:
            raise subprocess.TimeoutExpired("mysqld", timeout)
        return 0

    def kill(self):
        self.killed = True


class FakePopen:
    def __init__(self, process=None, error=None):
        self.process = process or FakeProcess()
        self.error = error
        self.commands = []
        self.init_contents = []

    def __call__(self, cmd, **_kwargs):
        self.commands.append(cmd)
        init_arg = next(arg for arg in cmd if arg.startswith("--init-file="))
        self.init_contents.append(Path(init_arg.split("=", 1)[1]).read_text(encoding="utf-8"))
        if self.error:
            raise self.error
        return self.process


def _installation(defaults_file=None):
    return MySQLInstallation(
        label="MySQL Server 8.0.36",
        bin_dir=Path("/opt/mysql/bin"),
        client=Path("/opt/mysql/bin/mysql"),
        dump=Path("/opt/mysql/bin/mysqldump"),
        server=Path("/opt/mysql/bin/mysqld"),
        version="8.0.36",
        defaults_file=defaults_file,
    )


def _service(tmp_path, popen, controller=None, prompter=None, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return PasswordResetService(
        logger=DummyLogger(),
        console=DummyConsole(),
        prompter=prompter or ScriptedPrompter(),
        service_controller=controller or FakeServiceController(),
        popen=popen,
        sleep=sleeps.append,
        wait_seconds=10.0,
        temp_dir=str(tmp_path),
    )


def test_render_init_file_escapes_password():
    assert render_init_file("it's") == (
        "ALTER USER 'root'@'localhost' IDENTIFIED BY 'it''s';\nFLUSH PRIVILEGES;\n"
    )


def test_bootstrap_command_puts_defaults_file_first():
    cmd = bootstrap_command(_installation(Path("/opt/mysql/my.ini")), "/tmp/init.sql")

    assert cmd == [
        "/opt/mysql/bin/mysqld",
        "--defaults-file=/opt/mysql/my.ini",
        "--init-file=/tmp/init.sql",
        "--skip-networking",
        "--console",
    ]


def test_reset_runs_bootstrap_and_removes_init_file(tmp_path):
    popen = FakePopen()
    controller = FakeServiceController()
    sleeps = []
    service = _service(tmp_path, popen, controller=controller, sleeps=sleeps)

    new_password = service.reset(_installation(), new_password="N3w-pass")

    assert new_password == "N3w-pass"
    assert "IDENTIFIED BY 'N3w-pass'" in popen.init_contents[0]
    assert popen.commands[0][-2:] == ["--skip-networking", "--console"]
    assert popen.process.terminated is True
    assert sleeps == [10.0]
    assert controller.events == [("stop", "MySQL80"), ("start", "MySQL80")]
    assert list(tmp_path.iterdir()) == []
    assert any("N3w-pass" in line for line in service.console.lines)


def test_reset_cleans_up_when_mysqld_cannot_start(tmp_path):
    controller = FakeServiceController()
    service = _service(tmp_path, FakePopen(error=OSError("access denied")), controller=controller)

    with pytest.raises(ProvisionError, match="Failed to start"):
        service.reset(_installation(), new_password="N3w-pass")

    assert list(tmp_path.iterdir()) == []
    assert controller.events[-1] == ("start", "MySQL80")


def test_reset_aborts_before_writing_when_service_will_not_stop(tmp_path):
    popen = FakePopen()
    controller = FakeServiceController(stop_ok=False)

    with pytest.raises(ProvisionError, match="Could not stop"):
        _service(tmp_path, popen, controller=controller).reset(_installation(), new_password="N3w-pass")

    assert popen.commands == []
    assert list(tmp_path.iterdir()) == []
    assert controller.events[-1] == ("start", "MySQL80")


def test_reset_kills_bootstrap_that_ignores_terminate(tmp_path):
    process = FakeProcess(hang=True)

    _service(tmp_path, FakePopen(process=process)).reset(_installation(), new_password="N3w-pass")

    assert process.terminated is True
    assert process.killed is True


def test_reset_defaults_to_generated_password(tmp_path):
    new_password = _service(tmp_path, FakePopen()).reset(_installation())

    assert len(new_password) == 12

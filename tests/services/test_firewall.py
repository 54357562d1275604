import subprocess

from lampkit.models import InstallConfig
from lampkit.services.firewall import FirewallService


class DummyLogger:
    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def test_rules_cover_enabled_ports():
    config = InstallConfig(
        http_port=8080,
        https_port=8443,
        ssh_port=2222,
        enable_https=True,
        additional_ports=(25, 3306),
    )

    assert FirewallService.rules(config) == [
        ["ufw", "allow", "2222/tcp", "comment", "SSH"],
        ["ufw", "allow", "8080/tcp", "comment", "WordPress HTTP"],
        ["ufw", "allow", "8443/tcp", "comment", "WordPress HTTPS"],
        ["ufw", "allow", "25/tcp", "comment", "Custom port"],
        ["ufw", "allow", "3306/tcp", "comment", "Custom port"],
    ]


def test_rules_skip_https_when_disabled():
    rules = FirewallService.rules(InstallConfig(enable_https=False, https_port=8443))

    assert all("8443/tcp" not in rule for rule in rules)


def test_configure_resets_before_enabling():
    calls = []

    def run_cmd(cmd, check=True, capture_output=False, **_kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    FirewallService(DummyLogger(), DummyConsole(), run_cmd).configure(InstallConfig())

    assert calls[0] == ["ufw", "--force", "reset"]
    assert calls[1:3] == [["ufw", "default", "deny", "incoming"], ["ufw", "default", "allow", "outgoing"]]
    assert calls[-1] == ["ufw", "--force", "enable"]

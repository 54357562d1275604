import os
import sys
from datetime import datetime

import pytest

from lampkit.constants import SSL_LETSENCRYPT
from lampkit.models import GeneratedSecrets, InstallConfig
from lampkit.services.credentials import generate_password, generate_secrets
from lampkit.services.report import CredentialReportWriter, secure_url


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


SECRETS = GeneratedSecrets(
    db_name="wp1700000000",
    db_user="wp1700000000",
    db_password="abc123def456",
    mysql_root_password="0123456789ab",
)


def test_render_includes_https_and_firewall_details(tmp_path):
    writer = CredentialReportWriter(DummyLogger(), DummyConsole(), str(tmp_path / "wp_credentials.log"))
    config = InstallConfig(
        http_port=8080,
        https_port=8443,
        enable_https=True,
        ssl_type=SSL_LETSENCRYPT,
        ssl_domain="example.com",
        enable_firewall=True,
        additional_ports=(25, 587),
    )

    report = writer.render(config, SECRETS, "10.0.0.5", installed_at=datetime(2024, 1, 2, 3, 4, 5))

    assert "Installation Date: Tue Jan 02 03:04:05 2024" in report
    assert "Database Password: abc123def456" in report
    assert "WordPress Admin URL: http://10.0.0.5:8080/wp-admin/" in report
    assert "- Secure URL: https://example.com:8443/" in report
    assert "25,587 (Additional)" in report


def test_render_without_https_reports_disabled_firewall(tmp_path):
    writer = CredentialReportWriter(DummyLogger(), DummyConsole(), str(tmp_path / "wp_credentials.log"))

    report = writer.render(InstallConfig(), SECRETS, "10.0.0.5")

    assert "Secure URL" not in report
    assert "- Firewall: Disabled" in report


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_write_creates_root_only_file(tmp_path):
    report_path = tmp_path / "root" / "wp_credentials.log"
    writer = CredentialReportWriter(DummyLogger(), DummyConsole(), str(report_path))

    written = writer.write(InstallConfig(), SECRETS, "10.0.0.5")

    assert written == str(report_path)
    assert oct(os.stat(report_path).st_mode & 0o777) == "0o600"


def test_secure_url_falls_back_to_server_ip():
    assert secure_url(InstallConfig(https_port=443), "10.0.0.5") == "https://10.0.0.5:443/"


def test_generated_secrets_share_name_and_use_distinct_passwords():
    secrets = generate_secrets(now=1700000000.25)

    assert secrets.db_name == "wp1700000000"
    assert secrets.db_user == secrets.db_name
    assert len(secrets.db_password) == 12
    assert int(secrets.db_password, 16) >= 0
    assert secrets.db_password != secrets.mysql_root_password


def test_generate_password_length():
    assert len(generate_password(16)) == 16

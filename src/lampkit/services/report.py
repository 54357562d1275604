"""Credential report written at the end of an installation."""

import os
from datetime import datetime
from typing import List, Optional

from lampkit.constants import PRIVATE_FILE_MODE
from lampkit.models import GeneratedSecrets, InstallConfig

SEPARATOR = "=" * 50


def secure_url(config: InstallConfig, server_ip: str) -> str:
    host = config.ssl_domain or server_ip
    return f"https://{host}:{config.https_port}/"


class CredentialReportWriter:
    """Writes generated secrets and effective settings to a root-only file."""

    def __init__(self, logger, console, report_path: str):
        self.logger = logger
        self.console = console
        self.report_path = report_path

    def render(
        self,
        config: InstallConfig,
        secrets: GeneratedSecrets,
        server_ip: str,
        installed_at: Optional[datetime] = None,
    ) -> str:
        installed_at = installed_at or datetime.now()
        lines: List[str] = [
            SEPARATOR,
            "    WordPress Installation Credentials",
            SEPARATOR,
            f"Installation Date: {installed_at.strftime('%a %b %d %H:%M:%S %Y')}",
            f"Server IP: {server_ip}",
            "",
            f"Database Name: {secrets.db_name}",
            f"Database User: {secrets.db_user}",
            f"Database Password: {secrets.db_password}",
            f"MySQL Root Password: {secrets.mysql_root_password}",
            "",
            f"WordPress URL: http://{server_ip}:{config.http_port}/",
            f"WordPress Admin URL: http://{server_ip}:{config.http_port}/wp-admin/",
            "",
            "Server Configuration:",
            f"- HTTP Port: {config.http_port}",
        ]

        if config.enable_https:
            lines.append(f"- HTTPS Enabled on port: {config.https_port}")
            lines.append(f"- SSL Type: {config.ssl_type}")
            if config.ssl_domain:
                lines.append(f"- Domain: {config.ssl_domain}")
            lines.append(f"- Secure URL: {secure_url(config, server_ip)}")

        if config.enable_firewall:
            lines.append("- Firewall: Enabled")
            lines.append(f"- Open ports: {config.ssh_port} (SSH), {config.http_port} (HTTP)")
            if config.enable_https:
                lines.append(f"               {config.https_port} (HTTPS)")
            if config.additional_ports:
                ports = ",".join(str(port) for port in config.additional_ports)
                lines.append(f"               {ports} (Additional)")
        else:
            lines.append("- Firewall: Disabled")

        lines.append(SEPARATOR)
        return "\n".join(lines) + "\n"

    def write(self, config: InstallConfig, secrets: GeneratedSecrets, server_ip: str) -> str:
        content = self.render(config, secrets, server_ip)
        os.makedirs(os.path.dirname(self.report_path) or ".", exist_ok=True)

        fd = os.open(self.report_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
            file_obj.write(content)
        os.chmod(self.report_path, PRIVATE_FILE_MODE)

        self.console.print(f"[green]✓ Credentials saved to {self.report_path}[/green]")
        self.logger.info("Credentials saved to %s", self.report_path)
        return self.report_path

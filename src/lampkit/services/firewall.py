"""ufw firewall configuration."""

from typing import Callable, List

from lampkit.models import InstallConfig


class FirewallService:
    def __init__(self, logger, console, run_cmd: Callable):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd

    @staticmethod
    def rules(config: InstallConfig) -> List[List[str]]:
        rules = [
            ["ufw", "allow", f"{config.ssh_port}/tcp", "comment", "SSH"],
            ["ufw", "allow", f"{config.http_port}/tcp", "comment", "WordPress HTTP"],
        ]
        if config.enable_https:
            rules.append(["ufw", "allow", f"{config.https_port}/tcp", "comment", "WordPress HTTPS"])
        for port in config.additional_ports:
            rules.append(["ufw", "allow", f"{port}/tcp", "comment", "Custom port"])
        return rules

    def configure(self, config: InstallConfig):
        self.console.print("[yellow]➜ Configuring firewall...[/yellow]")
        self.run_cmd(["ufw", "--force", "reset"], check=True, capture_output=True)
        self.run_cmd(["ufw", "default", "deny", "incoming"], check=True, capture_output=True)
        self.run_cmd(["ufw", "default", "allow", "outgoing"], check=True, capture_output=True)

        for rule in self.rules(config):
            self.run_cmd(rule, check=True, capture_output=True)

        self.run_cmd(["ufw", "--force", "enable"], check=True, capture_output=True)
        self.console.print("[green]✓ Firewall configured and enabled[/green]")

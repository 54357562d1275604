"""Package installation through apt."""

from typing import Callable, List, Optional

from lampkit.constants import PHP_PACKAGES, UTILITY_PACKAGES
from lampkit.models import InstallConfig


class PackageService:
    """Installs the LAMP stack and the extras needed by the chosen options."""

    APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

    def __init__(self, logger, console, run_cmd: Callable):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd

    def apt(self, *args: str):
        self.run_cmd(["apt", "-y", *args], check=True, env=self.APT_ENV)

    def install(self, packages: List[str]):
        if packages:
            self.apt("install", *packages)

    def install_stack(
        self,
        config: InstallConfig,
        ssl_packages: List[str],
        pip_packages: Optional[List[str]] = None,
    ):
        self.console.print("[yellow]➜ Updating system packages...[/yellow]")
        self.apt("update")
        self.apt("upgrade")

        self.console.print("[yellow]➜ Installing Apache web server...[/yellow]")
        self.install(["apache2"])
        self.console.print("[yellow]➜ Installing MySQL database server...[/yellow]")
        self.install(["mysql-server"])
        self.console.print("[yellow]➜ Installing PHP and required extensions...[/yellow]")
        self.install(PHP_PACKAGES)

        if config.enable_https:
            self.console.print("[yellow]➜ Installing SSL packages...[/yellow]")
            self.install(["openssl"])
            self.install(ssl_packages)
            for package in pip_packages or []:
                self.run_cmd(["pip3", "install", package], check=True)

        if config.enable_firewall:
            self.console.print("[yellow]➜ Installing firewall package...[/yellow]")
            self.install(["ufw"])

        self.install(UTILITY_PACKAGES)
        self.console.print("[green]✓ All packages installed successfully[/green]")

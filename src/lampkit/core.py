import logging
import os
import socket
from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional

import requests
from rich.console import Console

from .constants import SSL_CLOUDFLARE
from .errors import CertificateIssueError, ProvisionError
from .errors_catalog import actionable_error
from .models import GeneratedSecrets, InstallConfig, SystemPaths
from .services.apache import ApacheService
from .services.archive import ArchiveService
from .services.certificates import CertificateService
from .services.collector import ConfigurationCollector
from .services.command_runner import CommandRunner
from .services.credentials import generate_secrets
from .services.database import DatabaseService
from .services.download import DownloadService
from .services.filesystem import FileSystemService
from .services.firewall import FirewallService
from .services.manifest import ManifestService
from .services.network import NetworkService
from .services.packages import PackageService
from .services.prompts import Prompter
from .services.report import CredentialReportWriter, secure_url
from .services.ssl_strategies import SslStrategy, build_strategy
from .services.wordpress import WordPressService

console = Console()
logger = logging.getLogger("lampkit")


class WordPressInstaller:
    """Provisions Apache, MySQL, PHP and WordPress on a Debian-family host."""

    def __init__(
        self,
        paths: Optional[SystemPaths] = None,
        defaults: Optional[Dict[str, Any]] = None,
        prompter=None,
        command_runner=None,
        secrets: Optional[GeneratedSecrets] = None,
        require_root: bool = True,
        requests_module=requests,
        resolver=socket.gethostbyname,
    ):
        self.paths = paths or SystemPaths()
        self.defaults = defaults or {}
        self.require_root = require_root
        self.secrets = secrets or generate_secrets()
        self.config: Optional[InstallConfig] = None
        self.current_step_name: Optional[str] = None

        self.prompter = prompter or Prompter(console)
        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.manifest_service = ManifestService(manifest_file=self.paths.manifest_file, logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.archive_service = ArchiveService()
        self.download_service = DownloadService(
            logger=logger,
            console=console,
            requests_module=requests_module,
        )
        self.network_service = NetworkService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            resolver=resolver,
        )
        self.certificate_service = CertificateService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            filesystem_service=self.filesystem_service,
        )
        self.collector = ConfigurationCollector(
            logger=logger,
            console=console,
            prompter=self.prompter,
            network_service=self.network_service,
            certificate_service=self.certificate_service,
            defaults=self.defaults,
        )
        self.package_service = PackageService(logger=logger, console=console, run_cmd=self._run_cmd)
        self.apache_service = ApacheService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            filesystem_service=self.filesystem_service,
            paths=self.paths,
        )
        self.database_service = DatabaseService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            prompter=self.prompter,
            filesystem_service=self.filesystem_service,
            paths=self.paths,
        )
        self.wordpress_service = WordPressService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            filesystem_service=self.filesystem_service,
            archive_service=self.archive_service,
            download_service=self.download_service,
            paths=self.paths,
        )
        self.firewall_service = FirewallService(logger=logger, console=console, run_cmd=self._run_cmd)
        self.report_writer = CredentialReportWriter(
            logger=logger,
            console=console,
            report_path=self.paths.credentials_file,
        )

    def _run_cmd(self, cmd: List[str], check: bool = True, capture_output: bool = False, **kwargs):
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, **kwargs)

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.manifest_service.step_started(name)
        self.current_step_name = name

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            self.manifest_service.step_finished(name, "failed", error=str(exc))
            raise

        self.manifest_service.step_finished(name, "success")
        self.current_step_name = None
        return result

    def _ensure_root(self):
        if self.require_root and hasattr(os, "geteuid") and os.geteuid() != 0:
            raise ProvisionError(actionable_error("not_root"))

    def _strategy(self, ssl_type: Optional[str]) -> SslStrategy:
        return build_strategy(
            ssl_type,
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            paths=self.paths,
            apache_service=self.apache_service,
            certificate_service=self.certificate_service,
            network_service=self.network_service,
            filesystem_service=self.filesystem_service,
        )

    def _public_settings(self) -> Dict[str, Any]:
        settings = asdict(self.config)
        settings.pop("cloudflare_api_key", None)
        settings["additional_ports"] = list(self.config.additional_ports)
        return settings

    def install_packages(self):
        config = self.config
        ssl_packages: List[str] = []
        pip_packages: List[str] = []
        if config.enable_https:
            ssl_packages = self._strategy(config.ssl_type).packages_for(config)
            if config.ssl_type == SSL_CLOUDFLARE and config.has_cloudflare_credentials:
                pip_packages.append("cloudflare")
        self.package_service.install_stack(config, ssl_packages, pip_packages)

    def configure_web_server(self):
        config = self.config
        apache = self.apache_service
        console.print("[yellow]➜ Configuring Apache web server...[/yellow]")

        apache.remove_default_index()
        apache.enable_modules("rewrite")
        apache.configure_http_port(config.http_port)
        apache.allow_htaccess_overrides()

        if config.enable_https and config.ssl_domain:
            console.print(f"[yellow]➜ Creating virtual host for {config.ssl_domain}...[/yellow]")
            apache.write_site(config.ssl_domain, apache.render_http_site(config.ssl_domain, config.http_port))
            apache.enable_site(config.ssl_domain)
            apache.disable_site("000-default")

        apache.service("enable")
        apache.service("restart")
        console.print("[green]✓ Apache configured successfully[/green]")

    def configure_https(self):
        console.print("[yellow]➜ Configuring HTTPS...[/yellow]")
        self.apache_service.ensure_listen(self.config.https_port)

        strategy = self._strategy(self.config.ssl_type)
        try:
            vhost = strategy.configure(self.config)
        except CertificateIssueError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.warning("HTTPS disabled for the rest of the run: %s", exc)
            self.config = replace(self.config, enable_https=False)
            return None

        self.apache_service.service("restart")
        self.manifest_service.add_artifact("ssl_site", self.apache_service.site_path(vhost.site_name))
        return vhost

    def configure_database(self):
        self.database_service.configure(self.secrets)

    def install_application(self):
        self.wordpress_service.install()

    def configure_application(self):
        self.wordpress_service.configure(self.config, self.secrets)

    def configure_firewall(self):
        self.firewall_service.configure(self.config)

    def write_credentials(self) -> str:
        path = self.report_writer.write(self.config, self.secrets, self.network_service.primary_ip())
        self.manifest_service.add_artifact("credentials_file", path)
        return path

    def print_report(self):
        config = self.config
        server_ip = self.network_service.primary_ip()
        console.print("")
        console.print("[bold green]" + "=" * 52 + "[/bold green]")
        console.print("[bold green]      WordPress Installation Complete![/bold green]")
        console.print("[bold green]" + "=" * 52 + "[/bold green]")
        console.print(f"[blue]WordPress URL:[/blue] http://{server_ip}:{config.http_port}/")
        if config.enable_https:
            console.print(f"[blue]Secure URL:[/blue] {secure_url(config, server_ip)}")
        console.print(f"[blue]WordPress Admin:[/blue] http://{server_ip}:{config.http_port}/wp-admin/")
        console.print(f"[blue]Credentials:[/blue] Saved to {self.paths.credentials_file}")

    def run(self) -> int:
        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            self._ensure_root()
            logger.info("Starting WordPress installation...")
            self.manifest_service.start_run()

            self.config = self._run_step("configure", self.collector.collect)
            if self.config is None:
                manifest_status = "aborted"
                exit_code = 0
                return exit_code
            self.manifest_service.set_settings(self._public_settings())

            self._run_step("install_packages", self.install_packages)
            self._run_step("configure_web_server", self.configure_web_server)
            if self.config.enable_https:
                self._run_step("configure_https", self.configure_https)
            self._run_step("configure_database", self.configure_database)
            self._run_step("install_application", self.install_application)
            self._run_step("configure_application", self.configure_application)
            if self.config.enable_firewall:
                self._run_step("configure_firewall", self.configure_firewall)
            self._run_step("write_credentials", self.write_credentials)
            self.print_report()

            manifest_status = "success"
            exit_code = 0
            return exit_code

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            return exit_code
        except ProvisionError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            manifest_error = str(exc)
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_error = str(exc)
            return exit_code
        finally:
            if self.current_step_name:
                logger.warning(
                    "Installation stopped during step '%s'. Changes made by earlier steps were kept.",
                    self.current_step_name,
                )
            self.manifest_service.finalize(manifest_status, error=manifest_error)

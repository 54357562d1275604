"""Interactive collection of installer settings."""

from dataclasses import replace
from typing import Any, Dict, Optional

from rich.table import Table

from lampkit.constants import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    DEFAULT_SSH_PORT,
    SSL_CLOUDFLARE,
    SSL_CUSTOM,
    SSL_LETSENCRYPT,
    SSL_SELF_SIGNED,
)
from lampkit.errors import ProvisionError
from lampkit.models import InstallConfig
from lampkit.services.validation import is_valid_domain, parse_port, parse_port_list

SSL_MENU = (
    ("1", SSL_SELF_SIGNED, "Self-signed certificate (quick setup, browser warnings)"),
    ("2", SSL_CLOUDFLARE, "CloudFlare (using CloudFlare for SSL)"),
    ("3", SSL_LETSENCRYPT, "Let's Encrypt (free trusted certificate, needs domain)"),
    ("4", SSL_CUSTOM, "Custom SSL certificate (use existing certificate files)"),
)


class ConfigurationCollector:
    """Builds an InstallConfig from sequential operator prompts."""

    def __init__(
        self,
        logger,
        console,
        prompter,
        network_service,
        certificate_service,
        defaults: Optional[Dict[str, Any]] = None,
    ):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.network = network_service
        self.certificates = certificate_service
        self.defaults = defaults or {}

    def _default(self, key: str, fallback) -> str:
        value = self.defaults.get(key, fallback)
        return "" if value is None else str(value)

    def collect(self) -> Optional[InstallConfig]:
        """Returns the confirmed configuration, or None when the operator aborts."""
        self.console.print("[bold green]WordPress Auto-Installer Setup[/bold green]")
        self.console.print("Please provide the following configuration details:\n")

        config = InstallConfig(
            http_port=parse_port(
                self.prompter.ask(
                    "Which HTTP port would you like WordPress to run on",
                    default=self._default("http_port", DEFAULT_HTTP_PORT),
                )
            )
        )

        if self.prompter.confirm("Would you like to enable HTTPS?", default=False):
            https_port = parse_port(
                self.prompter.ask(
                    "Which HTTPS port would you like to use",
                    default=self._default("https_port", DEFAULT_HTTPS_PORT),
                )
            )
            config = replace(config, enable_https=True, https_port=https_port)
            try:
                config = self.collect_ssl_options(config)
            except ProvisionError as exc:
                self.console.print(f"[red]{exc}[/red]")
                self.console.print("[red]SSL configuration failed. Disabling HTTPS.[/red]")
                self.logger.warning("SSL configuration failed: %s", exc)
                config = replace(config, enable_https=False, ssl_type=None)

        if self.prompter.confirm("Would you like to enable and configure the firewall?", default=False):
            ssh_port = parse_port(
                self.prompter.ask(
                    "Which SSH port would you like to keep open",
                    default=self._default("ssh_port", DEFAULT_SSH_PORT),
                )
            )
            additional = parse_port_list(
                self.prompter.ask(
                    "Additional ports to open (comma-separated, e.g. 25,8080), empty for none",
                    default="",
                )
            )
            config = replace(config, enable_firewall=True, ssh_port=ssh_port, additional_ports=additional)

        self.print_summary(config)
        if not self.prompter.confirm("Proceed with installation using these settings?", default=True):
            self.console.print("Installation aborted. Please run the installer again to configure.")
            return None
        return config

    def collect_ssl_options(self, config: InstallConfig) -> InstallConfig:
        self.console.print("\n[blue]HTTPS Configuration:[/blue]")
        self.console.print("Please select your SSL configuration method:")
        for key, _ssl_type, label in SSL_MENU:
            self.console.print(f"{key}) {label}")

        choice = self.prompter.ask("Enter your choice (1-4)", default=None)
        ssl_type = next((ssl for key, ssl, _label in SSL_MENU if key == choice), None)
        if ssl_type is None:
            self.console.print("[red]Invalid choice. Using self-signed certificate[/red]")
            ssl_type = SSL_SELF_SIGNED

        config = replace(config, ssl_type=ssl_type)
        if ssl_type == SSL_CLOUDFLARE:
            return self._collect_cloudflare(config)
        if ssl_type == SSL_LETSENCRYPT:
            return self._collect_letsencrypt(config)
        if ssl_type == SSL_CUSTOM:
            return self._collect_custom(config)

        self.console.print("[blue]Self-signed certificate will be generated automatically[/blue]")
        return config

    def _ask_domain(self, ssl_label: str) -> str:
        domain = self.prompter.ask(
            "Enter your domain (e.g., example.com)",
            default=self._default("ssl_domain", ""),
        )
        if not domain:
            raise ProvisionError(f"Domain name is required for {ssl_label}")
        if not is_valid_domain(domain):
            raise ProvisionError(f"Invalid domain name: {domain}")
        return domain

    def _collect_cloudflare(self, config: InstallConfig) -> InstallConfig:
        self.console.print("\n[blue]CloudFlare configuration steps:[/blue]")
        self.console.print("1. You'll need a CloudFlare account with your domain added")
        self.console.print("2. Your DNS records should point to this server's IP")
        self.console.print("3. SSL/TLS encryption mode should be set to Full or Full (strict)")

        domain = self._ask_domain("CloudFlare setup")

        self.console.print("[blue]Optional: Enter CloudFlare API credentials for automatic setup[/blue]")
        cf_email = self.prompter.ask("Enter CloudFlare email address (optional)", default="")
        cf_key = ""
        if cf_email:
            cf_key = self.prompter.secret("Enter CloudFlare Global API Key (input will be hidden)")
        return replace(config, ssl_domain=domain, cloudflare_email=cf_email, cloudflare_api_key=cf_key)

    def _collect_letsencrypt(self, config: InstallConfig) -> InstallConfig:
        self.console.print("\n[blue]Let's Encrypt configuration steps:[/blue]")
        self.console.print("1. You'll need a valid domain name pointing to this server's IP")
        self.console.print("2. Port 80 must be open to the internet for verification")

        domain = self._ask_domain("Let's Encrypt")
        self.network.verify_domain_points_here(domain)

        email = self.prompter.ask(
            "Enter email address for Let's Encrypt notices",
            default=self._default("ssl_email", "") or f"admin@{domain}",
        )
        return replace(config, ssl_domain=domain, ssl_email=email)

    def _collect_custom(self, config: InstallConfig) -> InstallConfig:
        self.console.print("\n[blue]Custom SSL certificate configuration:[/blue]")
        self.console.print("You will need to provide paths to your existing certificate and key files.")

        cert_path = self.prompter.ask("Enter path to SSL certificate file (.crt/.pem)", default="")
        if not cert_path:
            raise ProvisionError("Certificate path is required")
        key_path = self.prompter.ask("Enter path to SSL private key file (.key)", default="")
        if not key_path:
            raise ProvisionError("Private key path is required")

        self.certificates.validate_pair(cert_path, key_path)

        domain = self.certificates.subject_common_name(cert_path)
        if domain:
            self.console.print(f"[blue]Domain from certificate: {domain}[/blue]")
        else:
            domain = self.prompter.ask(
                "Could not determine domain from certificate. Please enter domain name",
                default="",
            )
        return replace(config, custom_cert_path=cert_path, custom_key_path=key_path, ssl_domain=domain)

    def print_summary(self, config: InstallConfig):
        table = Table(title="Configuration Summary", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_row("WordPress HTTP port", str(config.http_port))
        if config.enable_https:
            table.add_row("HTTPS port", str(config.https_port))
            table.add_row("SSL type", config.ssl_type or SSL_SELF_SIGNED)
            if config.ssl_domain:
                table.add_row("Domain", config.ssl_domain)
        else:
            table.add_row("HTTPS", "Disabled")

        if config.enable_firewall:
            table.add_row("Firewall", "Enabled")
            table.add_row("SSH port", str(config.ssh_port))
            if config.additional_ports:
                table.add_row("Additional ports", ", ".join(str(p) for p in config.additional_ports))
        else:
            table.add_row("Firewall", "Disabled")
        self.console.print(table)

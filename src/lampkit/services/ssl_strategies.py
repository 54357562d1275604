"""SSL strategies producing the HTTPS virtual host for each certificate source."""

from typing import Dict, List, Type

from lampkit.constants import (
    CERTBOT_RENEW_SCHEDULE,
    CLOUDFLARE_IPV4_RANGES,
    CLOUDFLARE_IPV6_RANGES,
    SSL_CLOUDFLARE,
    SSL_CUSTOM,
    SSL_LETSENCRYPT,
    SSL_SELF_SIGNED,
)
from lampkit.errors import CertificateIssueError, ProvisionError
from lampkit.errors_catalog import actionable_error
from lampkit.models import InstallConfig, SystemPaths, VirtualHost


class SslStrategy:
    """Base class: validate the configuration, then produce and enable a TLS site."""

    ssl_type = ""
    packages: List[str] = []

    def __init__(
        self,
        logger,
        console,
        run_cmd,
        paths: SystemPaths,
        apache_service,
        certificate_service,
        network_service,
        filesystem_service,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.paths = paths
        self.apache = apache_service
        self.certificates = certificate_service
        self.network = network_service
        self.filesystem_service = filesystem_service

    def packages_for(self, config: InstallConfig) -> List[str]:
        return list(self.packages)

    def validate(self, config: InstallConfig):
        """Raises ProvisionError before anything is written when ``config`` is unusable."""

    def configure(self, config: InstallConfig) -> VirtualHost:
        raise NotImplementedError

    def _require_domain(self, config: InstallConfig):
        if not config.ssl_domain.strip():
            raise ProvisionError(actionable_error("domain_required", ssl_type=self.ssl_type))

    def _virtual_host(self, config: InstallConfig, site_name: str, cert_file: str, key_file: str, **kwargs):
        return VirtualHost(
            site_name=site_name,
            port=config.https_port,
            document_root=self.paths.install_dir,
            cert_file=cert_file,
            key_file=key_file,
            server_name=config.ssl_domain or None,
            **kwargs,
        )


class SelfSignedStrategy(SslStrategy):
    ssl_type = SSL_SELF_SIGNED

    def configure(self, config: InstallConfig) -> VirtualHost:
        self.console.print("[blue]Configuring self-signed SSL certificate...[/blue]")
        common_name = config.ssl_domain or self.network.primary_ip()
        self.certificates.generate_self_signed(
            self.paths.selfsigned_cert, self.paths.selfsigned_key, common_name
        )

        vhost = self._virtual_host(
            config, "default-ssl", self.paths.selfsigned_cert, self.paths.selfsigned_key
        )
        self.apache.write_ssl_site(vhost)

        self.console.print("[green]Self-signed SSL certificate configured[/green]")
        self.console.print(
            "[blue]Note: Browsers will show a warning about the self-signed certificate. "
            "This is normal.[/blue]"
        )
        return vhost


class CloudflareStrategy(SslStrategy):
    ssl_type = SSL_CLOUDFLARE
    packages = ["dnsutils"]

    def packages_for(self, config: InstallConfig) -> List[str]:
        packages = list(self.packages)
        if config.has_cloudflare_credentials:
            packages.append("python3-pip")
        return packages

    def validate(self, config: InstallConfig):
        self._require_domain(config)

    def render_trusted_proxies(self) -> str:
        lines = ["# CloudFlare IP Ranges", "# IPv4", "RemoteIPHeader CF-Connecting-IP"]
        lines.extend(f"RemoteIPTrustedProxy {cidr}" for cidr in CLOUDFLARE_IPV4_RANGES)
        lines.extend(["", "# IPv6"])
        lines.extend(f"RemoteIPTrustedProxy {cidr}" for cidr in CLOUDFLARE_IPV6_RANGES)
        return "\n".join(lines) + "\n"

    def _print_dashboard_steps(self, config: InstallConfig):
        if config.has_cloudflare_credentials:
            self.console.print(
                "[blue]CloudFlare API credentials were provided, but automatic CloudFlare "
                "setup is not performed. Complete the steps below manually.[/blue]"
            )
        self.console.print("[blue]Please follow these steps in your CloudFlare dashboard:[/blue]")
        self.console.print("1. Log in to your CloudFlare account")
        self.console.print(f"2. Select your domain: {config.ssl_domain}")
        self.console.print("3. Go to SSL/TLS section")
        self.console.print("4. Set SSL/TLS encryption mode to 'Full' or 'Full (strict)'")
        self.console.print(f"5. Ensure your DNS records point to this server: {self.network.primary_ip()}")

    def configure(self, config: InstallConfig) -> VirtualHost:
        self.validate(config)
        self.console.print("[blue]Configuring CloudFlare SSL...[/blue]")
        self._print_dashboard_steps(config)

        self.apache.enable_modules("ssl", "headers")
        self.certificates.generate_self_signed(
            self.paths.selfsigned_cert, self.paths.selfsigned_key, config.ssl_domain
        )
        vhost = self._virtual_host(
            config,
            f"{config.ssl_domain}-ssl",
            self.paths.selfsigned_cert,
            self.paths.selfsigned_key,
            extra_directives=('RequestHeader set X-Forwarded-Proto "https"',),
            follow_symlinks=True,
        )
        self.apache.write_ssl_site(vhost)

        self.console.print("[blue]Adding CloudFlare IP ranges to Apache configuration...[/blue]")
        self.apache.write_conf("cloudflare", self.render_trusted_proxies())
        self.apache.enable_modules("remoteip")
        self.apache.enable_conf("cloudflare")

        self.console.print("[green]CloudFlare origin SSL configured[/green]")
        self.console.print("[blue]Use the CloudFlare dashboard to complete the setup[/blue]")
        return vhost


class LetsEncryptStrategy(SslStrategy):
    ssl_type = SSL_LETSENCRYPT
    packages = ["certbot", "python3-certbot-apache"]

    def validate(self, config: InstallConfig):
        self._require_domain(config)

    def _request_certificate(self, config: InstallConfig):
        self.apache.service("stop")
        try:
            result = self.run_cmd(
                [
                    "certbot",
                    "certonly",
                    "--standalone",
                    "--non-interactive",
                    "--agree-tos",
                    "--email",
                    config.ssl_email or f"admin@{config.ssl_domain}",
                    "--domains",
                    config.ssl_domain,
                    "--preferred-challenges",
                    "http",
                ],
                check=False,
                capture_output=True,
            )
        finally:
            self.apache.service("start")

        if result.returncode != 0:
            raise CertificateIssueError(actionable_error("letsencrypt_failed", domain=config.ssl_domain))

    def configure(self, config: InstallConfig) -> VirtualHost:
        self.validate(config)
        self.console.print("[blue]Configuring Let's Encrypt SSL...[/blue]")
        self._request_certificate(config)

        vhost = self._virtual_host(
            config,
            f"{config.ssl_domain}-ssl",
            self.paths.letsencrypt_cert(config.ssl_domain),
            self.paths.letsencrypt_key(config.ssl_domain),
            follow_symlinks=True,
        )
        self.apache.write_ssl_site(vhost)

        self.console.print("[blue]Setting up certificate auto-renewal...[/blue]")
        self.filesystem_service.write_file(self.paths.certbot_cron, CERTBOT_RENEW_SCHEDULE + "\n", 0o644)

        self.console.print("[green]Let's Encrypt SSL configured successfully[/green]")
        return vhost


class CustomCertificateStrategy(SslStrategy):
    ssl_type = SSL_CUSTOM

    def validate(self, config: InstallConfig):
        if not config.custom_cert_path:
            raise ProvisionError("Certificate path is required")
        if not config.custom_key_path:
            raise ProvisionError("Private key path is required")
        self.certificates.validate_pair(config.custom_cert_path, config.custom_key_path)

    def configure(self, config: InstallConfig) -> VirtualHost:
        self.validate(config)
        self.console.print("[blue]Configuring custom SSL certificate...[/blue]")
        self.certificates.install_pair(
            config.custom_cert_path,
            config.custom_key_path,
            self.paths.custom_cert,
            self.paths.custom_key,
        )

        vhost = self._virtual_host(config, "custom-ssl", self.paths.custom_cert, self.paths.custom_key)
        self.apache.write_ssl_site(vhost)

        self.console.print("[green]Custom SSL certificate configured[/green]")
        return vhost


STRATEGIES: Dict[str, Type[SslStrategy]] = {
    SSL_SELF_SIGNED: SelfSignedStrategy,
    SSL_CLOUDFLARE: CloudflareStrategy,
    SSL_LETSENCRYPT: LetsEncryptStrategy,
    SSL_CUSTOM: CustomCertificateStrategy,
}


def build_strategy(ssl_type: str, **services) -> SslStrategy:
    strategy_cls = STRATEGIES.get(ssl_type or SSL_SELF_SIGNED, SelfSignedStrategy)
    return strategy_cls(**services)

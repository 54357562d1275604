"""Shared domain models for lampkit."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class InstallConfig:
    """Operator answers collected once per installer run."""

    http_port: int = 80
    https_port: int = 443
    ssh_port: int = 22
    enable_https: bool = False
    enable_firewall: bool = False
    additional_ports: Tuple[int, ...] = ()
    ssl_type: Optional[str] = None
    ssl_domain: str = ""
    ssl_email: str = ""
    cloudflare_email: str = ""
    cloudflare_api_key: str = ""
    custom_cert_path: str = ""
    custom_key_path: str = ""

    @property
    def has_cloudflare_credentials(self) -> bool:
        return bool(self.cloudflare_email and self.cloudflare_api_key)


@dataclass(frozen=True)
class GeneratedSecrets:
    db_name: str
    db_user: str
    db_password: str
    mysql_root_password: str


@dataclass(frozen=True)
class SystemPaths:
    """Fixed filesystem locations touched by the installer."""

    apache_dir: str = "/etc/apache2"
    install_dir: str = "/var/www/html"
    ssl_cert_dir: str = "/etc/ssl/certs"
    ssl_key_dir: str = "/etc/ssl/private"
    letsencrypt_live_dir: str = "/etc/letsencrypt/live"
    cron_dir: str = "/etc/cron.d"
    credentials_file: str = "/root/wp_credentials.log"
    mysql_client_config: str = "/root/.my.cnf"
    download_dir: str = "/tmp"
    manifest_file: str = "/var/log/lampkit/wordpress-run.json"

    @property
    def sites_available(self) -> str:
        return os.path.join(self.apache_dir, "sites-available")

    @property
    def conf_available(self) -> str:
        return os.path.join(self.apache_dir, "conf-available")

    @property
    def ports_conf(self) -> str:
        return os.path.join(self.apache_dir, "ports.conf")

    @property
    def apache_conf(self) -> str:
        return os.path.join(self.apache_dir, "apache2.conf")

    @property
    def default_site(self) -> str:
        return os.path.join(self.sites_available, "000-default.conf")

    @property
    def selfsigned_cert(self) -> str:
        return os.path.join(self.ssl_cert_dir, "apache-selfsigned.crt")

    @property
    def selfsigned_key(self) -> str:
        return os.path.join(self.ssl_key_dir, "apache-selfsigned.key")

    @property
    def custom_cert(self) -> str:
        return os.path.join(self.ssl_cert_dir, "custom-cert.pem")

    @property
    def custom_key(self) -> str:
        return os.path.join(self.ssl_key_dir, "custom-key.pem")

    @property
    def wordpress_archive(self) -> str:
        return os.path.join(self.download_dir, "latest.tar.gz")

    @property
    def certbot_cron(self) -> str:
        return os.path.join(self.cron_dir, "certbot-renew")

    def letsencrypt_cert(self, domain: str) -> str:
        return os.path.join(self.letsencrypt_live_dir, domain, "fullchain.pem")

    def letsencrypt_key(self, domain: str) -> str:
        return os.path.join(self.letsencrypt_live_dir, domain, "privkey.pem")


@dataclass(frozen=True)
class VirtualHost:
    """An Apache TLS site definition."""

    site_name: str
    port: int
    document_root: str
    cert_file: str
    key_file: str
    server_name: Optional[str] = None
    extra_directives: Tuple[str, ...] = ()
    follow_symlinks: bool = False

    @property
    def server_admin(self) -> str:
        return f"webmaster@{self.server_name}" if self.server_name else "webmaster@localhost"


@dataclass(frozen=True)
class MySQLInstallation:
    """A local MySQL/MariaDB installation with a working client."""

    label: str
    bin_dir: Path
    client: Path
    dump: Path
    server: Path
    version: str = ""
    defaults_file: Optional[Path] = None


@dataclass
class MySQLSession:
    installation: MySQLInstallation
    username: str = "root"
    password: str = ""
    attempts: int = 0
    logged_in: bool = False

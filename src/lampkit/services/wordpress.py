"""WordPress download, extraction and wp-config generation."""

import os
from typing import Callable, List

from lampkit.constants import (
    DIR_MODE,
    FILE_MODE,
    SSL_CLOUDFLARE,
    WEB_GROUP,
    WEB_USER,
    WORDPRESS_ARCHIVE_URL,
    WORDPRESS_SALT_URL,
    WORDPRESS_STOP_EDITING_MARKER,
)
from lampkit.errors import ProvisionError
from lampkit.models import GeneratedSecrets, InstallConfig, SystemPaths

SALT_PLACEHOLDER = "put your unique phrase here"
SALT_ANCHOR = "#@-"

HTACCESS = """# BEGIN WordPress
<IfModule mod_rewrite.c>
RewriteEngine On
RewriteBase /
RewriteRule ^index\\.php$ - [L]
RewriteCond %{REQUEST_FILENAME} !-f
RewriteCond %{REQUEST_FILENAME} !-d
RewriteRule . /index.php [L]
</IfModule>
# END WordPress
"""

CLOUDFLARE_HTACCESS = """
# BEGIN CloudFlare
<IfModule mod_rewrite.c>
    RewriteEngine On
    RewriteCond %{HTTP:CF-Visitor} '"scheme":"https"'
    RewriteRule ^(.*)$ https://%{HTTP_HOST}/$1 [L]
</IfModule>
# END CloudFlare
"""

CLOUDFLARE_HTTPS_SHIM = (
    "if (isset($_SERVER['HTTP_CF_VISITOR']) && "
    "strpos($_SERVER['HTTP_CF_VISITOR'], 'https') !== false) { $_SERVER['HTTPS'] = 'on'; }"
)


def site_url(config: InstallConfig) -> str:
    if config.https_port == 443:
        return f"https://{config.ssl_domain}"
    return f"https://{config.ssl_domain}:{config.https_port}"


def _insert_before_marker(lines: List[str], marker: str, new_lines: List[str]) -> List[str]:
    for index, line in enumerate(lines):
        if marker in line:
            return lines[:index] + new_lines + lines[index:]
    raise ProvisionError(f"Marker '{marker}' not found in wp-config.php")


def render_wp_config(
    sample: str,
    config: InstallConfig,
    secrets: GeneratedSecrets,
    salts: str,
) -> str:
    """Turns wp-config-sample.php into a configured wp-config.php."""
    text = (
        sample.replace("database_name_here", secrets.db_name)
        .replace("username_here", secrets.db_user)
        .replace("password_here", secrets.db_password)
    )

    defines = ["define('FS_METHOD', 'direct');"]
    if config.enable_https and config.ssl_domain:
        url = site_url(config)
        defines.append(f"define('WP_SITEURL', '{url}');")
        defines.append(f"define('WP_HOME', '{url}');")
        if config.ssl_type == SSL_CLOUDFLARE:
            defines.append(CLOUDFLARE_HTTPS_SHIM)
        else:
            defines.append("define('FORCE_SSL_ADMIN', true);")

    lines = [line for line in text.splitlines() if SALT_PLACEHOLDER not in line]
    lines = _insert_before_marker(lines, WORDPRESS_STOP_EDITING_MARKER, defines)

    for index, line in enumerate(lines):
        if SALT_ANCHOR in line:
            lines = lines[: index + 1] + salts.strip().splitlines() + lines[index + 1 :]
            break
    else:
        raise ProvisionError(f"Salt anchor '{SALT_ANCHOR}' not found in wp-config.php")

    return "\n".join(lines) + "\n"


class WordPressService:
    """Installs the WordPress application into the document root."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        filesystem_service,
        archive_service,
        download_service,
        paths: SystemPaths,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.filesystem_service = filesystem_service
        self.archive_service = archive_service
        self.download_service = download_service
        self.paths = paths

    def _chown_install_dir(self):
        self.run_cmd(
            ["chown", "-R", f"{WEB_USER}:{WEB_GROUP}", self.paths.install_dir],
            check=True,
        )

    def install(self):
        self.console.print("[yellow]➜ Downloading and installing WordPress...[/yellow]")
        archive = self.paths.wordpress_archive
        if os.path.exists(archive):
            self.console.print("WordPress is already downloaded")
        else:
            self.download_service.download_file(WORDPRESS_ARCHIVE_URL, archive, "Downloading WordPress...")

        self.filesystem_service.empty_dir(self.paths.install_dir)
        self.archive_service.safe_extract_tar(archive, self.paths.install_dir, strip_components=1)
        self._chown_install_dir()
        self.console.print("[green]✓ WordPress downloaded and extracted[/green]")

    def configure(self, config: InstallConfig, secrets: GeneratedSecrets):
        self.console.print("[yellow]➜ Configuring WordPress...[/yellow]")
        sample_path = os.path.join(self.paths.install_dir, "wp-config-sample.php")
        if not os.path.exists(sample_path):
            raise ProvisionError(f"wp-config-sample.php not found in {self.paths.install_dir}")

        self.console.print("[yellow]➜ Generating security keys...[/yellow]")
        salts = self.download_service.fetch_text(WORDPRESS_SALT_URL, "WordPress security keys")

        content = render_wp_config(self.filesystem_service.read_file(sample_path), config, secrets, salts)
        self.filesystem_service.write_file(os.path.join(self.paths.install_dir, "wp-config.php"), content)

        htaccess = HTACCESS
        if config.ssl_type == SSL_CLOUDFLARE:
            htaccess += CLOUDFLARE_HTACCESS
        self.filesystem_service.write_file(os.path.join(self.paths.install_dir, ".htaccess"), htaccess)

        self._chown_install_dir()
        self.filesystem_service.set_tree_permissions(
            self.paths.install_dir,
            dir_mode=DIR_MODE,
            file_mode=FILE_MODE,
        )
        self.console.print("[green]✓ WordPress installed and configured successfully[/green]")

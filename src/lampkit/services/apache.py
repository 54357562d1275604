"""Apache configuration service."""

import os
import re
from typing import Callable

from lampkit.models import SystemPaths, VirtualHost

_DIRECTORY_BLOCK = re.compile(r"(<Directory /var/www/>.*?</Directory>)", re.DOTALL)


class ApacheService:
    """Edits Apache configuration files and drives the a2* helpers."""

    SERVICE_NAME = "apache2"

    def __init__(self, logger, console, run_cmd: Callable, filesystem_service, paths: SystemPaths):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.filesystem_service = filesystem_service
        self.paths = paths

    def service(self, action: str):
        self.run_cmd(["systemctl", action, self.SERVICE_NAME], check=True)

    def enable_modules(self, *modules: str):
        for module in modules:
            self.run_cmd(["a2enmod", module], check=True, capture_output=True)

    def enable_site(self, site_name: str):
        self.run_cmd(["a2ensite", site_name], check=True, capture_output=True)

    def disable_site(self, site_name: str):
        self.run_cmd(["a2dissite", site_name], check=True, capture_output=True)

    def enable_conf(self, conf_name: str):
        self.run_cmd(["a2enconf", conf_name], check=True, capture_output=True)

    def site_path(self, site_name: str) -> str:
        return os.path.join(self.paths.sites_available, f"{site_name}.conf")

    def write_site(self, site_name: str, content: str) -> str:
        path = self.site_path(site_name)
        self.filesystem_service.write_file(path, content)
        return path

    def write_conf(self, conf_name: str, content: str) -> str:
        path = os.path.join(self.paths.conf_available, f"{conf_name}.conf")
        self.filesystem_service.write_file(path, content)
        return path

    def remove_default_index(self):
        self.filesystem_service.remove_file(os.path.join(self.paths.install_dir, "index.html"))

    def configure_http_port(self, port: int):
        if port == 80:
            return
        self.console.print(f"[blue]Configuring Apache to listen on port {port}...[/blue]")
        self._rewrite(
            self.paths.ports_conf,
            lambda text: re.sub(
                r"^([ \t]*)Listen 80[ \t]*$", rf"\g<1>Listen {port}", text, flags=re.MULTILINE
            ),
        )
        self._rewrite(self.paths.default_site, lambda text: text.replace("*:80>", f"*:{port}>"))

    def allow_htaccess_overrides(self):
        def _allow(text: str) -> str:
            return _DIRECTORY_BLOCK.sub(
                lambda match: match.group(1).replace("AllowOverride None", "AllowOverride All"),
                text,
            )

        self._rewrite(self.paths.apache_conf, _allow)

    def ensure_listen(self, port: int):
        """Makes ports.conf listen on ``port`` without duplicating directives."""
        if port == 443:
            return
        text = self._read_or_empty(self.paths.ports_conf)
        if re.search(rf"^[ \t]*Listen {port}[ \t]*$", text, flags=re.MULTILINE):
            return
        if re.search(r"^[ \t]*Listen 443[ \t]*$", text, flags=re.MULTILINE):
            text = re.sub(r"^([ \t]*)Listen 443[ \t]*$", rf"\g<1>Listen {port}", text, flags=re.MULTILINE)
        else:
            if text and not text.endswith("\n"):
                text += "\n"
            text += f"Listen {port}\n"
        self.filesystem_service.write_file(self.paths.ports_conf, text)

    def render_http_site(self, domain: str, port: int) -> str:
        root = self.paths.install_dir
        return f"""<VirtualHost *:{port}>
    ServerAdmin webmaster@{domain}
    ServerName {domain}
    DocumentRoot {root}

    ErrorLog ${{APACHE_LOG_DIR}}/error.log
    CustomLog ${{APACHE_LOG_DIR}}/access.log combined

    <Directory {root}>
        Options FollowSymLinks
        AllowOverride All
        Require all granted
    </Directory>
</VirtualHost>
"""

    @staticmethod
    def render_ssl_site(vhost: VirtualHost) -> str:
        server_name = f"ServerName {vhost.server_name}" if vhost.server_name else "# ServerName not specified"
        extra = ""
        if vhost.extra_directives:
            extra = "\n" + "\n".join(f"        {line}" for line in vhost.extra_directives) + "\n"
        options = "            Options FollowSymLinks\n" if vhost.follow_symlinks else ""
        return f"""<IfModule mod_ssl.c>
    <VirtualHost *:{vhost.port}>
        ServerAdmin {vhost.server_admin}
        {server_name}
        DocumentRoot {vhost.document_root}

        ErrorLog ${{APACHE_LOG_DIR}}/error-ssl.log
        CustomLog ${{APACHE_LOG_DIR}}/access-ssl.log combined

        SSLEngine on
        SSLCertificateFile {vhost.cert_file}
        SSLCertificateKeyFile {vhost.key_file}
{extra}
        <Directory {vhost.document_root}>
{options}            AllowOverride All
            Require all granted
        </Directory>
    </VirtualHost>
</IfModule>
"""

    def write_ssl_site(self, vhost: VirtualHost) -> str:
        path = self.write_site(vhost.site_name, self.render_ssl_site(vhost))
        self.enable_modules("ssl")
        self.enable_site(vhost.site_name)
        return path

    def _read_or_empty(self, path: str) -> str:
        if not os.path.exists(path):
            return ""
        return self.filesystem_service.read_file(path)

    def _rewrite(self, path: str, transform):
        if not os.path.exists(path):
            self.logger.warning("Apache file not found, skipping edit: %s", path)
            return
        original = self.filesystem_service.read_file(path)
        updated = transform(original)
        if updated != original:
            self.filesystem_service.write_file(path, updated)

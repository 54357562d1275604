"""Certificate generation and validation through openssl."""

import hashlib
import os
import re
import shutil
from typing import Callable, Optional

from lampkit.constants import FILE_MODE, PRIVATE_FILE_MODE
from lampkit.errors import ProvisionError
from lampkit.errors_catalog import actionable_error

_SUBJECT_CN = re.compile(r"CN\s*=\s*([^,/\s]+)")


class CertificateService:
    """Wraps the openssl calls used by the SSL strategies."""

    def __init__(self, logger, console, run_cmd: Callable, filesystem_service):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.filesystem_service = filesystem_service

    def generate_self_signed(self, cert_path: str, key_path: str, common_name: str):
        os.makedirs(os.path.dirname(key_path), exist_ok=True)
        os.makedirs(os.path.dirname(cert_path), exist_ok=True)
        self.run_cmd(
            [
                "openssl",
                "req",
                "-x509",
                "-nodes",
                "-days",
                "365",
                "-newkey",
                "rsa:2048",
                "-keyout",
                key_path,
                "-out",
                cert_path,
                "-subj",
                f"/C=US/ST=State/L=City/O=Organization/CN={common_name}",
            ],
            check=True,
            capture_output=True,
        )
        self.filesystem_service.set_permissions(key_path, PRIVATE_FILE_MODE)

    def validate_file(self, path: str, label: str):
        if not path or not os.path.isfile(path):
            raise ProvisionError(actionable_error("certificate_file_missing", label=label, path=path))
        if not os.access(path, os.R_OK):
            raise ProvisionError(actionable_error("certificate_file_unreadable", label=label, path=path))
        self.console.print(f"[green]{label} file is valid[/green]")

    def modulus_digest(self, kind: str, path: str) -> str:
        result = self.run_cmd(
            ["openssl", kind, "-noout", "-modulus", "-in", path],
            check=True,
            capture_output=True,
        )
        modulus = (result.stdout or "").strip()
        if not modulus:
            raise ProvisionError(f"openssl returned no modulus for {path}")
        return hashlib.sha256(modulus.encode("utf-8")).hexdigest()

    def validate_pair(self, cert_path: str, key_path: str):
        """Raises ProvisionError unless both files exist and share a modulus."""
        self.console.print("[blue]Validating SSL certificate files...[/blue]")
        self.validate_file(cert_path, "SSL certificate")
        self.validate_file(key_path, "SSL private key")

        self.console.print("[blue]Verifying certificate and key match...[/blue]")
        if self.modulus_digest("x509", cert_path) != self.modulus_digest("rsa", key_path):
            raise ProvisionError(actionable_error("certificate_key_mismatch"))
        self.console.print("[green]Certificate and key match[/green]")

    def subject_common_name(self, cert_path: str) -> Optional[str]:
        result = self.run_cmd(
            ["openssl", "x509", "-noout", "-subject", "-in", cert_path],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        match = _SUBJECT_CN.search(result.stdout or "")
        return match.group(1) if match else None

    def install_pair(self, cert_src: str, key_src: str, cert_dest: str, key_dest: str):
        os.makedirs(os.path.dirname(cert_dest), exist_ok=True)
        os.makedirs(os.path.dirname(key_dest), exist_ok=True)
        shutil.copyfile(cert_src, cert_dest)
        shutil.copyfile(key_src, key_dest)
        self.filesystem_service.set_permissions(cert_dest, FILE_MODE)
        self.filesystem_service.set_permissions(key_dest, PRIVATE_FILE_MODE)

"""Discovery of local MySQL/MariaDB installations."""

import glob
import os
import re
import sys
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from packaging.version import InvalidVersion, Version

from lampkit.constants import MYSQL_SEARCH_PATTERNS
from lampkit.errors import ProvisionError
from lampkit.models import MySQLInstallation

_DISTRIB_PATTERN = re.compile(r"Distrib\s+(\d+(?:\.\d+)+)")
_VERSION_PATTERN = re.compile(r"Ver\s+(\d+(?:\.\d+)+)")

_LABELS = (
    ("xampp", "XAMPP"),
    ("wamp", "WAMP"),
    ("laragon", "Laragon"),
    ("mysql server", "MySQL Server"),
    ("mariadb", "MariaDB"),
)


def parse_client_version(output: str) -> str:
    """Extracts the server version from ``mysql --version`` output.

    MariaDB clients report their own protocol version after ``Ver`` and the
    server release after ``Distrib``; the latter wins when present.
    """
    for pattern in (_DISTRIB_PATTERN, _VERSION_PATTERN):
        match = pattern.search(output or "")
        if match:
            return match.group(1)
    return ""


def version_key(installation: MySQLInstallation) -> Version:
    try:
        return Version(installation.version)
    except InvalidVersion:
        return Version("0")


def label_for(bin_dir: Path) -> str:
    lowered = str(bin_dir).lower()
    for needle, label in _LABELS:
        if needle in lowered:
            return label
    return "Custom"


class InstallationDiscovery:
    """Finds directories holding a working MySQL client."""

    def __init__(
        self,
        logger,
        console,
        run_cmd: Callable,
        search_patterns: Iterable[str] = MYSQL_SEARCH_PATTERNS,
        glob_func: Callable[[str], List[str]] = glob.glob,
        platform: str = sys.platform,
    ):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.search_patterns = tuple(search_patterns)
        self.glob_func = glob_func
        self.platform = platform

    def executable(self, bin_dir: Path, name: str) -> Path:
        if self.platform == "win32":
            name = f"{name}.exe"
        return bin_dir / name

    def candidate_dirs(self, operator_path: Optional[str] = None) -> List[Path]:
        candidates: List[Path] = []
        if operator_path:
            root = Path(operator_path)
            if self.executable(root / "bin", "mysql").exists():
                candidates.append(root / "bin")
            else:
                candidates.append(root)

        for pattern in self.search_patterns:
            for match in sorted(self.glob_func(pattern)):
                candidates.append(Path(match))
        return candidates

    def _defaults_file(self, bin_dir: Path) -> Optional[Path]:
        for directory in (bin_dir, bin_dir.parent):
            candidate = directory / "my.ini"
            if candidate.is_file():
                return candidate
        return None

    def probe(self, bin_dir: Path) -> Optional[MySQLInstallation]:
        client = self.executable(bin_dir, "mysql")
        if not client.exists():
            self.logger.debug("No MySQL client in %s", bin_dir)
            return None

        try:
            result = self.run_cmd([str(client), "--version"], check=False, capture_output=True)
        except ProvisionError as exc:
            self.logger.debug("Skipping %s: %s", bin_dir, exc)
            return None

        if result.returncode != 0:
            self.logger.debug("MySQL client in %s did not answer --version", bin_dir)
            return None

        version = parse_client_version(result.stdout or "")
        label = label_for(bin_dir)
        return MySQLInstallation(
            label=f"{label} {version}".strip(),
            bin_dir=bin_dir,
            client=client,
            dump=self.executable(bin_dir, "mysqldump"),
            server=self.executable(bin_dir, "mysqld"),
            version=version,
            defaults_file=self._defaults_file(bin_dir),
        )

    def discover(self, operator_path: Optional[str] = None) -> List[MySQLInstallation]:
        """Returns working installations, newest version first."""
        self.console.print("[blue]Searching for MySQL installations...[/blue]")
        seen = set()
        installations: List[MySQLInstallation] = []

        for bin_dir in self.candidate_dirs(operator_path):
            key = os.path.normcase(os.path.abspath(str(bin_dir)))
            if key in seen:
                continue
            seen.add(key)

            installation = self.probe(bin_dir)
            if installation is not None:
                self.logger.info("Found %s in %s", installation.label, bin_dir)
                installations.append(installation)

        installations.sort(key=version_key, reverse=True)
        return installations

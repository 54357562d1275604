"""Archive extraction helpers for lampkit."""

import os
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import Optional

from lampkit.errors import ProvisionError


class ArchiveService:
    """Encapsulates safe tarball extraction logic."""

    def is_within_dir(self, base_dir: Path, candidate: Path) -> bool:
        try:
            return os.path.commonpath([str(base_dir), str(candidate)]) == str(base_dir)
        except ValueError:
            return False

    @staticmethod
    def _strip(name: str, strip_components: int) -> Optional[str]:
        parts = [part for part in PurePosixPath(name.replace("\\", "/")).parts if part not in ("", ".")]
        if len(parts) <= strip_components:
            return None
        return "/".join(parts[strip_components:])

    def safe_extract_tar(self, archive_path: str, destination_dir: str, strip_components: int = 0):
        base = Path(destination_dir).resolve()

        try:
            with tarfile.open(archive_path, "r:*") as tar_ref:
                members = tar_ref.getmembers()
                for member in members:
                    if member.issym() or member.islnk():
                        raise ProvisionError(
                            f"Unsafe archive entry detected: `{member.name}` is a link."
                        )
                    relative_name = self._strip(member.name, strip_components)
                    if relative_name is None:
                        continue
                    target_path = (base / relative_name).resolve()
                    if not self.is_within_dir(base, target_path):
                        raise ProvisionError(
                            f"Unsafe archive entry detected: `{member.name}`. "
                            "Archive extraction aborted to prevent path traversal."
                        )

                for member in members:
                    relative_name = self._strip(member.name, strip_components)
                    if relative_name is None:
                        continue
                    target_path = (base / relative_name).resolve()

                    if member.isdir():
                        target_path.mkdir(parents=True, exist_ok=True)
                        continue
                    if not member.isfile():
                        continue

                    target_path.parent.mkdir(parents=True, exist_ok=True)
                    source = tar_ref.extractfile(member)
                    if source is None:
                        continue
                    with source, open(target_path, "wb") as dst:
                        shutil.copyfileobj(source, dst)
        except tarfile.TarError as exc:
            raise ProvisionError(f"Invalid tar archive: {archive_path}") from exc

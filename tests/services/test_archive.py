import io
import tarfile

import pytest

from lampkit.errors import ProvisionError
from lampkit.services.archive import ArchiveService


def _add_file(tar_file, name, payload):
    info = tarfile.TarInfo(name)
    info.size = len(payload)
    tar_file.addfile(info, io.BytesIO(payload))


def test_archive_service_blocks_path_traversal(tmp_path):
    service = ArchiveService()

    tar_path = tmp_path / "malicious.tar.gz"
    with tarfile.open(tar_path, "w:gz") as tar_file:
        _add_file(tar_file, "wordpress/../../escape.txt", b"malicious")

    destination = tmp_path / "extract"
    destination.mkdir()

    with pytest.raises(ProvisionError):
        service.safe_extract_tar(str(tar_path), str(destination), strip_components=1)

    assert not (tmp_path / "escape.txt").exists()


def test_archive_service_strips_leading_directory(tmp_path):
    service = ArchiveService()

    tar_path = tmp_path / "latest.tar.gz"
    with tarfile.open(tar_path, "w:gz") as tar_file:
        _add_file(tar_file, "wordpress/index.php", b"<?php")
        _add_file(tar_file, "wordpress/wp-admin/about.php", b"about")

    destination = tmp_path / "html"
    destination.mkdir()

    service.safe_extract_tar(str(tar_path), str(destination), strip_components=1)

    assert (destination / "index.php").read_bytes() == b"<?php"
    assert (destination / "wp-admin" / "about.php").read_bytes() == b"about"
    assert not (destination / "wordpress").exists()


def test_archive_service_rejects_links(tmp_path):
    service = ArchiveService()

    tar_path = tmp_path / "links.tar"
    with tarfile.open(tar_path, "w") as tar_file:
        link = tarfile.TarInfo("wordpress/passwd")
        link.type = tarfile.SYMTYPE
        link.linkname = "/etc/passwd"
        tar_file.addfile(link)

    with pytest.raises(ProvisionError, match="is a link"):
        service.safe_extract_tar(str(tar_path), str(tmp_path / "out"))


def test_archive_service_reports_invalid_archive(tmp_path):
    bogus = tmp_path / "latest.tar.gz"
    bogus.write_text("not a tarball", encoding="utf-8")

    with pytest.raises(ProvisionError, match="Invalid tar archive"):
        ArchiveService().safe_extract_tar(str(bogus), str(tmp_path / "out"))

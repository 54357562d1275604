"""Download service with progress reporting."""

import os
import tempfile

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from lampkit.errors import ProvisionError


class DownloadService:
    """Fetches the application archive and text snippets over HTTPS."""

    def __init__(self, logger, console, requests_module, timeout: float = 60.0):
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.timeout = timeout

    def _stream(self, url: str, file_obj, description: str):
        try:
            with self.requests.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("Content-Length", 0))

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    "•",
                    TimeElapsedColumn(),
                    console=self.console,
                ) as progress:
                    task = progress.add_task(f"[cyan]{description}", total=total_size or None)
                    for chunk in response.iter_content(chunk_size=8192):
                        if not chunk:
                            continue
                        file_obj.write(chunk)
                        progress.update(task, advance=len(chunk))
        except self.requests.RequestException as exc:
            raise ProvisionError(f"Download failed for {description}: {exc}") from exc

    def download_file(self, url: str, dest_path: str, description: str = "Downloading..."):
        """Streams ``url`` into ``dest_path``.

        Bytes land in a sibling ``.part`` file that only replaces ``dest_path``
        once the transfer completes, so an interrupted run never leaves a
        truncated archive at the destination.
        """
        self.logger.info("Downloading %s to %s", url, dest_path)
        directory = os.path.dirname(dest_path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(prefix=".download-", suffix=".part", dir=directory)

        try:
            with os.fdopen(fd, "wb") as file_obj:
                self._stream(url, file_obj, description)
            os.replace(temp_path, dest_path)
        except BaseException:
            try:
                os.remove(temp_path)
            except OSError as cleanup_exc:
                self.logger.debug("Could not remove partial download %s: %s", temp_path, cleanup_exc)
            raise

    def fetch_text(self, url: str, description: str) -> str:
        self.logger.debug("Fetching %s", url)
        try:
            response = self.requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            raise ProvisionError(f"Could not fetch {description}: {exc}") from exc

        text = response.text.strip()
        if not text:
            raise ProvisionError(f"Received an empty response while fetching {description}.")
        return text

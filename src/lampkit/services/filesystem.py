"""Filesystem helpers for lampkit."""

import logging
import os
import shutil
import sys
from typing import Optional

from rich.console import Console


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except Exception as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def set_tree_permissions(self, root: str, dir_mode: int, file_mode: int):
        if sys.platform == "win32" or not os.path.exists(root):
            return

        for current_root, dirs, files in os.walk(root):
            for directory in dirs:
                self.set_permissions(os.path.join(current_root, directory), dir_mode)
            for file_name in files:
                self.set_permissions(os.path.join(current_root, file_name), file_mode)

    def write_file(self, path: str, content: str, mode: Optional[int] = None):
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(content)
        if mode is not None:
            self.set_permissions(path, mode)
        self.logger.debug("Wrote %s", path)

    def read_file(self, path: str) -> str:
        with open(path, "r", encoding="utf-8") as file_obj:
            return file_obj.read()

    def remove_file(self, path: str):
        if os.path.isfile(path):
            os.remove(path)
            self.logger.debug("Removed file: %s", path)

    def empty_dir(self, path: str):
        """Removes everything inside ``path`` but keeps the directory itself."""
        os.makedirs(path, exist_ok=True)
        for entry in os.listdir(path):
            entry_path = os.path.join(path, entry)
            try:
                if os.path.isdir(entry_path) and not os.path.islink(entry_path):
                    shutil.rmtree(entry_path)
                else:
                    os.remove(entry_path)
            except Exception as exc:
                message = f"Warning: Could not remove {entry_path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)

"""Run manifest recording the installer's step history."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _seconds_between(started_at: str, finished_at: str) -> float:
    return (datetime.fromisoformat(finished_at) - datetime.fromisoformat(started_at)).total_seconds()


class ManifestService:
    """Keeps a JSON record of one installer run, rewritten after every change.

    The file is replaced atomically so an interrupted run still leaves the
    last complete snapshot behind. Write failures only log a warning; the
    manifest never stops an installation.
    """

    def __init__(self, manifest_file: str, logger):
        self.manifest_file = manifest_file
        self.logger = logger
        self.manifest: Dict[str, Any] = {
            "status": "pending",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "settings": {},
            "steps": [],
            "artifacts": {},
            "error": None,
        }

    def start_run(self):
        self.manifest.update(status="running", started_at=_now())
        self.write()

    def set_settings(self, settings: Dict[str, Any]):
        self.manifest["settings"] = dict(settings)
        self.write()

    def _running_step(self, step_name: str) -> Optional[Dict[str, Any]]:
        for step in reversed(self.manifest["steps"]):
            if step["name"] == step_name and step["status"] == "running":
                return step
        return None

    def step_started(self, step_name: str):
        self.manifest["steps"].append(
            {"name": step_name, "status": "running", "started_at": _now(), "finished_at": None, "error": None}
        )
        self.write()

    def step_finished(self, step_name: str, status: str, error: Optional[str] = None):
        step = self._running_step(step_name)
        if step is None:
            self.logger.debug("No running step named %s in the manifest", step_name)
            return
        step.update(status=status, finished_at=_now(), error=error)
        step["duration_seconds"] = _seconds_between(step["started_at"], step["finished_at"])
        self.write()

    def add_artifact(self, key: str, value: str):
        self.manifest["artifacts"][key] = value
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        finished_at = _now()
        self.manifest.update(status=status, finished_at=finished_at, error=error)
        if self.manifest["started_at"]:
            self.manifest["duration_seconds"] = _seconds_between(self.manifest["started_at"], finished_at)
        self.write()

    def write(self):
        directory = os.path.dirname(self.manifest_file) or "."
        temp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=".wordpress-run-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.manifest, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.manifest_file)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)

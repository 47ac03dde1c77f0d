"""
Output Manager — Per-run output folders and retention cleanup.

Each run writes into {base_dir}/YYYYMMDD_HHMM_{provider}/, for example
./output/20261018_0930_atSpoke/. A successful run leaves:

  graph_payload.json        Collected entities, relationships, encountered types
  oaa_payload.json          The Veza OAA payload (when SAVE_JSON is on)
  extraction_results.json   Run metadata, counts, error (written even on failure)

Folders older than retention_days are removed by cleanup_old_folders(),
which run.py calls before a run starts. retention_days=0 keeps everything.
"""

import json
import logging
import re
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

FOLDER_PATTERN = re.compile(r"^(\d{8}_\d{4})_.*$")


class OutputManager:
    """Creates the run folder and prunes old ones.

    Attributes:
        base_dir: Root output directory.
        provider_name: Used in folder naming (non [A-Za-z0-9_-] chars become "_").
        retention_days: Age in days after which a run folder is deleted.
        current_dir: The current run's folder, None until created.
    """

    def __init__(self, base_dir: str, provider_name: str, retention_days: int = 30):
        self.base_dir = Path(base_dir)
        self.provider_name = provider_name
        self.retention_days = retention_days
        self.current_dir: Optional[Path] = None
        self._run_timestamp = datetime.now()

    def create_timestamped_dir(self) -> Path:
        safe_provider = "".join(
            c if c.isalnum() or c in "-_" else "_" for c in self.provider_name
        )
        folder_name = f"{self._run_timestamp.strftime('%Y%m%d_%H%M')}_{safe_provider}"
        self.current_dir = self.base_dir / folder_name
        self.current_dir.mkdir(parents=True, exist_ok=True)
        return self.current_dir

    def get_output_path(self, filename: str) -> Path:
        """Resolve a filename inside the current run folder.

        Raises:
            RuntimeError: If create_timestamped_dir() has not been called yet.
        """
        if self.current_dir is None:
            raise RuntimeError("Output directory not created. Call create_timestamped_dir() first.")
        return self.current_dir / filename

    def write_json(self, filename: str, data: Any) -> Path:
        path = self.get_output_path(filename)
        with open(path, "w") as f:
            json.dump(data, f, indent=2, default=str)
        return path

    def cleanup_old_folders(self) -> int:
        """Delete run folders older than retention_days.

        Only folders named like YYYYMMDD_HHMM_* are considered.

        Returns:
            The number of folders deleted.
        """
        if self.retention_days <= 0 or not self.base_dir.exists():
            return 0

        cutoff = datetime.now() - timedelta(days=self.retention_days)
        deleted = 0
        for folder in self.base_dir.iterdir():
            if not folder.is_dir():
                continue
            match = FOLDER_PATTERN.match(folder.name)
            if not match:
                continue
            try:
                if datetime.strptime(match.group(1), "%Y%m%d_%H%M") < cutoff:
                    shutil.rmtree(folder)
                    deleted += 1
                    logger.debug("Deleted old output folder: %s", folder.name)
            except (ValueError, OSError) as e:
                logger.warning("Could not process folder %s: %s", folder.name, e)
        return deleted

"""
Runtime settings, read from ``TRACKER_*`` environment variables.

TRACKER_DATA_DIR         directory holding the three slot files; unset keeps
                         the dataset in memory only
TRACKER_EXPORT_DIR       directory used for direct file save/load; unset means
                         only the copy/paste fallback is available
TRACKER_EXPORT_FILENAME  export file name (default yard_sale_data.json)
TRACKER_LOG_LEVEL        logging level name (default INFO)
TRACKER_SEED_DEMO        "1" seeds demo data on startup when no sellers exist
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_EXPORT_FILENAME = "yard_sale_data.json"


def _path(value: Optional[str]) -> Optional[Path]:
    return Path(value).expanduser() if value else None


@dataclass(frozen=True)
class Settings:
    data_dir: Optional[Path] = None
    export_dir: Optional[Path] = None
    export_filename: str = DEFAULT_EXPORT_FILENAME
    log_level: str = "INFO"
    seed_demo: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            data_dir=_path(env.get("TRACKER_DATA_DIR", "").strip()),
            export_dir=_path(env.get("TRACKER_EXPORT_DIR", "").strip()),
            export_filename=env.get("TRACKER_EXPORT_FILENAME", "").strip() or DEFAULT_EXPORT_FILENAME,
            log_level=env.get("TRACKER_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            seed_demo=env.get("TRACKER_SEED_DEMO", "0").strip() == "1",
        )

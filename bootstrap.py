"""
Bootstrap script to ensure the data directory holds the files the desk needs.
Copies the sample data from defaults/ into the data directory if files are missing.
"""
import json
import logging
import shutil
from pathlib import Path

from config import Config, PROJECT_ROOT

logger = logging.getLogger(__name__)

DEFAULTS_DIR = PROJECT_ROOT / "defaults"

DATA_FILES = ["invoices.json", "purchase_orders.json", "field_reps.csv"]


def ensure_data_files(config: Config | None = None, defaults_dir: Path = DEFAULTS_DIR) -> list[str]:
    """Restore missing (or unreadable) data files from the defaults folder.

    Returns the names of the files that were copied.
    """
    config = config or Config()
    config.ensure_data_dir()

    if not defaults_dir.exists():
        logger.warning("Defaults directory not found at %s", defaults_dir)
        return []

    targets = {
        "invoices.json":        config.invoices_json,
        "purchase_orders.json": config.purchase_orders_json,
        "field_reps.csv":       config.field_reps_csv,
    }
    restored = []
    for filename in DATA_FILES:
        src = defaults_dir / filename
        dst = targets[filename]
        if not src.exists():
            continue
        if not dst.exists():
            logger.info("Restoring missing data file: %s", filename)
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
            restored.append(filename)
        elif dst.suffix == ".json":
            # Repair empty or corrupted JSON
            try:
                if dst.stat().st_size == 0:
                    raise ValueError("Empty file")
                with open(dst, "r", encoding="utf-8") as f:
                    json.load(f)
            except (json.JSONDecodeError, ValueError):
                logger.warning("Repairing invalid %s", filename)
                shutil.copy2(src, dst)
                restored.append(filename)
    return restored


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    ensure_data_files()

"""
Central configuration for the fulfillment desk.

All data paths and limits are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. Environment variables
  2. config/fulfillment_settings.json  (admin-editable, persisted)
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

DEFAULT_DATA_DIR = PROJECT_ROOT / "data"


def _data_dir() -> Path:
    return Path(os.getenv("FULFILLMENT_DATA_DIR", str(DEFAULT_DATA_DIR)))


@dataclass
class Config:
    # --- Data files ---
    data_dir: Path = field(default_factory=_data_dir)
    # Derived from data_dir unless given explicitly
    invoices_json: Optional[Path] = None
    purchase_orders_json: Optional[Path] = None
    field_reps_csv: Optional[Path] = None
    proof_dir: Optional[Path] = None     # PROOF_DIR env, else data_dir/proofs
    pretty_json: bool = True       # Indent JSON data files for human readability

    # --- Display ---
    currency: str = field(default_factory=lambda: os.getenv("CURRENCY", "KSh"))

    # --- Proof of payment uploads ---
    max_proof_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_PROOF_BYTES", str(5 * 1024 * 1024)))
    )

    def __post_init__(self) -> None:
        """Fill in derived paths, then overlay settings from fulfillment_settings.json if present."""
        self.data_dir = Path(self.data_dir)
        if self.invoices_json is None:
            self.invoices_json = self.data_dir / "invoices.json"
        if self.purchase_orders_json is None:
            self.purchase_orders_json = self.data_dir / "purchase_orders.json"
        if self.field_reps_csv is None:
            self.field_reps_csv = self.data_dir / "field_reps.csv"
        if self.proof_dir is None:
            self.proof_dir = Path(os.getenv("PROOF_DIR", str(self.data_dir / "proofs")))

        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "fulfillment_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, type] = {
            "currency":         str,
            "max_proof_bytes":  int,
            "pretty_json":      bool,
        }
        _env_names = {
            "currency":        "CURRENCY",
            "max_proof_bytes": "MAX_PROOF_BYTES",
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _env_names and os.getenv(_env_names[key]) is not None:
                    continue  # environment wins
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val))
        except Exception as exc:
            logger.warning("Failed to load fulfillment_settings.json: %s", exc)

    def ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.proof_dir.mkdir(parents=True, exist_ok=True)

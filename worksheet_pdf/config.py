from __future__ import annotations

import json
import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = Path(os.environ.get("WORKSHEET_PDF_OUT", BASE_DIR / "out"))
DB_PATH = OUT_DIR / "exports.db"
STYLE_PRESET_PATH = Path(__file__).resolve().parent / "assets" / "brand" / "theme.json"

COMPUTED_NOTE = "Calculated automatically in the app"
DYNAMIC_ITEMS_NOTE = "(Dynamic items — add entries in the app)"


def load_style_preset() -> dict:
    with STYLE_PRESET_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "exports.db"

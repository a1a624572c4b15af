from pathlib import Path

# Base directory for the calibration package
BASE_DIR = Path(__file__).resolve().parent

# Core data dirs
DATA_DIR = BASE_DIR / "data"
EXPORT_DIR = DATA_DIR / "exports"

__all__ = [
    "BASE_DIR",
    "DATA_DIR",
    "EXPORT_DIR",
]

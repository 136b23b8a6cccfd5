from pathlib import Path

# Base directory (where this file lives)
BASE_DIR = Path(__file__).parent

# Persisted inputs
# Copy this file to config.py and update with your values
DATABASE_PATH = BASE_DIR / "inputs.db"  # SQLite file holding the last inputs
SESSION_ID = "default"                  # Row id of the single input record
STORE_KIND = "sqlite"                   # "sqlite" or "memory" (nothing saved)

# Classification policies
BODY_FAT_POLICY = "age_banded"  # "age_banded" (US Navy limits) or "fixed_band"
BMI_POLICY = "two_band"         # "two_band" (normal or not) or "three_band"

# Dashboard
DASHBOARD_HOST = "127.0.0.1"
DASHBOARD_PORT = 5000

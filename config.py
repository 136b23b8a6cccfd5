from pathlib import Path

# Base directory (where this file lives)
BASE_DIR = Path(__file__).parent

# Persisted inputs (stored alongside code)
DATABASE_PATH = BASE_DIR / "inputs.db"
SESSION_ID = "default"
STORE_KIND = "sqlite"

# Classification policies
BODY_FAT_POLICY = "age_banded"
BMI_POLICY = "two_band"

# Dashboard
DASHBOARD_HOST = "127.0.0.1"
DASHBOARD_PORT = 5000

# meditation_api/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Mongo
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "meditation_app")

# JWT (support either JWT_SECRET_KEY or JWT_SECRET)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or os.getenv("JWT_SECRET") or ""
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))

# Comma-separated list of origins, e.g. "https://app.example.com,https://admin.example.com"
_raw_origins = os.getenv("CORS_ORIGINS", "*").strip()
if _raw_origins == "*" or not _raw_origins:
    CORS_ORIGINS = ["*"]
else:
    CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Where scripts/export_user_data.py drops CSV files
EXPORT_DIR = os.getenv("EXPORT_DIR", "exports")

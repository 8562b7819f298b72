"""Configuration and environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the repository root (one level up from shoeshop/)
_ROOT = Path(__file__).parent.parent
load_dotenv(_ROOT / ".env")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Paths ---
DATA_DIR = Path(os.getenv("SHOESHOP_DATA_DIR", str(_ROOT / "data")))
MODELS_DIR = Path(os.getenv("SHOESHOP_MODELS_DIR", str(_ROOT / "public")))
DATA_DIR.mkdir(parents=True, exist_ok=True)

# --- Catalog store ---
DB_PATH = Path(os.getenv("SHOESHOP_DB_PATH", str(DATA_DIR / "products.sqlite")))
DB_TIMEOUT = float(os.getenv("SHOESHOP_DB_TIMEOUT", "5.0"))

# --- Draco compression ---
DRACO_COMPRESSION_LEVEL = int(os.getenv("DRACO_COMPRESSION_LEVEL", "10"))
DRACO_QUANTIZE_POSITION_BITS = int(os.getenv("DRACO_QUANTIZE_POSITION_BITS", "14"))
DRACO_QUANTIZE_NORMAL_BITS = int(os.getenv("DRACO_QUANTIZE_NORMAL_BITS", "10"))
DRACO_QUANTIZE_TEXCOORD_BITS = int(os.getenv("DRACO_QUANTIZE_TEXCOORD_BITS", "12"))
DRACO_QUANTIZE_COLOR_BITS = int(os.getenv("DRACO_QUANTIZE_COLOR_BITS", "8"))
DRACO_QUANTIZE_GENERIC_BITS = int(os.getenv("DRACO_QUANTIZE_GENERIC_BITS", "12"))
DRACO_UNCOMPRESSED_FALLBACK = os.getenv("DRACO_UNCOMPRESSED_FALLBACK", "true").lower() == "true"

# --- Batch processing ---
BATCH_CONTINUE_ON_ERROR = os.getenv("BATCH_CONTINUE_ON_ERROR", "false").lower() == "true"

# --- API ---
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

"""Configuration constants, paths, and logging setup."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


# ── Local frame ─────────────────────────────────────────────────────────
# Equirectangular approximation: metres per degree of latitude, and of
# longitude at the equator.
METERS_PER_DEGREE = 111320.0

# ── Curtain defaults ────────────────────────────────────────────────────
DEFAULT_SAMPLE_COUNT = _env_int("CURTAIN_SAMPLE_COUNT", 10)

# Elevation APIs resolve terrain coarser than photogrammetry tiles, so the
# wall base is pushed this far below the lowest sampled elevation.
DEFAULT_SAFETY_MARGIN = _env_float("CURTAIN_SAFETY_MARGIN", 300.0)       # metres

# Used when no elevation data is available at all.
DEFAULT_DEEP_FALLBACK = _env_float("CURTAIN_DEEP_FALLBACK", -500.0)      # metres

DEFAULT_WALL_TOP_ALTITUDE = _env_float("CURTAIN_WALL_TOP", 800.0)        # metres
DEFAULT_WALL_DEPTH = _env_float("CURTAIN_WALL_DEPTH", 1500.0)            # metres
DEFAULT_CURTAIN_COLOR = "#00ffff"

ANCHOR_POLICIES = ("first", "centroid")
MULTI_GEOMETRY_POLICIES = ("all", "first")

# ── Elevation provider ──────────────────────────────────────────────────
GOOGLE_ELEVATION_URL = "https://maps.googleapis.com/maps/api/elevation/json"
# Google accepts up to 512 locations per request; URL length is the
# tighter limit in practice.
ELEVATION_BATCH_SIZE = _env_int("CURTAIN_ELEVATION_BATCH", 256)
ELEVATION_TIMEOUT = 30

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = BASE_DIR / "output"

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

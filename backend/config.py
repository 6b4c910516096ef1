import os
import pathlib

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = BASE_DIR / "output"

# Elevation lookups are skipped (deep fallback) when no key is configured.
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "").strip()

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "CURTAIN_ALLOWED_ORIGINS",
        "http://localhost:5174,http://127.0.0.1:5174",
    ).split(",")
    if origin.strip()
]

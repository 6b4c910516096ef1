"""CurtainBuilder package — terrain-draping boundary curtains from GeoJSON.

Import constants FIRST so the .env file is loaded and logging is configured
before any other module reads its defaults.
"""

from curtainbuilder import constants as _constants  # noqa: F401

from curtainbuilder.builder import CurtainBuilder
from curtainbuilder.models import BoundaryFeature, CurtainSettings, GeoPoint

"""Terrain elevation lookups and the safe wall-base elevation.

Provides:
1. ``ElevationOracle`` — the async interface any elevation source satisfies
2. ``GoogleElevationClient`` — batched Google Elevation API client
3. ``aggregate_base_elevation`` — min(elevations) - safety margin, or the
   deep fallback when no usable elevation data exists
4. ``resolve_base_elevation`` — sample a path, query the oracle once, and
   aggregate; never raises on provider failure
"""

import asyncio
import hashlib
import logging
import math
from typing import Callable, List, Protocol, Sequence, Tuple, Union

import requests

from .constants import (
    GOOGLE_ELEVATION_URL,
    ELEVATION_BATCH_SIZE,
    ELEVATION_TIMEOUT,
)
from .models import BoundaryPath, ElevationSample, GeoPoint
from .sampling import sample_path

logger = logging.getLogger(__name__)

SOURCE_ORACLE = "oracle"
SOURCE_FALLBACK = "fallback"


class OracleError(Exception):
    """Elevation provider failed (network, HTTP status, payload or API status)."""


class ElevationOracle(Protocol):
    """Anything that can turn points into ground elevations (metres).

    Results are returned in input order.  Failures raise ``OracleError``.
    """

    async def query(self, points: Sequence[GeoPoint]) -> List[float]:
        ...


class GoogleElevationClient:
    """Google Maps Elevation API client.

    The API key is passed in explicitly; nothing is read from the environment
    here.  Points are sent in chunks of ``batch_size`` (one GET per chunk) and
    the blocking HTTP call runs in a worker thread.
    """

    def __init__(self, api_key: str, *, batch_size: int = ELEVATION_BATCH_SIZE,
                 timeout: float = ELEVATION_TIMEOUT,
                 base_url: str = GOOGLE_ELEVATION_URL):
        if not api_key:
            raise ValueError("An API key is required for the Google Elevation API")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._api_key = api_key
        self.batch_size = batch_size
        self.timeout = timeout
        self.base_url = base_url

    @property
    def credentials_version(self) -> str:
        """Short digest of the key; changes whenever the key changes."""
        return hashlib.sha256(self._api_key.encode("utf-8")).hexdigest()[:12]

    async def query(self, points: Sequence[GeoPoint]) -> List[float]:
        if not points:
            return []
        elevations: List[float] = []
        for start in range(0, len(points), self.batch_size):
            chunk = points[start:start + self.batch_size]
            elevations.extend(await asyncio.to_thread(self._fetch_chunk, chunk))
        return elevations

    def _fetch_chunk(self, points: Sequence[GeoPoint]) -> List[float]:
        locations = "|".join(f"{p.latitude},{p.longitude}" for p in points)
        logger.info(f"Requesting elevation for {len(points)} point(s)")
        try:
            response = requests.get(
                self.base_url,
                params={"locations": locations, "key": self._api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise OracleError(f"Elevation request failed: {e}") from e
        except ValueError as e:
            raise OracleError(f"Elevation response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise OracleError("Elevation response is not a JSON object")
        status = data.get("status")
        if status != "OK":
            detail = data.get("error_message", "")
            raise OracleError(f"Elevation API status {status}: {detail}".rstrip(": "))

        results = data.get("results") or []
        if not isinstance(results, list):
            raise OracleError(f"Elevation API results is {type(results).__name__}, not a list")
        if len(results) != len(points):
            raise OracleError(f"Elevation API returned {len(results)} results "
                              f"for {len(points)} locations")
        try:
            return [float(r["elevation"]) for r in results]
        except (KeyError, TypeError, ValueError) as e:
            raise OracleError(f"Malformed elevation result: {e}") from e


class StaticElevationOracle:
    """Offline oracle: a constant elevation, or a function of the point."""

    def __init__(self, elevation: Union[float, Callable[[GeoPoint], float]]):
        self._elevation = elevation
        self.credentials_version = "static"

    async def query(self, points: Sequence[GeoPoint]) -> List[float]:
        if callable(self._elevation):
            return [float(self._elevation(p)) for p in points]
        return [float(self._elevation)] * len(points)


def aggregate_base_elevation(samples: Union[Sequence[ElevationSample], OracleError],
                             safety_margin: float,
                             deep_fallback: float) -> float:
    """Collapse elevation samples into one wall-base elevation.

    ``samples`` is either the oracle's successful output or the
    ``OracleError`` it failed with.  Success gives ``min - safety_margin``;
    failure or an empty/unusable result gives ``deep_fallback``.
    """
    if safety_margin < 0:
        raise ValueError("safety_margin must be >= 0")

    if isinstance(samples, OracleError):
        logger.warning(f"Elevation lookup failed ({samples}), "
                       f"using deep fallback {deep_fallback:.0f}m")
        return deep_fallback

    finite = [s.elevation for s in samples if math.isfinite(s.elevation)]
    if not finite:
        logger.warning(f"No usable elevation samples ({len(samples)} returned), "
                       f"using deep fallback {deep_fallback:.0f}m")
        return deep_fallback

    min_elevation = min(finite)
    safe = min_elevation - safety_margin
    logger.info(f"Elevation min={min_elevation:.1f}m over {len(finite)} samples, "
                f"safe base={safe:.1f}m")
    return safe


async def resolve_base_elevation(path: BoundaryPath, oracle: ElevationOracle,
                                 sample_count: int, safety_margin: float,
                                 deep_fallback: float) -> Tuple[float, str]:
    """Sample ``path``, query ``oracle`` in one batch, and aggregate.

    Returns ``(base_elevation, source)`` where source is ``"oracle"`` or
    ``"fallback"``.  Provider failures never propagate.
    """
    if len(path) < 2:
        logger.warning(f"Path has {len(path)} vertex(es), skipping elevation "
                       f"sampling, using deep fallback {deep_fallback:.0f}m")
        return deep_fallback, SOURCE_FALLBACK

    points = sample_path(path, sample_count)
    try:
        elevations = await oracle.query(points)
        try:
            elevations = [float(e) for e in elevations]
        except (TypeError, ValueError) as e:
            raise OracleError(f"Oracle returned non-numeric elevations: {e}") from e
        if len(elevations) != len(points):
            raise OracleError(f"Oracle returned {len(elevations)} elevations "
                              f"for {len(points)} points")
        result = [ElevationSample(point=p, elevation=e)
                  for p, e in zip(points, elevations)]
    except OracleError as e:
        result = e

    base = aggregate_base_elevation(result, safety_margin, deep_fallback)
    usable = not isinstance(result, OracleError) and any(
        math.isfinite(s.elevation) for s in result)
    return base, SOURCE_ORACLE if usable else SOURCE_FALLBACK

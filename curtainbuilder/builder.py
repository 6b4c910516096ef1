"""Curtain pipeline: elevation lookup, local projection and mesh building per boundary."""

import asyncio
import hashlib
import json
import logging
import time
from typing import Optional

from .curtain import build_curtain_mesh
from .elevation import resolve_base_elevation
from .models import BoundaryFeature, CurtainResult, CurtainSettings, GeoPoint
from .projection import LocalFrame

logger = logging.getLogger(__name__)

# Anchor for pathless features; their mesh is empty anyway.
_NULL_ISLAND = GeoPoint(longitude=0.0, latitude=0.0)


def curtain_cache_key(path, sample_count: int, safety_margin: float,
                      credentials_version: str) -> str:
    """Invalidation key for a curtain's base elevation."""
    payload = json.dumps({
        "path": [[p.longitude, p.latitude] for p in path],
        "samples": sample_count,
        "margin": safety_margin,
        "credentials": credentials_version,
    }, sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CurtainBuilder:
    def __init__(self, oracle=None, settings: Optional[CurtainSettings] = None):
        """
        oracle: ElevationOracle used for terrain lookups.  With no oracle
            every curtain sits on the deep fallback.
        settings: CurtainSettings; defaults from constants.
        """
        self.oracle = oracle
        self.settings = (settings or CurtainSettings()).validate()
        # feature id -> (cache key, base elevation, source)
        self._elevations = {}
        # feature id -> token of the most recent request
        self._tokens = {}
        self._next_token = 0

    @property
    def credentials_version(self) -> str:
        if self.oracle is None:
            return "offline"
        return str(getattr(self.oracle, "credentials_version", ""))

    def invalidate(self, feature_id: Optional[str] = None) -> None:
        """Drop cached elevations for one feature, or for all of them."""
        if feature_id is None:
            self._elevations.clear()
        else:
            self._elevations.pop(feature_id, None)

    async def _base_elevation(self, feature: BoundaryFeature):
        """Cached (base_elevation, source) for *feature*, or None if superseded."""
        s = self.settings
        key = curtain_cache_key(feature.path, s.sample_count, s.safety_margin,
                                self.credentials_version)
        # Any newer call, cache hit or not, supersedes an in-flight request.
        self._next_token += 1
        token = self._next_token
        self._tokens[feature.id] = token

        cached = self._elevations.get(feature.id)
        if cached is not None and cached[0] == key:
            logger.debug(f"Elevation cache hit for {feature.id}")
            return cached[1], cached[2]

        if self.oracle is None:
            if len(feature.path) >= 2:
                logger.warning(f"{feature.id}: no elevation source configured, "
                               f"using deep fallback {s.deep_fallback:.0f}m")
            base, source = s.deep_fallback, "fallback"
        else:
            base, source = await resolve_base_elevation(
                feature.path, self.oracle, s.sample_count,
                s.safety_margin, s.deep_fallback)

        if self._tokens.get(feature.id) != token:
            logger.info(f"{feature.id}: discarding superseded elevation result")
            return None

        self._elevations[feature.id] = (key, base, source)
        return base, source

    async def build(self, feature: BoundaryFeature) -> Optional[CurtainResult]:
        """Build one curtain.

        Returns None when a newer build of the same feature started while this
        one was waiting on the elevation oracle.
        """
        s = self.settings
        elevation = await self._base_elevation(feature)
        if elevation is None:
            return None
        base, source = elevation

        if feature.path:
            frame = LocalFrame.for_path(feature.path, anchor=s.anchor)
        else:
            frame = LocalFrame.at(_NULL_ISLAND)
        local_points = frame.project_path(feature.path)

        # Wall hangs from the frame origin (placed at base + top altitude)
        # down by wall_depth.
        mesh = build_curtain_mesh(local_points, top_z=0.0,
                                  bottom_z=-s.wall_depth, closed=feature.closed)
        if mesh.is_empty:
            logger.warning(f"{feature.id}: {len(feature.path)} vertices is too few "
                           f"for a {'closed' if feature.closed else 'open'} curtain")

        return CurtainResult(
            feature_id=feature.id,
            mesh=mesh,
            frame=frame,
            base_elevation=base,
            anchor_height=base + s.wall_top_altitude,
            elevation_source=source,
            closed=feature.closed,
            properties=dict(feature.properties),
        )

    async def build_all(self, features, progress_callback=None) -> list:
        """Build all curtains concurrently; superseded builds are left out."""
        def _progress(pct, msg):
            if progress_callback:
                progress_callback(pct, msg)

        t0 = time.perf_counter()
        _progress(10, f"Building {len(features)} curtain(s)...")
        results = await asyncio.gather(*(self.build(f) for f in features))
        built = [r for r in results if r is not None]
        _progress(90, "Curtains built")
        logger.info(f"Built {len(built)} curtain(s) in {time.perf_counter() - t0:.2f}s")
        return built

"""Geodetic -> local planar metres (equirectangular tangent-plane approximation).

Good for boundaries spanning up to a few tens of kilometres.  Not valid near
the poles or across the antimeridian.
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import METERS_PER_DEGREE, ANCHOR_POLICIES
from .models import BoundaryPath, GeoPoint


def project(anchor: GeoPoint, point: GeoPoint) -> Tuple[float, float]:
    """
    x = (lng - anchor_lng) * 111320 * cos(radians(anchor_lat))
    y = (lat - anchor_lat) * 111320
    """
    x = (point.longitude - anchor.longitude) * METERS_PER_DEGREE * math.cos(math.radians(anchor.latitude))
    y = (point.latitude - anchor.latitude) * METERS_PER_DEGREE
    return x, y


def path_centroid(path: BoundaryPath) -> GeoPoint:
    """Arithmetic mean of the vertices (not the area centroid)."""
    n = len(path)
    return GeoPoint(
        longitude=sum(p.longitude for p in path) / n,
        latitude=sum(p.latitude for p in path) / n,
    )


@dataclass(frozen=True)
class LocalFrame:
    anchor: GeoPoint
    meters_per_degree_lat: float
    meters_per_degree_lng_at_anchor: float

    @classmethod
    def at(cls, anchor: GeoPoint) -> "LocalFrame":
        return cls(
            anchor=anchor,
            meters_per_degree_lat=METERS_PER_DEGREE,
            meters_per_degree_lng_at_anchor=(
                METERS_PER_DEGREE * math.cos(math.radians(anchor.latitude))),
        )

    @classmethod
    def for_path(cls, path: BoundaryPath, anchor: str = "first") -> "LocalFrame":
        """Frame anchored at the path's first vertex or at its vertex centroid."""
        if not path:
            raise ValueError("Cannot anchor a local frame on an empty path")
        if anchor == "first":
            return cls.at(path[0])
        if anchor == "centroid":
            return cls.at(path_centroid(path))
        raise ValueError(f"Unknown anchor policy {anchor!r}; "
                         f"expected one of {ANCHOR_POLICIES}")

    def project(self, point: GeoPoint) -> Tuple[float, float]:
        x = (point.longitude - self.anchor.longitude) * self.meters_per_degree_lng_at_anchor
        y = (point.latitude - self.anchor.latitude) * self.meters_per_degree_lat
        return x, y

    def project_path(self, path: BoundaryPath) -> np.ndarray:
        """Vectorised ``project`` over a path; returns an (N, 2) array."""
        if not path:
            return np.empty((0, 2), dtype=np.float64)
        lnglat = np.array([(p.longitude, p.latitude) for p in path],
                          dtype=np.float64)
        xy = np.empty_like(lnglat)
        xy[:, 0] = (lnglat[:, 0] - self.anchor.longitude) * self.meters_per_degree_lng_at_anchor
        xy[:, 1] = (lnglat[:, 1] - self.anchor.latitude) * self.meters_per_degree_lat
        return xy

    def unproject(self, x: float, y: float) -> GeoPoint:
        if abs(self.meters_per_degree_lng_at_anchor) < 1e-9:
            raise ValueError("Local frame is degenerate at the poles")
        return GeoPoint(
            longitude=self.anchor.longitude + x / self.meters_per_degree_lng_at_anchor,
            latitude=self.anchor.latitude + y / self.meters_per_degree_lat,
        )

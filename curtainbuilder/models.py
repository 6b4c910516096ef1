"""Data classes and path management."""

import math
import pathlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple

import numpy as np

from .constants import (
    OUTPUT_DIR,
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_SAFETY_MARGIN,
    DEFAULT_DEEP_FALLBACK,
    DEFAULT_WALL_TOP_ALTITUDE,
    DEFAULT_WALL_DEPTH,
    DEFAULT_CURTAIN_COLOR,
    ANCHOR_POLICIES,
    MULTI_GEOMETRY_POLICIES,
)

if TYPE_CHECKING:
    from .projection import LocalFrame


class PathManager:
    """Manage paths relative to the CurtainBuilder directory."""

    @staticmethod
    def get_output_path(filename: str) -> pathlib.Path:
        """Get the output file path (absolute paths are returned as-is)."""
        path = pathlib.Path(filename)
        if path.is_absolute():
            return path
        return OUTPUT_DIR / path


@dataclass(frozen=True)
class GeoPoint:
    longitude: float
    latitude: float

    @classmethod
    def from_lnglat(cls, position) -> "GeoPoint":
        """Build from a GeoJSON position ``[lng, lat]`` (altitude ignored)."""
        if len(position) < 2:
            raise ValueError(f"GeoJSON position needs 2 values, got {position!r}")
        lng, lat = float(position[0]), float(position[1])
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise ValueError(f"Non-finite coordinate {position!r}")
        return cls(longitude=lng, latitude=lat)

    def to_lnglat(self) -> list:
        return [self.longitude, self.latitude]


# Ordered, immutable sequence of vertices.
BoundaryPath = Tuple[GeoPoint, ...]


@dataclass(frozen=True)
class ElevationSample:
    point: GeoPoint
    elevation: float  # metres


@dataclass
class CurtainMesh:
    """Wall mesh in local metres: ``vertices`` (N, 3), ``indices`` (M, 3)."""
    vertices: np.ndarray
    indices: np.ndarray

    @classmethod
    def empty(cls) -> "CurtainMesh":
        return cls(vertices=np.empty((0, 3), dtype=np.float64),
                   indices=np.empty((0, 3), dtype=np.int64))

    @property
    def is_empty(self) -> bool:
        return len(self.indices) == 0

    def flat_vertices(self) -> list:
        return self.vertices.ravel().tolist()

    def flat_indices(self) -> list:
        return self.indices.ravel().tolist()


@dataclass
class BoundaryFeature:
    """One polyline extracted from a boundary geometry."""
    id: str
    path: BoundaryPath
    closed: bool = False
    properties: dict = field(default_factory=dict)


@dataclass
class CurtainSettings:
    sample_count: int = DEFAULT_SAMPLE_COUNT
    safety_margin: float = DEFAULT_SAFETY_MARGIN
    deep_fallback: float = DEFAULT_DEEP_FALLBACK
    wall_top_altitude: float = DEFAULT_WALL_TOP_ALTITUDE
    wall_depth: float = DEFAULT_WALL_DEPTH
    anchor: str = "first"
    multi_geometry: str = "all"
    color: str = DEFAULT_CURTAIN_COLOR

    def validate(self) -> "CurtainSettings":
        """Raise ValueError for settings that would build a wrong curtain."""
        if self.sample_count < 1:
            raise ValueError("sample_count must be at least 1")
        if self.safety_margin < 0:
            raise ValueError("safety_margin must be >= 0 (it pushes the wall down)")
        if self.wall_depth <= 0:
            raise ValueError("wall_depth must be positive")
        if self.anchor not in ANCHOR_POLICIES:
            raise ValueError(f"anchor must be one of {ANCHOR_POLICIES}")
        if self.multi_geometry not in MULTI_GEOMETRY_POLICIES:
            raise ValueError(f"multi_geometry must be one of {MULTI_GEOMETRY_POLICIES}")
        return self


@dataclass
class CurtainResult:
    """Everything a consumer needs to place one curtain in world space."""
    feature_id: str
    mesh: CurtainMesh
    frame: "LocalFrame"
    base_elevation: float
    anchor_height: float
    elevation_source: str  # "oracle" or "fallback"
    closed: bool = False
    properties: dict = field(default_factory=dict)

    def summary(self) -> dict:
        return {
            "id": self.feature_id,
            "anchor": self.frame.anchor.to_lnglat(),
            "anchor_height": self.anchor_height,
            "base_elevation": self.base_elevation,
            "elevation_source": self.elevation_source,
            "closed": self.closed,
            "vertices": len(self.mesh.vertices),
            "triangles": len(self.mesh.indices),
        }

    def to_dict(self) -> dict:
        data = self.summary()
        data["vertex_array"] = self.mesh.flat_vertices()
        data["index_array"] = self.mesh.flat_indices()
        return data

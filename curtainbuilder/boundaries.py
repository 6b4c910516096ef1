"""Boundary extraction from GeoJSON geometry.

Turns LineString / Polygon / MultiLineString / MultiPolygon geometries into
plain polylines.  Polygons contribute their outer ring only (no holes).
Anything else is skipped with a warning rather than failing the build.
"""

import json
import logging
import pathlib

from shapely.errors import GEOSException
from shapely.geometry import LinearRing, LineString

from .constants import MULTI_GEOMETRY_POLICIES
from .models import BoundaryFeature, GeoPoint

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ('LineString', 'Polygon', 'MultiLineString', 'MultiPolygon')


def _to_path(coords) -> tuple:
    return tuple(GeoPoint.from_lnglat(c) for c in coords)


def _line_path(coords) -> tuple:
    return _to_path(LineString(coords).coords)


def _ring_path(rings) -> tuple:
    # Only the outer ring is read; holes never become curtains.
    return _to_path(LinearRing(rings[0]).coords)


def _extract(geometry, multi_geometry: str) -> list:
    """Return ``(id_suffix, path, closed)`` for each polyline in *geometry*.

    Members are parsed one at a time, so a malformed member is skipped
    without losing the others.
    """
    if multi_geometry not in MULTI_GEOMETRY_POLICIES:
        raise ValueError(f"multi_geometry must be one of {MULTI_GEOMETRY_POLICIES}")

    geom_type = geometry.get('type') if isinstance(geometry, dict) else None
    if geom_type not in SUPPORTED_TYPES:
        logger.warning(f"Skipping unsupported boundary geometry type: {geom_type!r}")
        return []

    coordinates = geometry.get('coordinates')
    if not isinstance(coordinates, (list, tuple)):
        logger.warning(f"Skipping malformed {geom_type} geometry: "
                       f"coordinates is {type(coordinates).__name__}")
        return []

    if geom_type in ('LineString', 'Polygon'):
        members = [coordinates]
        label = 'line' if geom_type == 'LineString' else 'polygon'
        multi = False
    else:
        members = list(coordinates)
        if multi_geometry == 'first':
            members = members[:1]
        label = 'multiline' if geom_type == 'MultiLineString' else 'multipolygon'
        multi = True

    closed = geom_type in ('Polygon', 'MultiPolygon')
    build = _ring_path if closed else _line_path

    paths = []
    for j, member in enumerate(members):
        try:
            path = build(member)
        except (ValueError, TypeError, IndexError, GEOSException) as e:
            logger.warning(f"Skipping malformed {geom_type} member {j}: {e}")
            continue
        if path:
            paths.append((f'{label}-{j}' if multi else label, path, closed))
    return paths


def extract_paths(geometry: dict, multi_geometry: str = 'all') -> list:
    """Extract boundary paths from one GeoJSON geometry mapping.

    ``multi_geometry='all'`` emits every member of a Multi* geometry;
    ``'first'`` keeps only the first member.
    """
    return [path for _, path, _ in _extract(geometry, multi_geometry)]


def _iter_geometries(data: dict):
    """Yield ``(geometry, properties)`` from a FeatureCollection, Feature or bare geometry."""
    kind = data.get('type') if isinstance(data, dict) else None
    if kind == 'FeatureCollection':
        for feature in data.get('features') or []:
            if not isinstance(feature, dict):
                yield None, {}
                continue
            yield feature.get('geometry'), feature.get('properties') or {}
    elif kind == 'Feature':
        yield data.get('geometry'), data.get('properties') or {}
    else:
        yield data, {}


def extract_features(data: dict, multi_geometry: str = 'all') -> list:
    """Extract every boundary polyline from GeoJSON data.

    Ring paths are marked ``closed`` and lose their repeated closing vertex;
    the mesh builder closes the loop itself.
    """
    features = []
    for index, (geometry, properties) in enumerate(_iter_geometries(data)):
        if geometry is None:
            logger.warning(f"Skipping feature {index}: no geometry")
            continue
        for suffix, path, closed in _extract(geometry, multi_geometry):
            if closed and len(path) > 1 and path[0] == path[-1]:
                path = path[:-1]
            features.append(BoundaryFeature(
                id=f"feature-{index}-{suffix}",
                path=path,
                closed=closed,
                properties=dict(properties),
            ))
    logger.info(f"Extracted {len(features)} boundary path(s)")
    return features


def load_boundary_file(path, multi_geometry: str = 'all') -> list:
    """Read a GeoJSON file and extract its boundary polylines."""
    path = pathlib.Path(path)
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ValueError(f"Cannot read boundary file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Boundary file {path} is not valid JSON: {e}") from e
    return extract_features(data, multi_geometry=multi_geometry)

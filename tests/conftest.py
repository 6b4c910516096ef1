"""Shared fixtures for curtain pipeline tests."""
import asyncio

import pytest

from curtainbuilder.elevation import OracleError
from curtainbuilder.models import GeoPoint


def make_path(*lnglats):
    return tuple(GeoPoint(longitude=lng, latitude=lat) for lng, lat in lnglats)


class RecordingOracle:
    """Returns fixed elevations and records every query."""

    credentials_version = "test-key-v1"

    def __init__(self, elevations=100.0):
        self.elevations = elevations
        self.calls = []

    async def query(self, points):
        self.calls.append(list(points))
        if callable(self.elevations):
            return [self.elevations(p) for p in points]
        if isinstance(self.elevations, (int, float)):
            return [float(self.elevations)] * len(points)
        return list(self.elevations)


class FailingOracle:
    credentials_version = "broken"

    def __init__(self):
        self.calls = 0

    async def query(self, points):
        self.calls += 1
        raise OracleError("service unavailable")


class GatedOracle:
    """Each query waits on its own event so tests control completion order."""

    credentials_version = "gated"

    def __init__(self, elevations_per_call):
        self.elevations_per_call = list(elevations_per_call)
        self.gates = [asyncio.Event() for _ in self.elevations_per_call]
        self.started = 0

    async def query(self, points):
        index = self.started
        self.started += 1
        await self.gates[index].wait()
        return [self.elevations_per_call[index]] * len(points)


@pytest.fixture
def square_path():
    """Roughly 1.1 km square near Los Angeles, ring without closing vertex."""
    return make_path(
        (-118.25, 34.05), (-118.24, 34.05), (-118.24, 34.06), (-118.25, 34.06),
    )


@pytest.fixture
def boundary_collection():
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "trail"},
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[-118.30, 34.00], [-118.29, 34.01], [-118.28, 34.01]],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "park"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [
                        [[-118.25, 34.05], [-118.24, 34.05], [-118.24, 34.06],
                         [-118.25, 34.06], [-118.25, 34.05]],
                        [[-118.248, 34.052], [-118.246, 34.052], [-118.246, 34.054],
                         [-118.248, 34.052]],
                    ],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "marker"},
                "geometry": {"type": "Point", "coordinates": [-118.2, 34.0]},
            },
        ],
    }

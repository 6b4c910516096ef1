"""Resampling of boundary paths into elevation query points."""

import logging
import math

from .models import BoundaryPath, GeoPoint

logger = logging.getLogger(__name__)


def sample_path(path: BoundaryPath, count: int) -> list:
    """Return ``count`` points spread evenly over the vertex-index parameter.

    Sample ``i`` sits at ``t = i / (count - 1)`` of the way from the first to
    the last vertex, where each segment gets an equal share of ``t``
    regardless of its length.  Long segments are therefore sampled as
    sparsely as short ones.

    A path with fewer than 2 vertices has no meaningful samples and yields
    ``[]``; ``count == 1`` yields just the first vertex.
    """
    n = len(path)
    if n < 2 or count <= 0:
        if n < 2:
            logger.debug(f"Path with {n} vertices cannot be sampled")
        return []
    if count == 1:
        return [path[0]]

    last_segment = n - 2
    samples = []
    for i in range(count):
        t = i / (count - 1)
        scaled = t * (n - 1)
        segment = int(math.floor(scaled))
        if segment > last_segment:
            # t == 1: land exactly on the final vertex
            samples.append(path[-1])
            continue
        local_t = scaled - segment
        start = path[segment]
        end = path[segment + 1]
        samples.append(GeoPoint(
            longitude=start.longitude + (end.longitude - start.longitude) * local_t,
            latitude=start.latitude + (end.latitude - start.latitude) * local_t,
        ))
    return samples

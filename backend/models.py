from pydantic import BaseModel, Field
from typing import Literal, Optional

from curtainbuilder.constants import (
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_SAFETY_MARGIN,
    DEFAULT_DEEP_FALLBACK,
    DEFAULT_WALL_TOP_ALTITUDE,
    DEFAULT_WALL_DEPTH,
    DEFAULT_CURTAIN_COLOR,
)


class CurtainRequest(BaseModel):
    geojson: dict                       # FeatureCollection, Feature or geometry
    name: str = "curtains"
    sample_count: int = Field(DEFAULT_SAMPLE_COUNT, ge=1)
    safety_margin: float = Field(DEFAULT_SAFETY_MARGIN, ge=0)
    deep_fallback: float = DEFAULT_DEEP_FALLBACK
    wall_top_altitude: float = DEFAULT_WALL_TOP_ALTITUDE
    wall_depth: float = Field(DEFAULT_WALL_DEPTH, gt=0)
    anchor: Literal["first", "centroid"] = "first"
    multi_geometry: Literal["all", "first"] = "all"
    color: str = DEFAULT_CURTAIN_COLOR
    export: bool = True                 # also write a .glb scene


class JobResponse(BaseModel):
    job_id: str
    status: str
    progress: float
    message: str
    result: Optional[dict] = None


class ModelInfo(BaseModel):
    name: str
    filename: str

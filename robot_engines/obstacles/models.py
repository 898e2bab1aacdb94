"""Obstacle Models."""
from __future__ import annotations

import uuid
from typing import Optional, Tuple

from pydantic import BaseModel, Field

Vec3Tuple = Tuple[float, float, float]

DEFAULT_OBSTACLE_SIZE: Vec3Tuple = (0.55, 0.55, 0.55)


class ObstacleState(BaseModel):
    """
    A box obstacle in the scene.

    position: world center (meters)
    rotation: XYZ euler angles (radians)
    size:     full extents; components are never negative
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    position: Vec3Tuple = (0.0, 0.0, 0.0)
    rotation: Vec3Tuple = (0.0, 0.0, 0.0)
    size: Vec3Tuple = DEFAULT_OBSTACLE_SIZE


class ObstacleCreateRequest(BaseModel):
    size: Vec3Tuple = DEFAULT_OBSTACLE_SIZE
    name: Optional[str] = None


class ObstacleUpdateRequest(BaseModel):
    position: Optional[Vec3Tuple] = None
    rotation: Optional[Vec3Tuple] = None
    size: Optional[Vec3Tuple] = None

"""
Collision Kernel Models.

Result structures written wholesale once per detector tick.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

import numpy as np
from pydantic import BaseModel, Field

from robot_engines.geometry_kernel.schemas import AABB, VecLike, as_vec3

BASE_INDEX = -1
BASE_LABEL = "Base"


class Severity(str, Enum):
    """Aggregate obstacle proximity state."""
    NONE = "none"
    WARNING = "warning"        # Near miss, within the warning margin
    COLLISION = "collision"    # Boxes intersect


class ObstacleCollisionPair(BaseModel):
    part: str
    obstacle_id: str


class CollisionResult(BaseModel):
    """Obstacle detector output for one tick."""
    severity: Severity = Severity.NONE
    warning_parts: List[str] = Field(default_factory=list)
    colliding_parts: List[str] = Field(default_factory=list)
    warning_obstacle_ids: List[str] = Field(default_factory=list)
    colliding_obstacle_ids: List[str] = Field(default_factory=list)
    # Precise pairs for reporting, not just the name sets
    warning_pairs: List[ObstacleCollisionPair] = Field(default_factory=list)
    colliding_pairs: List[ObstacleCollisionPair] = Field(default_factory=list)

    @classmethod
    def all_clear(cls) -> CollisionResult:
        return cls()


class SelfCollisionPair(BaseModel):
    a: str
    b: str
    a_index: int
    b_index: int  # BASE_INDEX for link-vs-base

    @property
    def key(self) -> str:
        if self.b_index == BASE_INDEX:
            return f"{self.a_index}-base"
        return f"{self.a_index}-{self.b_index}"


class SelfCollisionResult(BaseModel):
    pairs: List[SelfCollisionPair] = Field(default_factory=list)

    @property
    def signature(self) -> str:
        return "|".join(sorted(p.key for p in self.pairs))


@dataclass
class BaseProxy:
    """
    Stand-in volume for the robot base in self-collision checks.

    center:     world position of the base pivot
    part_boxes: world AABBs of the parts assigned to the base. Parts that
                belong to rotating joints downstream must not be listed here.
    """
    center: np.ndarray
    part_boxes: List[AABB] = field(default_factory=list)

    @classmethod
    def at(cls, center: VecLike, part_boxes: Sequence[AABB] = ()) -> BaseProxy:
        return cls(center=as_vec3(center), part_boxes=list(part_boxes))

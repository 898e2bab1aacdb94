"""
Obstacle Collision Detector.

Tests every robot body part against every obstacle:
- intersecting OBBs         -> collision
- within the warning margin -> warning (near miss)

The near-miss test grows the obstacle box by the margin and reuses the SAT
routine, so proximity and contact are judged by the same geometry.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from robot_engines.collision_kernel.models import CollisionResult, ObstacleCollisionPair, Severity
from robot_engines.geometry_kernel.ops import expand_obb, obb_intersects_obb
from robot_engines.geometry_kernel.schemas import OBB

DEFAULT_WARNING_MARGIN = 0.03


def detect_obstacle_collisions(
    parts: Mapping[str, Optional[OBB]],
    obstacles: Mapping[str, Optional[OBB]],
    warning_margin: float = DEFAULT_WARNING_MARGIN,
) -> CollisionResult:
    """
    Classify every (body part, obstacle) pair for this tick.

    Entries whose OBB is None have no usable geometry this tick and are
    skipped. With no obstacles at all the result is an explicit all-clear.
    """
    if not obstacles:
        return CollisionResult.all_clear()

    # Expanded boxes are shared by every body part
    grown: Dict[str, OBB] = {
        oid: expand_obb(obb, warning_margin)
        for oid, obb in obstacles.items()
        if obb is not None
    }

    colliding_parts: List[str] = []
    warning_parts: List[str] = []
    colliding_ids: List[str] = []
    warning_ids: List[str] = []
    colliding_pairs: List[ObstacleCollisionPair] = []
    warning_pairs: List[ObstacleCollisionPair] = []

    for part, part_obb in parts.items():
        if part_obb is None:
            continue
        for oid, obstacle_obb in obstacles.items():
            if obstacle_obb is None:
                continue
            if obb_intersects_obb(part_obb, obstacle_obb):
                _add_once(colliding_parts, part)
                _add_once(colliding_ids, oid)
                colliding_pairs.append(ObstacleCollisionPair(part=part, obstacle_id=oid))
            elif obb_intersects_obb(part_obb, grown[oid]):
                _add_once(warning_parts, part)
                _add_once(warning_ids, oid)
                warning_pairs.append(ObstacleCollisionPair(part=part, obstacle_id=oid))

    # A colliding identity is never also reported as a warning
    warning_parts = [p for p in warning_parts if p not in colliding_parts]
    warning_ids = [o for o in warning_ids if o not in colliding_ids]

    if colliding_pairs:
        severity = Severity.COLLISION
    elif warning_pairs:
        severity = Severity.WARNING
    else:
        severity = Severity.NONE

    return CollisionResult(
        severity=severity,
        warning_parts=warning_parts,
        colliding_parts=colliding_parts,
        warning_obstacle_ids=warning_ids,
        colliding_obstacle_ids=colliding_ids,
        warning_pairs=warning_pairs,
        colliding_pairs=colliding_pairs,
    )


def _add_once(items: List[str], value: str) -> None:
    if value not in items:
        items.append(value)


class ObstacleCollisionDetector:
    """Holds detector tuning and the latest result."""

    def __init__(self, warning_margin: float = DEFAULT_WARNING_MARGIN):
        self.warning_margin = warning_margin
        self.last_result: CollisionResult = CollisionResult.all_clear()

    def run(self, parts: Mapping[str, Optional[OBB]], obstacles: Mapping[str, Optional[OBB]]) -> CollisionResult:
        self.last_result = detect_obstacle_collisions(parts, obstacles, self.warning_margin)
        return self.last_result

    def tint_for(self, part: str) -> Severity:
        """Highlight state a renderer should use for one body part."""
        if part in self.last_result.colliding_parts:
            return Severity.COLLISION
        if part in self.last_result.warning_parts:
            return Severity.WARNING
        return Severity.NONE

    def reset(self) -> None:
        self.last_result = CollisionResult.all_clear()

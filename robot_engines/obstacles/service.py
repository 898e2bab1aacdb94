"""
Obstacle Service.

Holds the scene's box obstacles and places new ones on a ring around the
robot, clear of its footprint and of each other (circle approximation in XZ).
"""
from __future__ import annotations

import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from robot_engines.common.errors import UnknownObstacleError
from robot_engines.geometry_kernel.ops import obb_from_pose
from robot_engines.geometry_kernel.schemas import OBB
from robot_engines.obstacles.models import DEFAULT_OBSTACLE_SIZE, ObstacleState, Vec3Tuple

logger = logging.getLogger(__name__)

SPAWN_RING_RADIUS = 1.2
SPAWN_RING_STEP = 0.1       # ring grows per existing obstacle
SPAWN_RING_JITTER = 0.6
SPAWN_ATTEMPTS = 32
ROBOT_AVOID_RADIUS = 0.95
OBSTACLE_GAP = 0.08


def _half_xz(size: Sequence[float]) -> float:
    return max(size[0], size[2]) * 0.5


def _clamp_size(size: Sequence[float]) -> Vec3Tuple:
    return (max(0.0, float(size[0])), max(0.0, float(size[1])), max(0.0, float(size[2])))


def is_spawn_safe_xz(
    x: float,
    z: float,
    size: Sequence[float],
    robot_position: Sequence[float],
    obstacles: Sequence[ObstacleState],
) -> bool:
    my_r = _half_xz(size)
    dxr = x - robot_position[0]
    dzr = z - robot_position[2]
    avoid = ROBOT_AVOID_RADIUS + my_r
    if dxr * dxr + dzr * dzr < avoid * avoid:
        return False

    for other in obstacles:
        dx = x - other.position[0]
        dz = z - other.position[2]
        min_r = _half_xz(other.size) + my_r + OBSTACLE_GAP
        if dx * dx + dz * dz < min_r * min_r:
            return False
    return True


def choose_spawn_xz(
    size: Sequence[float],
    robot_position: Sequence[float],
    obstacles: Sequence[ObstacleState],
    rng: random.Random,
) -> Tuple[float, float]:
    base_r = SPAWN_RING_RADIUS + len(obstacles) * SPAWN_RING_STEP
    for _ in range(SPAWN_ATTEMPTS):
        angle = rng.uniform(0.0, math.pi * 2)
        r = base_r + rng.uniform(0.0, SPAWN_RING_JITTER)
        x = robot_position[0] + math.cos(angle) * r
        z = robot_position[2] + math.sin(angle) * r
        if is_spawn_safe_xz(x, z, size, robot_position, obstacles):
            return x, z
    # Still offset from the robot, even if it overlaps another obstacle
    logger.debug("No free spawn spot after %d attempts, using fallback", SPAWN_ATTEMPTS)
    return robot_position[0] + base_r, robot_position[2]


class ObstacleService:

    def __init__(self, rng: Optional[random.Random] = None):
        self._obstacles: Dict[str, ObstacleState] = {}
        self._rng = rng or random.Random()

    def add(
        self,
        robot_position: Sequence[float] = (0.0, 0.0, 0.0),
        size: Sequence[float] = DEFAULT_OBSTACLE_SIZE,
        name: Optional[str] = None,
    ) -> ObstacleState:
        """Spawn an obstacle resting on the floor near the robot."""
        size = _clamp_size(size)
        robot_position = [float(v) for v in robot_position]
        existing = self.list()
        x, z = choose_spawn_xz(size, robot_position, existing, self._rng)
        obstacle = ObstacleState(
            name=name or f"Obstacle {len(existing) + 1}",
            position=(x, size[1] * 0.5, z),
            size=size,
        )
        self._obstacles[obstacle.id] = obstacle
        logger.info("Obstacle added: %s (%s) at (%.3f, %.3f)", obstacle.id, obstacle.name, x, z)
        return obstacle

    def put(self, obstacle: ObstacleState) -> ObstacleState:
        """Insert or replace an obstacle at an explicit pose."""
        stored = obstacle.model_copy(update={"size": _clamp_size(obstacle.size)})
        self._obstacles[stored.id] = stored
        return stored

    def get(self, obstacle_id: str) -> ObstacleState:
        obstacle = self._obstacles.get(obstacle_id)
        if obstacle is None:
            raise UnknownObstacleError(f"Obstacle {obstacle_id} not found")
        return obstacle

    def remove(self, obstacle_id: str) -> None:
        if self._obstacles.pop(obstacle_id, None) is None:
            raise UnknownObstacleError(f"Obstacle {obstacle_id} not found")
        logger.info("Obstacle removed: %s", obstacle_id)

    def update_pose(
        self,
        obstacle_id: str,
        position: Optional[Sequence[float]] = None,
        rotation: Optional[Sequence[float]] = None,
    ) -> ObstacleState:
        obstacle = self.get(obstacle_id)
        update = {}
        if position is not None:
            update["position"] = tuple(float(v) for v in position)
        if rotation is not None:
            update["rotation"] = tuple(float(v) for v in rotation)
        obstacle = obstacle.model_copy(update=update)
        self._obstacles[obstacle_id] = obstacle
        return obstacle

    def update_size(self, obstacle_id: str, size: Sequence[float]) -> ObstacleState:
        obstacle = self.get(obstacle_id).model_copy(update={"size": _clamp_size(size)})
        self._obstacles[obstacle_id] = obstacle
        return obstacle

    def clear(self) -> None:
        count = len(self._obstacles)
        self._obstacles.clear()
        logger.info("Obstacles cleared: %d removed", count)

    def list(self) -> List[ObstacleState]:
        return list(self._obstacles.values())

    def obbs(self) -> Dict[str, OBB]:
        """World-space boxes keyed by obstacle id."""
        return {
            o.id: obb_from_pose(o.position, o.rotation, [s * 0.5 for s in o.size])
            for o in self._obstacles.values()
        }

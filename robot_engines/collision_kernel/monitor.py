"""
Collision Monitor.

Runs both detectors against a world snapshot at a fixed cadence and keeps
the latest results between runs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from robot_engines.collision_kernel.cadence import DEFAULT_COLLISION_HZ, FixedRateGate
from robot_engines.collision_kernel.models import BaseProxy, CollisionResult, SelfCollisionResult
from robot_engines.collision_kernel.obstacle_detector import ObstacleCollisionDetector
from robot_engines.collision_kernel.self_detector import SelfCollisionDetector
from robot_engines.geometry_kernel.schemas import OBB

logger = logging.getLogger(__name__)


@dataclass
class WorldSnapshot:
    """World-space geometry for one tick. None marks unavailable geometry."""
    part_obbs: Dict[str, Optional[OBB]] = field(default_factory=dict)
    obstacle_obbs: Dict[str, Optional[OBB]] = field(default_factory=dict)
    pivots: List[np.ndarray] = field(default_factory=list)
    base: Optional[BaseProxy] = None


class CollisionMonitor:

    def __init__(
        self,
        obstacle_detector: Optional[ObstacleCollisionDetector] = None,
        self_detector: Optional[SelfCollisionDetector] = None,
        hz: float = DEFAULT_COLLISION_HZ,
    ):
        self.obstacle_detector = obstacle_detector or ObstacleCollisionDetector()
        self.self_detector = self_detector or SelfCollisionDetector()
        self.gate = FixedRateGate(hz)
        self.collision = CollisionResult.all_clear()
        self.self_collision = SelfCollisionResult()
        self.runs = 0

    def update(self, dt: float, snapshot: WorldSnapshot) -> Tuple[CollisionResult, SelfCollisionResult]:
        """Current results; recomputed only when the cadence gate opens."""
        if self.gate.ready(dt):
            self.evaluate(snapshot)
        return self.collision, self.self_collision

    def evaluate(self, snapshot: WorldSnapshot) -> Tuple[CollisionResult, SelfCollisionResult]:
        """Run both detectors now, bypassing the cadence gate."""
        self.runs += 1
        self.collision = self.obstacle_detector.run(snapshot.part_obbs, snapshot.obstacle_obbs)
        changed = self.self_detector.run(snapshot.pivots, snapshot.base)
        if changed is not None:
            self.self_collision = changed
            logger.debug("Self-collision pairs changed: %s", changed.signature or "<none>")
        return self.collision, self.self_collision

    def reset(self) -> None:
        self.gate.reset()
        self.obstacle_detector.reset()
        self.self_detector.reset()
        self.collision = CollisionResult.all_clear()
        self.self_collision = SelfCollisionResult()

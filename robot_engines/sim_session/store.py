"""
Simulation Store.

Single externally owned state for one simulation session. Result fields are
only ever replaced wholesale, so a reader never sees a half-updated tick.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from robot_engines.animation_timeline.library import AnimationLibrary
from robot_engines.collision_kernel.models import CollisionResult, SelfCollisionResult
from robot_engines.obstacles.service import ObstacleService
from robot_engines.playback_core.models import PlaybackOptions, PlaybackState, ReportEvent
from robot_engines.robot_rig.service import RobotRuntime


@dataclass
class SimStore:
    robot: RobotRuntime
    obstacles: ObstacleService = field(default_factory=ObstacleService)
    library: AnimationLibrary = field(default_factory=AnimationLibrary)
    collision: CollisionResult = field(default_factory=CollisionResult.all_clear)
    self_collision: SelfCollisionResult = field(default_factory=SelfCollisionResult)
    playback: PlaybackState = field(default_factory=PlaybackState)
    options: PlaybackOptions = field(default_factory=PlaybackOptions)
    report: List[ReportEvent] = field(default_factory=list)
    report_open: bool = False
    sim_time: float = 0.0

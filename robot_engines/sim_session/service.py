"""
Simulation Service.

Wires the robot, obstacles, animation library, collision monitor and playback
scheduler around one SimStore, and exposes the per-frame step used by the
host loop.
"""
from __future__ import annotations

import logging
import random
from typing import Any, List, Optional, Sequence

from robot_engines.animation_timeline.models import AnimationDefinition, SaveResult
from robot_engines.collision_kernel.monitor import CollisionMonitor, WorldSnapshot
from robot_engines.collision_kernel.obstacle_detector import ObstacleCollisionDetector
from robot_engines.collision_kernel.self_detector import SelfCollisionDetector
from robot_engines.config.settings import SimSettings, get_sim_settings
from robot_engines.obstacles.models import DEFAULT_OBSTACLE_SIZE, ObstacleState
from robot_engines.obstacles.service import ObstacleService
from robot_engines.playback_core.models import (
    PlaybackOptions,
    PlaybackOptionsPatch,
    PlaybackStatus,
    StartResult,
    StopReason,
    TickOutcome,
)
from robot_engines.playback_core.scheduler import PlaybackScheduler
from robot_engines.robot_rig.presets import ARM01_RIG
from robot_engines.robot_rig.schemas import JointState, RigDefinition
from robot_engines.robot_rig.service import RobotRuntime
from robot_engines.sim_session.store import SimStore

logger = logging.getLogger(__name__)


def build_monitor(settings: SimSettings) -> CollisionMonitor:
    return CollisionMonitor(
        obstacle_detector=ObstacleCollisionDetector(warning_margin=settings.warning_margin),
        self_detector=SelfCollisionDetector(
            thickness=settings.link_thickness,
            min_index_gap=settings.min_index_gap,
            base_padding=settings.base_padding,
            base_min_link_index=settings.base_min_link_index,
        ),
        hz=settings.collision_hz,
    )


class SimulationService:

    def __init__(
        self,
        settings: Optional[SimSettings] = None,
        rig: RigDefinition = ARM01_RIG,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or get_sim_settings()
        self.store = SimStore(robot=RobotRuntime(rig), obstacles=ObstacleService(rng=rng))
        self.monitor = build_monitor(self.settings)
        self.scheduler = PlaybackScheduler(
            library=self.store.library,
            pose_sink=self.store.robot,
            monitor=self.monitor,
            world=self.snapshot,
            options=self.store.options,
            slot_duration=self.settings.slot_duration,
        )

    # --- Frame ---

    def snapshot(self) -> WorldSnapshot:
        robot = self.store.robot
        return WorldSnapshot(
            part_obbs=robot.body_part_obbs(),
            obstacle_obbs=self.store.obstacles.obbs(),
            pivots=robot.pivot_positions(),
            base=robot.base_proxy(),
        )

    def step(self, dt: float) -> TickOutcome:
        """
        Advance one frame. While playing, the scheduler runs the monitor after
        its pose write; when idle the monitor runs alone so manual jogging
        still updates collision state.
        """
        if self.scheduler.playing:
            outcome = self.scheduler.tick(dt)
        else:
            collision, self_collision = self.monitor.update(dt, self.snapshot())
            outcome = TickOutcome(
                status=PlaybackStatus.IDLE,
                sim_time=self.scheduler.sim_clock,
                collision=collision,
                self_collision=self_collision,
            )
        self._sync()
        return outcome

    def refresh_collisions(self) -> None:
        """Re-run both detectors now, bypassing the cadence gate."""
        self.monitor.evaluate(self.snapshot())
        self._sync()

    def _sync(self) -> None:
        store = self.store
        store.collision = self.monitor.collision
        store.self_collision = self.monitor.self_collision
        store.playback = self.scheduler.state.model_copy()
        store.options = self.scheduler.options
        store.report = list(self.scheduler.report)
        store.report_open = self.scheduler.report_open
        store.sim_time = self.scheduler.sim_clock

    # --- Robot ---

    def joints(self) -> List[JointState]:
        return self.store.robot.joints()

    def set_joint(self, name: str, angle_deg: float) -> JointState:
        return self.store.robot.set_joint_deg(name, angle_deg)

    def nudge_joint(self, name: str, direction: int) -> JointState:
        return self.store.robot.nudge_joint(name, direction)

    def set_base_pose(
        self, x: Optional[float] = None, z: Optional[float] = None, yaw_deg: Optional[float] = None
    ) -> None:
        robot = self.store.robot
        if x is not None or z is not None:
            current = robot.base_position
            robot.set_base_position_xz(
                current[0] if x is None else x,
                current[2] if z is None else z,
            )
        if yaw_deg is not None:
            robot.set_base_yaw_deg(yaw_deg)

    def nudge_base_yaw(self, direction: int) -> None:
        self.store.robot.nudge_base_yaw(direction)

    def reset_robot(self) -> None:
        self.store.robot.reset_pose()

    # --- Obstacles ---

    def add_obstacle(self, size: Sequence[float] = DEFAULT_OBSTACLE_SIZE, name: Optional[str] = None) -> ObstacleState:
        return self.store.obstacles.add(self.store.robot.base_position, size=size, name=name)

    def update_obstacle(
        self,
        obstacle_id: str,
        position: Optional[Sequence[float]] = None,
        rotation: Optional[Sequence[float]] = None,
        size: Optional[Sequence[float]] = None,
    ) -> ObstacleState:
        obstacles = self.store.obstacles
        obstacle = obstacles.update_pose(obstacle_id, position=position, rotation=rotation)
        if size is not None:
            obstacle = obstacles.update_size(obstacle_id, size)
        return obstacle

    def remove_obstacle(self, obstacle_id: str) -> None:
        self.store.obstacles.remove(obstacle_id)

    def list_obstacles(self) -> List[ObstacleState]:
        return self.store.obstacles.list()

    def clear_obstacles(self) -> None:
        self.store.obstacles.clear()

    # --- Animations ---

    def save_animation(self, animation: AnimationDefinition) -> SaveResult:
        return self.store.library.save(animation)

    def import_animation(self, payload: Any) -> SaveResult:
        return self.store.library.import_json(payload)

    def get_animation(self, animation_id: str) -> AnimationDefinition:
        return self.store.library.require(animation_id)

    def delete_animation(self, animation_id: str) -> None:
        self.store.library.delete(animation_id)

    def list_animations(self) -> List[AnimationDefinition]:
        return self.store.library.list()

    # --- Playback ---

    def start_playback(self, animation_id: str) -> StartResult:
        result = self.scheduler.start(animation_id)
        self._sync()
        return result

    def stop_playback(self, reason: StopReason = StopReason.USER) -> None:
        self.scheduler.stop(reason)
        self._sync()

    def set_options(self, patch: PlaybackOptionsPatch) -> PlaybackOptions:
        update = patch.model_dump(exclude_none=True)
        self.scheduler.options = self.scheduler.options.model_copy(update=update)
        self._sync()
        return self.scheduler.options

    def clear_report(self) -> None:
        self.scheduler.clear_report()
        self._sync()

    def close_report(self) -> None:
        self.scheduler.close_report()
        self._sync()


_default_service: Optional[SimulationService] = None


def get_sim_service() -> SimulationService:
    global _default_service
    if _default_service is None:
        _default_service = SimulationService()
    return _default_service


def set_sim_service(service: Optional[SimulationService]) -> None:
    """Override the default service (for testing)."""
    global _default_service
    _default_service = service

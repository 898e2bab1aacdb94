"""
Robot Runtime.

Owns joint values and the robot's world placement, and derives world-space
geometry for the collision kernel:
- joint frames (forward kinematics down the declared chain)
- joint pivot positions (link segments for self-collision)
- body part OBBs (obstacle collision)
- the base proxy (link-vs-base checks)
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional

import numpy as np

from robot_engines.collision_kernel.models import BaseProxy
from robot_engines.common.errors import UnknownJointError
from robot_engines.geometry_kernel.ops import (
    aabb_transform,
    axis_angle_matrix,
    obb_from_world_transform,
    translation_matrix,
)
from robot_engines.geometry_kernel.schemas import AABB, OBB
from robot_engines.robot_rig.schemas import JointState, RigDefinition

logger = logging.getLogger(__name__)

# Jog step for joints and base yaw
DEFAULT_JOINT_STEP_RAD = math.radians(0.5)

BASE_YAW_TARGET = "base_yaw"
JOINT_TARGET = "joint"


def _clamp(value: float, lo: Optional[float], hi: Optional[float]) -> float:
    if lo is not None:
        value = max(lo, value)
    if hi is not None:
        value = min(hi, value)
    return value


class RobotRuntime:

    def __init__(self, rig: RigDefinition):
        self.rig = rig
        self._joints: Dict[str, JointState] = {}
        for idx, spec in enumerate(rig.joints):
            home = math.radians(spec.home_deg)
            label = (spec.label or spec.name)
            if label.endswith("_Rotation"):
                label = label[: -len("_Rotation")]
            self._joints[spec.name] = JointState(
                name=spec.name,
                label=f"J{idx + 1} {label}",
                axis=spec.axis,
                angle_rad=home,
                home_angle_rad=home,
                min_rad=math.radians(spec.min_deg) if spec.min_deg is not None else None,
                max_rad=math.radians(spec.max_deg) if spec.max_deg is not None else None,
                step_rad=DEFAULT_JOINT_STEP_RAD,
            )
        self.base_position = np.zeros(3)
        self.base_yaw_rad = 0.0

    # --- Joint state ---

    @property
    def joint_names(self) -> List[str]:
        return [j.name for j in self.rig.joints]

    def joints(self) -> List[JointState]:
        return [self._joints[name].model_copy() for name in self.joint_names]

    def get_joint(self, name: str) -> JointState:
        joint = self._joints.get(name)
        if joint is None:
            raise UnknownJointError(f"Unknown joint {name}")
        return joint.model_copy()

    def set_joint_rad(self, name: str, angle_rad: float) -> JointState:
        joint = self._joints.get(name)
        if joint is None:
            raise UnknownJointError(f"Unknown joint {name}")
        clamped = _clamp(angle_rad, joint.min_rad, joint.max_rad)
        self._joints[name] = joint.model_copy(update={"angle_rad": clamped})
        return self._joints[name].model_copy()

    def set_joint_deg(self, name: str, angle_deg: float) -> JointState:
        return self.set_joint_rad(name, math.radians(angle_deg))

    def nudge_joint(self, name: str, direction: int) -> JointState:
        joint = self.get_joint(name)
        return self.set_joint_rad(name, joint.angle_rad + direction * joint.step_rad)

    # --- Base placement ---

    def set_base_yaw_deg(self, yaw_deg: float) -> None:
        self.base_yaw_rad = math.radians(yaw_deg)

    def nudge_base_yaw(self, direction: int) -> None:
        self.base_yaw_rad += direction * DEFAULT_JOINT_STEP_RAD

    def set_base_position_xz(self, x: float, z: float) -> None:
        self.base_position = np.array([x, self.base_position[1], z], dtype=float)

    def reset_position(self) -> None:
        self.base_position = np.zeros(3)

    def reset_pose(self) -> None:
        """Home every joint and put the robot back at the origin."""
        self.reset_position()
        self.base_yaw_rad = 0.0
        for name, joint in self._joints.items():
            self._joints[name] = joint.model_copy(update={"angle_rad": joint.home_angle_rad})

    def zero_targets(self) -> None:
        """Base yaw and every joint to 0 deg (playback start baseline)."""
        self.base_yaw_rad = 0.0
        for name in self.joint_names:
            self.set_joint_rad(name, 0.0)

    def apply(self, target_kind: str, target_name: Optional[str], degrees: float) -> None:
        """Pose sink entry point used by playback (angles in degrees)."""
        if target_kind == BASE_YAW_TARGET:
            self.set_base_yaw_deg(degrees)
        elif target_kind == JOINT_TARGET:
            if target_name not in self._joints:
                # Animations may name joints this rig does not have
                logger.debug("Ignoring pose write for unknown joint %s", target_name)
                return
            self.set_joint_deg(target_name, degrees)
        else:
            raise ValueError(f"Unknown target kind {target_kind!r}")

    # --- World geometry ---

    def root_matrix(self) -> np.ndarray:
        return translation_matrix(self.base_position) @ axis_angle_matrix("y", self.base_yaw_rad)

    def joint_world_matrices(self) -> Dict[str, np.ndarray]:
        root = self.root_matrix()
        frames: Dict[str, np.ndarray] = {}
        for spec in self.rig.joints:
            parent = root if spec.parent is None else frames[spec.parent]
            angle = self._joints[spec.name].angle_rad
            frames[spec.name] = parent @ translation_matrix(spec.origin) @ axis_angle_matrix(spec.axis, angle)
        return frames

    def pivot_positions(self) -> List[np.ndarray]:
        frames = self.joint_world_matrices()
        return [frames[name][:3, 3].copy() for name in self.joint_names]

    def _part_matrix(self, joint: Optional[str], frames: Dict[str, np.ndarray], root: np.ndarray) -> np.ndarray:
        return root if joint is None else frames[joint]

    def body_part_obbs(self) -> Dict[str, Optional[OBB]]:
        root = self.root_matrix()
        frames = self.joint_world_matrices()
        return {
            part.name: obb_from_world_transform(part.local_min, part.local_max, self._part_matrix(part.joint, frames, root))
            for part in self.rig.body_parts
        }

    def base_proxy(self) -> BaseProxy:
        root = self.root_matrix()
        frames = self.joint_world_matrices()
        boxes: List[AABB] = []
        for part in self.rig.body_parts:
            if not part.base_owned:
                continue
            local = AABB.from_bounds(part.local_min, part.local_max)
            boxes.append(aabb_transform(local, self._part_matrix(part.joint, frames, root)))
        return BaseProxy(center=root[:3, 3].copy(), part_boxes=boxes)

"""Robot Rig Schemas (joints, body parts, runtime joint state)."""
from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

JointAxis = Literal["x", "y", "z"]
Vec3Tuple = Tuple[float, float, float]


class JointSpec(BaseModel):
    """A rotating joint. Its frame sits at `origin` in the parent frame."""
    name: str
    axis: JointAxis = "z"
    parent: Optional[str] = None  # None -> attached to the robot root
    origin: Vec3Tuple = (0.0, 0.0, 0.0)
    home_deg: float = 0.0
    min_deg: Optional[float] = None
    max_deg: Optional[float] = None
    label: Optional[str] = None


class BodyPartSpec(BaseModel):
    """
    A rigid piece of the robot with local bounding extents.

    joint:      frame the part rides on (None -> robot root)
    base_owned: counts toward the base proxy in self-collision checks
    """
    name: str
    joint: Optional[str] = None
    local_min: Vec3Tuple
    local_max: Vec3Tuple
    base_owned: bool = False

    @model_validator(mode="after")
    def _check_extents(self) -> BodyPartSpec:
        if any(lo > hi for lo, hi in zip(self.local_min, self.local_max)):
            raise ValueError(f"Body part {self.name}: local_min exceeds local_max")
        return self


class RigDefinition(BaseModel):
    """
    Explicit robot description built once when an asset loads.

    Joint order is the kinematic chain order used for link segments.
    """
    name: str
    joints: List[JointSpec]
    body_parts: List[BodyPartSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> RigDefinition:
        seen: set = set()
        for joint in self.joints:
            if joint.name in seen:
                raise ValueError(f"Duplicate joint {joint.name}")
            if joint.parent is not None and joint.parent not in seen:
                raise ValueError(f"Joint {joint.name} references unknown or later parent {joint.parent}")
            if joint.min_deg is not None and joint.max_deg is not None and joint.min_deg > joint.max_deg:
                raise ValueError(f"Joint {joint.name} has min_deg > max_deg")
            seen.add(joint.name)

        part_names: set = set()
        for part in self.body_parts:
            if part.name in part_names:
                raise ValueError(f"Duplicate body part {part.name}")
            if part.joint is not None and part.joint not in seen:
                raise ValueError(f"Body part {part.name} references unknown joint {part.joint}")
            part_names.add(part.name)
        return self


class JointState(BaseModel):
    """Current value of one controllable joint (radians)."""
    name: str
    label: str
    axis: JointAxis
    angle_rad: float
    home_angle_rad: float
    min_rad: Optional[float] = None
    max_rad: Optional[float] = None
    step_rad: float

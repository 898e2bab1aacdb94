"""Request/response schemas for the simulation HTTP surface."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from robot_engines.collision_kernel.models import CollisionResult, SelfCollisionResult, Severity
from robot_engines.playback_core.models import PlaybackOptions, PlaybackState, ReportEvent, StopReason
from robot_engines.robot_rig.schemas import JointState


class JointSetRequest(BaseModel):
    angle_deg: float


class NudgeRequest(BaseModel):
    direction: Literal[-1, 1]


class BasePoseRequest(BaseModel):
    x: Optional[float] = None
    z: Optional[float] = None
    yaw_deg: Optional[float] = None


class RobotStateResponse(BaseModel):
    joints: List[JointState]
    base_position: List[float]
    base_yaw_rad: float


class StepRequest(BaseModel):
    dt: float = Field(..., ge=0.0, description="Elapsed seconds since the previous frame")


class PlaybackStartRequest(BaseModel):
    animation_id: str


class PlaybackStopRequest(BaseModel):
    reason: StopReason = StopReason.USER


class PlaybackStateResponse(BaseModel):
    state: PlaybackState
    options: PlaybackOptions
    sim_time: float
    last_stop_reason: Optional[StopReason] = None


class CollisionStateResponse(BaseModel):
    collision: CollisionResult
    self_collision: SelfCollisionResult
    part_tints: Dict[str, Severity] = Field(default_factory=dict)


class ReportResponse(BaseModel):
    events: List[ReportEvent]
    open: bool

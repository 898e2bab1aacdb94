"""Playback Core Models."""
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from robot_engines.collision_kernel.models import CollisionResult, SelfCollisionResult


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"


class StopReason(str, Enum):
    USER = "user"
    ENDED = "ended"
    COLLISION = "collision"
    SYSTEM = "system"


# Stop reasons that should bring up the report view
REPORT_OPENING_REASONS = frozenset({StopReason.ENDED, StopReason.COLLISION})


class PlaybackState(BaseModel):
    status: PlaybackStatus = PlaybackStatus.IDLE
    animation_id: Optional[str] = None
    layer_keys: List[int] = Field(default_factory=list)
    slots: List[int] = Field(default_factory=list)
    playhead: float = 0.0    # seconds, 0..len(slots) * slot_duration
    direction: int = 1       # -1 only while a pingpong run plays backward
    slot_index: int = 0      # slot the last tick sampled


class PlaybackOptions(BaseModel):
    stop_on_collision: bool = True
    include_self_collision: bool = False


class PlaybackOptionsPatch(BaseModel):
    stop_on_collision: Optional[bool] = None
    include_self_collision: Optional[bool] = None


class ReportEvent(BaseModel):
    """A pair entering collision, stamped with the simulation clock."""
    t_sec: float
    layer: int
    kind: Literal["obstacle", "self"]
    a: str
    b: str


class StartResult(BaseModel):
    ok: bool
    error: Optional[str] = None
    state: Optional[PlaybackState] = None


class TickOutcome(BaseModel):
    status: PlaybackStatus
    playhead: float = 0.0
    direction: int = 1
    layer: Optional[int] = None
    alpha: Optional[float] = None
    sim_time: float = 0.0
    new_events: List[ReportEvent] = Field(default_factory=list)
    stop_reason: Optional[StopReason] = None
    collision: Optional[CollisionResult] = None
    self_collision: Optional[SelfCollisionResult] = None

"""
Animation Timeline Models.

An animation is a set of keyframe nodes laid out on integer layers; each layer
is one time slot on the playback timeline.
"""
from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

ANIMATION_FORMAT_VERSION = 3


def _now_ms() -> float:
    return time.time() * 1000.0


class LoopMode(str, Enum):
    NONE = "none"           # Play once, stop at the end
    PING_PONG = "pingpong"  # Forward then backward, forever


class BaseYawTarget(BaseModel):
    kind: Literal["base_yaw"] = "base_yaw"


class JointTarget(BaseModel):
    kind: Literal["joint"] = "joint"
    name: str


AnimTarget = Annotated[Union[BaseYawTarget, JointTarget], Field(discriminator="kind")]


class AnimNodeData(BaseModel):
    """
    One keyframe: drive `target` from start_deg to end_deg across `layer`.

    start_deg is derived (see normalize_animation_start_deg), not authored.
    """
    target: AnimTarget
    start_deg: float = 0.0
    end_deg: float
    layer: float = 1  # 1-based; validated by resolve_timeline
    label: Optional[str] = None


class NodePosition(BaseModel):
    """Editor canvas placement; ignored by playback."""
    x: float = 0.0
    y: float = 0.0


class AnimNode(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    position: NodePosition = Field(default_factory=NodePosition)
    data: AnimNodeData


class AnimationDefinition(BaseModel):
    version: Literal[3] = ANIMATION_FORMAT_VERSION
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    loop_mode: LoopMode = LoopMode.NONE
    nodes: List[AnimNode] = Field(default_factory=list)
    created_at: float = Field(default_factory=_now_ms)
    updated_at: float = Field(default_factory=_now_ms)


class TimelineResolution(BaseModel):
    """
    Outcome of resolving an animation onto the timeline.

    layer_keys: distinct layers that carry nodes, ascending
    slots:      every played slot 1..max(layer_keys); gaps are rest slots
    """
    ok: bool
    layer_keys: List[int] = Field(default_factory=list)
    slots: List[int] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: str) -> TimelineResolution:
        return cls(ok=False, error=reason)


class SaveResult(BaseModel):
    ok: bool
    animation: Optional[AnimationDefinition] = None
    error: Optional[str] = None

"""
Animation file import.

Accepts the current layered format (version 3) as well as the two older
layouts and converts them to AnimationDefinition:
- version 1: a chain of steps; list order becomes layers 1..N
- version 2: a node graph; the path from the start node following the
  lowest-priority edge becomes layers 1..N, unreached nodes land on layer 1

Files written by the browser editor use camelCase keys and the "baseYaw"
target kind; both spellings are accepted.
"""
from __future__ import annotations

import re
import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from robot_engines.animation_timeline.models import (
    AnimationDefinition,
    AnimNode,
    AnimNodeData,
    AnimTarget,
    LoopMode,
    NodePosition,
)
from robot_engines.animation_timeline.resolver import normalize_animation_start_deg

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")

V1_BASE_X = 140.0
V1_BASE_Y = 120.0
V1_STEP_GAP_Y = 140.0

UNSUPPORTED_FORMAT = "Unsupported animation JSON format (expected version 1/2/3)."


class AnimStepV1(BaseModel):
    id: str
    target: AnimTarget
    start_deg: float
    end_deg: float
    next_id: Optional[str] = None


class AnimationDefV1(BaseModel):
    version: Literal[1]
    id: str
    name: str
    loop_mode: LoopMode
    start_step_id: Optional[str] = None
    steps: List[AnimStepV1]
    created_at: Optional[float] = None
    updated_at: Optional[float] = None


class AnimNodeDataV2(BaseModel):
    target: AnimTarget
    start_deg: float
    end_deg: float
    label: Optional[str] = None


class AnimNodeV2(BaseModel):
    id: str
    position: NodePosition
    data: AnimNodeDataV2


class AnimEdgeDataV2(BaseModel):
    priority: float


class AnimEdgeV2(BaseModel):
    id: str
    source: str
    target: str
    data: AnimEdgeDataV2


class AnimationDefV2(BaseModel):
    version: Literal[2]
    id: str
    name: str
    loop_mode: LoopMode
    start_node_id: Optional[str] = None
    nodes: List[AnimNodeV2]
    edges: List[AnimEdgeV2] = Field(default_factory=list)
    created_at: Optional[float] = None
    updated_at: Optional[float] = None


class ImportResult(BaseModel):
    ok: bool
    animation: Optional[AnimationDefinition] = None
    error: Optional[str] = None


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def normalize_keys(payload: Any) -> Any:
    """Recursively snake_case dict keys and map the camelCase target kind."""
    if isinstance(payload, list):
        return [normalize_keys(v) for v in payload]
    if not isinstance(payload, dict):
        return payload
    out: Dict[str, Any] = {}
    for key, value in payload.items():
        out[_snake(key) if isinstance(key, str) else key] = normalize_keys(value)
    if out.get("kind") == "baseYaw":
        out["kind"] = "base_yaw"
    return out


def migrate_v1(v1: AnimationDefV1) -> AnimationDefinition:
    now = time.time() * 1000.0
    nodes = [
        AnimNode(
            id=step.id,
            position=NodePosition(x=V1_BASE_X, y=V1_BASE_Y + idx * V1_STEP_GAP_Y),
            data=AnimNodeData(
                target=step.target,
                start_deg=step.start_deg,
                end_deg=step.end_deg,
                layer=idx + 1,
                label=f"Step {idx + 1}",
            ),
        )
        for idx, step in enumerate(v1.steps)
    ]
    return AnimationDefinition(
        id=v1.id,
        name=v1.name,
        loop_mode=v1.loop_mode,
        nodes=nodes,
        created_at=v1.created_at if v1.created_at is not None else now,
        updated_at=now,
    )


def priority_path_v2(v2: AnimationDefV2) -> List[str]:
    """Node ids from the start node, always taking the lowest-priority edge."""
    node_ids = {n.id for n in v2.nodes}
    if not v2.start_node_id or v2.start_node_id not in node_ids:
        return []

    outgoing: Dict[str, List[AnimEdgeV2]] = {nid: [] for nid in node_ids}
    for edge in v2.edges:
        if edge.source in node_ids and edge.target in node_ids:
            outgoing[edge.source].append(edge)

    ordered: List[str] = []
    visited = set()
    current: Optional[str] = v2.start_node_id
    while current and current not in visited:
        visited.add(current)
        ordered.append(current)
        outs = sorted(outgoing.get(current, []), key=lambda e: e.data.priority)
        current = outs[0].target if outs else None
    return ordered


def migrate_v2(v2: AnimationDefV2) -> AnimationDefinition:
    now = time.time() * 1000.0
    layer_by_id = {nid: idx + 1 for idx, nid in enumerate(priority_path_v2(v2))}
    nodes = [
        AnimNode(
            id=n.id,
            position=n.position,
            data=AnimNodeData(
                target=n.data.target,
                start_deg=n.data.start_deg,
                end_deg=n.data.end_deg,
                layer=layer_by_id.get(n.id, 1),
                label=n.data.label or f"Step {idx + 1}",
            ),
        )
        for idx, n in enumerate(v2.nodes)
    ]
    return AnimationDefinition(
        id=v2.id,
        name=v2.name,
        loop_mode=v2.loop_mode,
        nodes=nodes,
        created_at=v2.created_at if v2.created_at is not None else now,
        updated_at=now,
    )


def coerce_animation(payload: Any) -> ImportResult:
    """Parse any supported animation document. Never raises."""
    if not isinstance(payload, dict):
        return ImportResult(ok=False, error=UNSUPPORTED_FORMAT)
    data = normalize_keys(payload)
    version = data.get("version")
    try:
        if version == 3:
            animation = AnimationDefinition.model_validate(data)
        elif version == 1:
            animation = migrate_v1(AnimationDefV1.model_validate(data))
        elif version == 2:
            animation = migrate_v2(AnimationDefV2.model_validate(data))
        else:
            return ImportResult(ok=False, error=UNSUPPORTED_FORMAT)
    except ValidationError as exc:
        return ImportResult(ok=False, error=f"Invalid version {version} animation: {exc.error_count()} error(s)")
    return ImportResult(ok=True, animation=normalize_animation_start_deg(animation))

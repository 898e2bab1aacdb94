"""
Timeline resolution.

Layer N is the time slot (N-1, N]. Missing layers between used ones become
rest slots in which no target is driven and every target holds its value.
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Set

from robot_engines.animation_timeline.models import (
    AnimationDefinition,
    AnimNode,
    AnimTarget,
    BaseYawTarget,
    TimelineResolution,
)


ERR_NO_NODES = "Add at least one animation box."
ERR_BAD_LAYER = "Layer must be a positive integer."


def target_key(target: AnimTarget) -> str:
    if isinstance(target, BaseYawTarget):
        return "base_yaw"
    return f"joint:{target.name}"


def node_layer(node: AnimNode) -> float:
    """Integer layer of a node (fractional layers truncate), NaN if unusable."""
    layer = node.data.layer
    if not math.isfinite(layer):
        return math.nan
    return float(math.floor(layer))


def resolve_timeline(animation: AnimationDefinition) -> TimelineResolution:
    """Validate the node layout and compute the played slots. Never raises."""
    if not animation.nodes:
        return TimelineResolution.failed(ERR_NO_NODES)

    seen_by_layer: Dict[int, Set[str]] = {}
    for node in animation.nodes:
        layer = node_layer(node)
        if not math.isfinite(layer) or layer <= 0:
            return TimelineResolution.failed(ERR_BAD_LAYER)
        layer = int(layer)
        targets = seen_by_layer.setdefault(layer, set())
        key = target_key(node.data.target)
        if key in targets:
            return TimelineResolution.failed(f"Duplicate target in layer {layer}.")
        targets.add(key)

    layer_keys = sorted(seen_by_layer)
    return TimelineResolution(
        ok=True,
        layer_keys=layer_keys,
        slots=list(range(1, layer_keys[-1] + 1)),
    )


def _ordered(nodes: Iterable[AnimNode]) -> List[AnimNode]:
    return sorted(nodes, key=lambda n: (node_layer(n), n.id))


def compute_auto_start_deg(nodes: Iterable[AnimNode]) -> Dict[str, float]:
    """
    Start angle per node id: the end of the same target's most recent earlier
    layer, or 0 the first time a target appears.
    """
    last_end: Dict[str, float] = {}
    start_by_id: Dict[str, float] = {}
    for node in _ordered(nodes):
        key = target_key(node.data.target)
        start_by_id[node.id] = last_end.get(key, 0.0)
        last_end[key] = node.data.end_deg
    return start_by_id


def normalize_animation_start_deg(animation: AnimationDefinition) -> AnimationDefinition:
    """Copy of the animation with every node's start_deg re-derived."""
    start_by_id = compute_auto_start_deg(animation.nodes)
    nodes = [
        node.model_copy(update={
            "data": node.data.model_copy(update={"start_deg": start_by_id.get(node.id, 0.0)}),
        })
        for node in animation.nodes
    ]
    return animation.model_copy(update={"nodes": nodes})


def nodes_in_layer(animation: AnimationDefinition, layer: int) -> List[AnimNode]:
    return [n for n in animation.nodes if node_layer(n) == layer]

"""Tests for timeline resolution and start-angle derivation."""
import math

import pytest

from robot_engines.animation_timeline.models import (
    AnimationDefinition,
    AnimNode,
    AnimNodeData,
    BaseYawTarget,
    JointTarget,
)
from robot_engines.animation_timeline.resolver import (
    compute_auto_start_deg,
    normalize_animation_start_deg,
    resolve_timeline,
    target_key,
)


def _node(node_id, layer, end_deg, joint=None, start_deg=0.0):
    target = JointTarget(name=joint) if joint else BaseYawTarget()
    return AnimNode(id=node_id, data=AnimNodeData(target=target, layer=layer, start_deg=start_deg, end_deg=end_deg))


def _anim(*nodes):
    return AnimationDefinition(name="test", nodes=list(nodes))


class TestResolveTimeline:

    def test_empty_animation(self):
        res = resolve_timeline(_anim())
        assert not res.ok
        assert res.error == "Add at least one animation box."

    @pytest.mark.parametrize("layer", [0, -2, math.nan, math.inf])
    def test_non_positive_layer(self, layer):
        res = resolve_timeline(_anim(_node("a", layer, 10, "J1")))
        assert not res.ok
        assert res.error == "Layer must be a positive integer."

    def test_duplicate_target_in_layer(self):
        res = resolve_timeline(_anim(
            _node("a", 2, 10, "J1"),
            _node("b", 2, 20, "J1"),
        ))
        assert not res.ok
        assert res.error == "Duplicate target in layer 2."

    def test_same_target_on_different_layers_is_fine(self):
        res = resolve_timeline(_anim(
            _node("a", 1, 10, "J1"),
            _node("b", 2, 20, "J1"),
            _node("c", 2, 5),
        ))
        assert res.ok
        assert res.layer_keys == [1, 2]

    def test_gap_becomes_rest_slot(self):
        res = resolve_timeline(_anim(
            _node("a", 3, 45, "J1"),
            _node("b", 1, 10, "J1"),
        ))
        assert res.ok
        assert res.layer_keys == [1, 3]
        assert res.slots == [1, 2, 3]
        assert res.error is None

    def test_fractional_layer_truncates(self):
        res = resolve_timeline(_anim(_node("a", 2.7, 10, "J1")))
        assert res.ok
        assert res.layer_keys == [2]

    def test_does_not_mutate(self):
        anim = _anim(_node("a", 1, 10, "J1"))
        before = anim.model_dump()
        resolve_timeline(anim)
        assert anim.model_dump() == before


class TestAutoStart:

    def test_target_key(self):
        assert target_key(BaseYawTarget()) == "base_yaw"
        assert target_key(JointTarget(name="J1")) == "joint:J1"

    def test_start_follows_previous_layer_end(self):
        nodes = [
            _node("c", 3, 90, "J1"),
            _node("a", 1, 30, "J1"),
            _node("y", 2, 15),
            _node("b", 2, -20, "J2"),
        ]
        starts = compute_auto_start_deg(nodes)
        assert starts == {"a": 0.0, "c": 30, "y": 0.0, "b": 0.0}

    def test_normalize_overwrites_authored_start(self):
        anim = _anim(
            _node("a", 1, 30, "J1", start_deg=99),
            _node("b", 2, 60, "J1", start_deg=99),
        )
        normalized = normalize_animation_start_deg(anim)
        by_id = {n.id: n.data.start_deg for n in normalized.nodes}
        assert by_id == {"a": 0.0, "b": 30}
        # Original left untouched
        assert [n.data.start_deg for n in anim.nodes] == [99, 99]

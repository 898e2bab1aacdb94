"""Tests for the playback scheduler state machine."""
import pytest

from robot_engines.animation_timeline.models import (
    AnimationDefinition,
    AnimNode,
    AnimNodeData,
    BaseYawTarget,
    JointTarget,
    LoopMode,
)
from robot_engines.animation_timeline.resolver import normalize_animation_start_deg
from robot_engines.collision_kernel.monitor import CollisionMonitor, WorldSnapshot
from robot_engines.geometry_kernel.schemas import OBB
from robot_engines.playback_core.models import PlaybackOptions, PlaybackStatus, StopReason
from robot_engines.playback_core.scheduler import (
    PlaybackScheduler,
    advance_playhead,
    slot_position,
)

FOLDED_PIVOTS = [
    (0.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (1.0, 1.0, 0.0),
    (1.0, 0.5, 0.0),
    (0.5, 0.5, 0.0),
    (-0.5, 0.5, 0.0),
]
STRAIGHT_PIVOTS = [(0.0, float(i), 0.0) for i in range(6)]


class RecordingSink:
    def __init__(self):
        self.values = {}
        self.writes = []
        self.zeroed = 0

    def apply(self, target_kind, target_name, degrees):
        self.values[target_name or target_kind] = degrees
        self.writes.append((target_kind, target_name, degrees))

    def zero_targets(self):
        self.zeroed += 1
        self.values = {key: 0.0 for key in self.values}


class DictLibrary:
    """Library stand-in that can hold animations the real one would reject."""

    def __init__(self, *animations):
        self.animations = {a.id: a for a in animations}

    def get(self, animation_id):
        return self.animations.get(animation_id)


class World:
    """Mutable scene: one fixed part and an obstacle that can be moved in and out."""

    def __init__(self):
        self.obstacle_x = 5.0
        self.pivots = STRAIGHT_PIVOTS

    def colliding(self, on=True):
        self.obstacle_x = 0.5 if on else 5.0

    def __call__(self):
        return WorldSnapshot(
            part_obbs={"Arm01_Lower": OBB.axis_aligned((0, 0, 0), (0.5, 0.5, 0.5))},
            obstacle_obbs={"ob1": OBB.axis_aligned((self.obstacle_x, 0, 0), (0.5, 0.5, 0.5))},
            pivots=self.pivots,
        )


def _node(node_id, layer, end_deg, joint=None):
    target = JointTarget(name=joint) if joint else BaseYawTarget()
    return AnimNode(id=node_id, data=AnimNodeData(target=target, layer=layer, end_deg=end_deg))


def _anim(anim_id, loop_mode, *nodes):
    anim = AnimationDefinition(id=anim_id, name=anim_id, loop_mode=loop_mode, nodes=list(nodes))
    return normalize_animation_start_deg(anim)


TWO_LAYER = _anim(
    "two", LoopMode.NONE,
    _node("a", 1, 30, "J1"),
    _node("b", 2, 60, "J1"),
    _node("c", 2, 90),
)
GAPPED = _anim(
    "gapped", LoopMode.NONE,
    _node("a", 1, 30, "J1"),
    _node("b", 3, 90, "J1"),
)
PINGPONG = _anim(
    "pp", LoopMode.PING_PONG,
    _node("a", 1, 30, "J1"),
    _node("b", 2, 60, "J1"),
)
SPLIT = _anim(
    "split", LoopMode.NONE,
    _node("a", 1, 40, "J2"),
    _node("b", 2, 60, "J1"),
)
PINGPONG_YAW = _anim(
    "pp_yaw", LoopMode.PING_PONG,
    _node("a", 1, 30, "J1"),
    _node("b", 2, 90),
)
DUPLICATE = AnimationDefinition(
    id="dup", name="dup",
    nodes=[_node("a", 1, 10, "J1"), _node("b", 1, 20, "J1")],
)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def world():
    return World()


@pytest.fixture
def make_scheduler(sink, world):
    def _make(**option_kwargs):
        library = DictLibrary(TWO_LAYER, GAPPED, PINGPONG, SPLIT, PINGPONG_YAW, DUPLICATE)
        options = PlaybackOptions(**option_kwargs)
        return PlaybackScheduler(library, sink, CollisionMonitor(hz=0), world, options=options)
    return _make


class TestHelpers:

    def test_none_mode_clamps_at_total(self):
        assert advance_playhead(1.8, 1, 0.5, 2.0, LoopMode.NONE) == (2.0, 1)

    def test_pingpong_bounces(self):
        assert advance_playhead(1.8, 1, 0.5, 2.0, LoopMode.PING_PONG) == (2.0, -1)
        assert advance_playhead(0.2, -1, 0.5, 2.0, LoopMode.PING_PONG) == (0.0, 1)
        assert advance_playhead(1.0, -1, 0.5, 2.0, LoopMode.PING_PONG) == (0.5, -1)

    def test_slot_position(self):
        assert slot_position(0.25, 1.0, 2) == (0, 0.25)
        assert slot_position(1.5, 1.0, 2) == (1, 0.5)
        # The end of the timeline belongs to the last slot, fully applied
        assert slot_position(2.0, 1.0, 2) == (1, 1.0)


class TestStart:

    def test_unknown_animation(self, make_scheduler):
        result = make_scheduler().start("missing")
        assert not result.ok
        assert result.error == "Animation not found."

    def test_invalid_timeline(self, make_scheduler):
        scheduler = make_scheduler()
        result = scheduler.start("dup")
        assert not result.ok
        assert result.error == "Duplicate target in layer 1."
        assert scheduler.state.status == PlaybackStatus.IDLE

    def test_start_resets_pose_and_report(self, make_scheduler, sink, world):
        scheduler = make_scheduler(stop_on_collision=False)
        world.colliding()
        scheduler.start("pp")
        scheduler.tick(0.25)
        assert len(scheduler.report) == 1
        scheduler.stop(StopReason.ENDED)
        assert scheduler.report_open

        result = scheduler.start("two")
        assert result.ok
        assert sink.zeroed == 2
        assert scheduler.report == []
        assert not scheduler.report_open
        assert scheduler.sim_clock == 0.0
        state = scheduler.state
        assert (state.status, state.playhead, state.direction) == (PlaybackStatus.PLAYING, 0.0, 1)
        assert state.layer_keys == [1, 2]


class TestNoneLoop:

    def test_two_layers_end_with_final_values(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("two")
        for _ in range(7):
            outcome = scheduler.tick(0.25)
            assert outcome.status == PlaybackStatus.PLAYING
        outcome = scheduler.tick(0.25)
        assert outcome.stop_reason == StopReason.ENDED
        assert scheduler.state.status == PlaybackStatus.IDLE
        assert scheduler.last_stop_reason == StopReason.ENDED
        assert scheduler.report_open
        assert sink.values["J1"] == 60
        assert sink.values["base_yaw"] == 90

    def test_overshoot_still_applies_end_pose(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("two")
        scheduler.tick(1.5)
        outcome = scheduler.tick(5.0)
        assert outcome.stop_reason == StopReason.ENDED
        assert sink.values == {"J1": 60, "base_yaw": 90}

    def test_interpolates_within_layer(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("two")
        scheduler.tick(0.5)
        assert sink.values == {"J1": 15}
        outcome = scheduler.tick(1.0)
        assert outcome.layer == 2
        assert outcome.alpha == 0.5
        assert sink.values == {"J1": 45, "base_yaw": 45}

    def test_rest_slot_holds_values(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("gapped")
        scheduler.tick(0.75)
        assert sink.values["J1"] == pytest.approx(22.5)
        # Leaving layer 1 writes its end value once, then the rest slot is silent
        outcome = scheduler.tick(0.25)
        assert outcome.layer == 2
        assert sink.values["J1"] == pytest.approx(30)
        writes = len(sink.writes)
        for _ in range(3):
            outcome = scheduler.tick(0.25)
            assert outcome.layer == 2
            assert sink.values["J1"] == pytest.approx(30)
        assert len(sink.writes) == writes
        scheduler.tick(0.25)
        assert sink.values["J1"] == pytest.approx(30)
        scheduler.tick(0.5)
        assert sink.values["J1"] == pytest.approx(60)

    def test_rest_slot_reached_mid_tick_holds_layer_end(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("gapped")
        for _ in range(6):
            outcome = scheduler.tick(0.25)
        assert outcome.layer == 2
        assert sink.values["J1"] == pytest.approx(30)

    def test_target_only_in_first_layer_ends_at_its_end_value(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("split")
        for _ in range(8):
            outcome = scheduler.tick(0.25)
        assert outcome.stop_reason == StopReason.ENDED
        assert sink.values["J2"] == pytest.approx(40)
        assert sink.values["J1"] == pytest.approx(60)

    def test_large_step_still_finishes_skipped_layer(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("gapped")
        outcome = scheduler.tick(2.5)
        assert outcome.layer == 3
        assert ("joint", "J1", 30.0) in sink.writes
        assert sink.values["J1"] == pytest.approx(60)


class TestPingPong:

    def test_direction_flips_exactly_at_bounds(self, make_scheduler):
        scheduler = make_scheduler()
        scheduler.start("pp")
        trace = []
        for _ in range(7):
            outcome = scheduler.tick(0.75)
            assert outcome.status == PlaybackStatus.PLAYING
            assert 0.0 <= outcome.playhead <= 2.0
            trace.append((outcome.playhead, outcome.direction))
        assert trace == [
            (0.75, 1), (1.5, 1), (2.0, -1), (1.25, -1), (0.5, -1), (0.0, 1), (0.75, 1),
        ]

    def test_backward_crossing_restores_layer_start(self, make_scheduler, sink):
        scheduler = make_scheduler()
        scheduler.start("pp_yaw")
        for _ in range(4):
            outcome = scheduler.tick(0.75)
        assert (outcome.playhead, outcome.direction) == (1.25, -1)
        assert sink.values["base_yaw"] == pytest.approx(22.5)

        outcome = scheduler.tick(0.75)
        assert outcome.layer == 1
        # Layer 2 is left at its start on the way back
        assert sink.values["base_yaw"] == pytest.approx(0)
        assert sink.values["J1"] == pytest.approx(15)

    def test_sim_clock_keeps_running_backward(self, make_scheduler):
        scheduler = make_scheduler()
        scheduler.start("pp")
        times = [scheduler.tick(0.75).sim_time for _ in range(5)]
        assert times == sorted(times)
        assert times[-1] == pytest.approx(3.75)


class TestReport:

    def test_rising_edge_logging(self, make_scheduler, world):
        scheduler = make_scheduler(stop_on_collision=False)
        scheduler.start("pp")
        world.colliding()
        for _ in range(3):
            scheduler.tick(0.25)
        assert len(scheduler.report) == 1
        event = scheduler.report[0]
        assert (event.kind, event.a, event.b) == ("obstacle", "Arm01_Lower", "ob1")
        assert event.t_sec == pytest.approx(0.25)
        assert event.layer == 1

        world.colliding(False)
        scheduler.tick(0.25)
        assert len(scheduler.report) == 1

        world.colliding()
        outcome = scheduler.tick(0.5)
        assert len(scheduler.report) == 2
        assert outcome.new_events == scheduler.report[1:]
        assert scheduler.report[1].t_sec == pytest.approx(1.5)
        assert scheduler.report[1].layer == 2

    def test_stop_on_collision_next_tick(self, make_scheduler, world):
        scheduler = make_scheduler(stop_on_collision=True)
        scheduler.start("two")
        scheduler.tick(0.25)
        world.colliding()
        outcome = scheduler.tick(0.25)
        assert outcome.stop_reason == StopReason.COLLISION
        assert outcome.status == PlaybackStatus.IDLE
        assert scheduler.report_open
        assert len(scheduler.report) == 1

    def test_self_collision_ignored_unless_enabled(self, make_scheduler, world):
        world.pivots = FOLDED_PIVOTS
        scheduler = make_scheduler(stop_on_collision=True)
        scheduler.start("pp")
        outcome = scheduler.tick(0.25)
        assert outcome.status == PlaybackStatus.PLAYING
        assert scheduler.report == []
        assert [p.key for p in outcome.self_collision.pairs] == ["0-4"]

    def test_self_collision_logged_and_stops_when_enabled(self, make_scheduler, world):
        world.pivots = FOLDED_PIVOTS
        scheduler = make_scheduler(stop_on_collision=True, include_self_collision=True)
        scheduler.start("pp")
        outcome = scheduler.tick(0.25)
        assert outcome.stop_reason == StopReason.COLLISION
        assert [(e.kind, e.a, e.b) for e in scheduler.report] == [("self", "Link1", "Link5")]

    def test_warnings_are_not_collisions(self, make_scheduler, world):
        scheduler = make_scheduler(stop_on_collision=True)
        scheduler.start("pp")
        world.obstacle_x = 1.02  # inside the 0.03 warning margin
        outcome = scheduler.tick(0.25)
        assert outcome.status == PlaybackStatus.PLAYING
        assert outcome.collision.warning_pairs
        assert scheduler.report == []


class TestStop:

    def test_user_stop_does_not_open_report(self, make_scheduler):
        scheduler = make_scheduler()
        scheduler.start("pp")
        scheduler.tick(0.5)
        scheduler.stop(StopReason.USER)
        assert scheduler.state.status == PlaybackStatus.IDLE
        assert scheduler.state.playhead == 0.0
        assert scheduler.state.direction == 1
        assert not scheduler.report_open

    def test_idle_tick_is_noop(self, make_scheduler, sink):
        scheduler = make_scheduler()
        outcome = scheduler.tick(1.0)
        assert outcome.status == PlaybackStatus.IDLE
        assert sink.writes == []
        assert scheduler.sim_clock == 0.0

    def test_missing_animation_ends_playback(self, make_scheduler):
        scheduler = make_scheduler()
        scheduler.start("pp")
        del scheduler.library.animations["pp"]
        outcome = scheduler.tick(0.25)
        assert outcome.stop_reason == StopReason.ENDED
        assert scheduler.report_open

"""
Playback Scheduler.

Frame-driven state machine (idle | playing). Each tick advances the playhead,
writes interpolated angles through the pose sink (slots crossed since the
last tick are first finished at their exit value), then runs the collision
monitor against the pose it just wrote. Pairs entering collision are logged
on their rising edge against a monotonic simulation clock.
"""
from __future__ import annotations

import logging
import math
from typing import Callable, List, Optional, Protocol, Set, Tuple

from robot_engines.animation_timeline.library import AnimationLibrary
from robot_engines.animation_timeline.models import AnimationDefinition, BaseYawTarget, LoopMode
from robot_engines.animation_timeline.resolver import nodes_in_layer, resolve_timeline
from robot_engines.collision_kernel.models import CollisionResult, SelfCollisionResult
from robot_engines.collision_kernel.monitor import CollisionMonitor, WorldSnapshot
from robot_engines.playback_core.models import (
    REPORT_OPENING_REASONS,
    PlaybackOptions,
    PlaybackState,
    PlaybackStatus,
    ReportEvent,
    StartResult,
    StopReason,
    TickOutcome,
)

logger = logging.getLogger(__name__)

DEFAULT_SLOT_DURATION = 1.0
ERR_NOT_FOUND = "Animation not found."

PairKey = Tuple[str, str, str]


class PoseSink(Protocol):
    """The scheduler's only write path into the robot."""

    def apply(self, target_kind: str, target_name: Optional[str], degrees: float) -> None:
        ...

    def zero_targets(self) -> None:
        ...


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def advance_playhead(
    playhead: float, direction: int, dt: float, total: float, loop_mode: LoopMode
) -> Tuple[float, int]:
    """Next (playhead, direction); bounces at both ends in pingpong mode."""
    if loop_mode == LoopMode.PING_PONG:
        playhead += dt * direction
        if direction > 0 and playhead >= total:
            return total, -1
        if direction < 0 and playhead <= 0.0:
            return 0.0, 1
        return playhead, direction
    return min(playhead + dt, total), 1


def slot_position(playhead: float, slot_duration: float, slot_count: int) -> Tuple[int, float]:
    """(slot index, alpha within the slot) for a playhead."""
    index = int(math.floor(playhead / slot_duration))
    index = min(max(index, 0), slot_count - 1)
    alpha = clamp01((playhead - index * slot_duration) / slot_duration)
    return index, alpha


def active_pair_keys(
    collision: CollisionResult, self_collision: SelfCollisionResult, include_self: bool
) -> List[PairKey]:
    keys: List[PairKey] = []
    for pair in collision.colliding_pairs:
        keys.append(("obstacle", pair.part, pair.obstacle_id))
    if include_self:
        for pair in self_collision.pairs:
            keys.append(("self", pair.a, pair.b))
    return keys


class PlaybackScheduler:

    def __init__(
        self,
        library: AnimationLibrary,
        pose_sink: PoseSink,
        monitor: CollisionMonitor,
        world: Callable[[], WorldSnapshot],
        options: Optional[PlaybackOptions] = None,
        slot_duration: float = DEFAULT_SLOT_DURATION,
    ):
        if slot_duration <= 0:
            raise ValueError("slot_duration must be positive")
        self.library = library
        self.pose_sink = pose_sink
        self.monitor = monitor
        self.world = world
        self.options = options or PlaybackOptions()
        self.slot_duration = slot_duration

        self.state = PlaybackState()
        self.sim_clock = 0.0
        self.report: List[ReportEvent] = []
        self.report_open = False
        self.last_stop_reason: Optional[StopReason] = None
        self._active_keys: Set[PairKey] = set()

    @property
    def playing(self) -> bool:
        return self.state.status == PlaybackStatus.PLAYING

    def start(self, animation_id: str) -> StartResult:
        animation = self.library.get(animation_id)
        if animation is None:
            logger.warning("Playback start failed: animation %s not found", animation_id)
            return StartResult(ok=False, error=ERR_NOT_FOUND)
        resolution = resolve_timeline(animation)
        if not resolution.ok:
            logger.warning("Playback start failed for %s: %s", animation_id, resolution.error)
            return StartResult(ok=False, error=resolution.error)

        # Targets first animated on a later layer still start from a known pose
        self.pose_sink.zero_targets()
        self.report = []
        self.report_open = False
        self.last_stop_reason = None
        self.sim_clock = 0.0
        self._active_keys = set()
        self.monitor.reset()
        self.monitor.gate.force()

        self.state = PlaybackState(
            status=PlaybackStatus.PLAYING,
            animation_id=animation_id,
            layer_keys=resolution.layer_keys,
            slots=resolution.slots,
        )
        logger.info(
            "Playback started: %s (%s), %d slots, loop=%s",
            animation.id, animation.name, len(resolution.slots), animation.loop_mode.value,
        )
        return StartResult(ok=True, state=self.state.model_copy())

    def stop(self, reason: StopReason = StopReason.USER) -> None:
        was_playing = self.playing
        self.state = PlaybackState()
        self.last_stop_reason = reason
        if reason in REPORT_OPENING_REASONS:
            self.report_open = True
        if was_playing:
            logger.info("Playback stopped: %s (%d report events)", reason.value, len(self.report))

    def close_report(self) -> None:
        self.report_open = False

    def clear_report(self) -> None:
        self.report = []
        self.report_open = False

    def _apply_layer(self, animation: AnimationDefinition, layer: int, alpha: float) -> None:
        for node in nodes_in_layer(animation, layer):
            value = lerp(node.data.start_deg, node.data.end_deg, alpha)
            target = node.data.target
            if isinstance(target, BaseYawTarget):
                self.pose_sink.apply(target.kind, None, value)
            else:
                self.pose_sink.apply(target.kind, target.name, value)

    def _exit_crossed_slots(
        self, animation: AnimationDefinition, slots: List[int], previous: int, current: int
    ) -> None:
        """
        Finish every slot the playhead left during this tick, so a target
        holds its exit value through rest slots: end values moving forward,
        start values moving backward.
        """
        if current > previous:
            for index in range(previous, current):
                self._apply_layer(animation, slots[index], 1.0)
        elif current < previous:
            for index in range(previous, current, -1):
                self._apply_layer(animation, slots[index], 0.0)

    def _outcome(self, **kwargs) -> TickOutcome:
        return TickOutcome(
            status=self.state.status,
            playhead=self.state.playhead,
            direction=self.state.direction,
            sim_time=self.sim_clock,
            **kwargs,
        )

    def tick(self, dt: float) -> TickOutcome:
        """Advance playback by dt seconds."""
        if not self.playing:
            return self._outcome()

        animation = self.library.get(self.state.animation_id)
        slots = self.state.slots
        if animation is None or not slots:
            self.stop(StopReason.ENDED)
            return self._outcome(stop_reason=StopReason.ENDED)

        dt = max(0.0, dt)
        total = len(slots) * self.slot_duration
        playhead, direction = advance_playhead(
            self.state.playhead, self.state.direction, dt, total, animation.loop_mode
        )
        index, alpha = slot_position(playhead, self.slot_duration, len(slots))
        layer = slots[index]
        self._exit_crossed_slots(animation, slots, self.state.slot_index, index)
        self._apply_layer(animation, layer, alpha)
        self.sim_clock += dt

        # Detectors read the pose written above
        collision, self_collision = self.monitor.update(dt, self.world())
        keys = active_pair_keys(collision, self_collision, self.options.include_self_collision)
        new_events: List[ReportEvent] = []
        seen: Set[PairKey] = set()
        for key in keys:
            if key in seen:
                continue
            seen.add(key)
            if key not in self._active_keys:
                kind, a, b = key
                new_events.append(ReportEvent(t_sec=self.sim_clock, layer=layer, kind=kind, a=a, b=b))
        self._active_keys = seen
        if new_events:
            self.report = self.report + new_events
            logger.debug("Collision pairs entered at t=%.3f: %d", self.sim_clock, len(new_events))

        details = dict(layer=layer, alpha=alpha, new_events=new_events,
                       collision=collision, self_collision=self_collision)

        if self.options.stop_on_collision and keys:
            self.stop(StopReason.COLLISION)
            return self._outcome(stop_reason=StopReason.COLLISION, **details)

        if animation.loop_mode == LoopMode.NONE and playhead >= total:
            self.stop(StopReason.ENDED)
            return self._outcome(stop_reason=StopReason.ENDED, **details)

        self.state = self.state.model_copy(update={
            "playhead": playhead, "direction": direction, "slot_index": index,
        })
        return self._outcome(**details)

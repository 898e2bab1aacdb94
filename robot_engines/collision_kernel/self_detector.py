"""
Self-Collision Detector.

Links are modelled as capsules of uniform thickness around the segment
between consecutive joint pivots. Near-adjacent links share housings and
are skipped. The base is approximated by a sphere around its pivot.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from robot_engines.collision_kernel.models import (
    BASE_INDEX,
    BASE_LABEL,
    BaseProxy,
    SelfCollisionPair,
    SelfCollisionResult,
)
from robot_engines.geometry_kernel.ops import point_segment_distance_sq, segment_segment_distance_sq
from robot_engines.geometry_kernel.schemas import AABB, VecLike, as_vec3

logger = logging.getLogger(__name__)

DEFAULT_LINK_THICKNESS = 0.08
DEFAULT_MIN_INDEX_GAP = 2
DEFAULT_BASE_PADDING = 0.02
DEFAULT_BASE_MIN_LINK_INDEX = 3
DEFAULT_BASE_RADIUS = 0.22


def link_label(index: int) -> str:
    return f"Link{index + 1}"


def base_radius_from_boxes(
    part_boxes: Sequence[AABB],
    padding: float = DEFAULT_BASE_PADDING,
    fallback: float = DEFAULT_BASE_RADIUS,
) -> float:
    """Half the largest extent of the union of base-owned boxes, plus padding."""
    union = AABB.empty()
    for box in part_boxes:
        union = union.union(box)
    radius = fallback
    if not union.is_empty:
        candidate = 0.5 * float(np.max(union.size()))
        if math.isfinite(candidate) and candidate > 0:
            radius = candidate
    return radius + padding


class SelfCollisionDetector:
    """
    Link-vs-link and link-vs-base proximity checks.

    thickness:           capsule diameter of every link
    min_index_gap:       pairs with |i - j| <= gap are ignored
    base_padding:        added to the computed base radius
    base_min_link_index: links below this index never test against the base
    """

    def __init__(
        self,
        thickness: float = DEFAULT_LINK_THICKNESS,
        min_index_gap: int = DEFAULT_MIN_INDEX_GAP,
        base_padding: float = DEFAULT_BASE_PADDING,
        base_min_link_index: int = DEFAULT_BASE_MIN_LINK_INDEX,
        default_base_radius: float = DEFAULT_BASE_RADIUS,
    ):
        self.thickness = thickness
        self.min_index_gap = min_index_gap
        self.base_padding = base_padding
        self.base_min_link_index = base_min_link_index
        self.default_base_radius = default_base_radius

        self._base_radius: Optional[float] = None
        self._last_signature = ""
        self.last_result = SelfCollisionResult()

    @property
    def link_radius(self) -> float:
        return self.thickness * 0.5

    @property
    def base_radius(self) -> Optional[float]:
        return self._base_radius

    def detect(self, pivots: Sequence[VecLike], base: Optional[BaseProxy] = None) -> SelfCollisionResult:
        """Full set of too-close link pairs for the given pose."""
        points = [as_vec3(p) for p in pivots]
        if len(points) < 2:
            return SelfCollisionResult()

        link_count = len(points) - 1
        pairs: List[SelfCollisionPair] = []

        if base is None:
            self._base_radius = None
        else:
            if self._base_radius is None:
                self._base_radius = base_radius_from_boxes(
                    base.part_boxes, self.base_padding, self.default_base_radius
                )
                logger.debug("Base proxy radius computed: %.4f", self._base_radius)
            limit = self._base_radius + self.link_radius
            limit_sq = limit * limit
            for i in range(self.base_min_link_index, link_count):
                d2 = point_segment_distance_sq(base.center, points[i], points[i + 1])
                if d2 > limit_sq:
                    continue
                pairs.append(SelfCollisionPair(a=link_label(i), b=BASE_LABEL, a_index=i, b_index=BASE_INDEX))

        radius_sq = self.link_radius * self.link_radius
        for i in range(link_count):
            for j in range(i + 1, link_count):
                # Near links overlap permanently around shared joints
                if abs(i - j) <= self.min_index_gap:
                    continue
                d2 = segment_segment_distance_sq(points[i], points[i + 1], points[j], points[j + 1])
                if d2 > radius_sq:
                    continue
                pairs.append(SelfCollisionPair(a=link_label(i), b=link_label(j), a_index=i, b_index=j))

        return SelfCollisionResult(pairs=pairs)

    def run(self, pivots: Sequence[VecLike], base: Optional[BaseProxy] = None) -> Optional[SelfCollisionResult]:
        """
        Detect and return the new result, or None when the pair signature
        matches the previous run (the caller keeps its current result).
        """
        result = self.detect(pivots, base)
        signature = result.signature
        if signature == self._last_signature:
            return None
        self._last_signature = signature
        self.last_result = result
        return result

    def reset(self) -> None:
        self._base_radius = None
        self._last_signature = ""
        self.last_result = SelfCollisionResult()

"""Bounding volume types for the geometry kernel."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

VecLike = Union[Sequence[float], np.ndarray]


def as_vec3(value: VecLike) -> np.ndarray:
    """Copy a 3-component sequence into a float vector."""
    return np.array(value, dtype=float).reshape(3)


@dataclass
class AABB:
    """Axis-aligned box. An empty box has min=+inf / max=-inf."""
    min: np.ndarray
    max: np.ndarray

    @classmethod
    def empty(cls) -> AABB:
        return cls(min=np.full(3, np.inf), max=np.full(3, -np.inf))

    @classmethod
    def from_bounds(cls, lo: VecLike, hi: VecLike) -> AABB:
        lo_v, hi_v = as_vec3(lo), as_vec3(hi)
        if np.any(lo_v > hi_v):
            raise ValueError(f"AABB min {lo_v.tolist()} exceeds max {hi_v.tolist()}")
        return cls(min=lo_v, max=hi_v)

    @property
    def is_empty(self) -> bool:
        return bool(np.any(self.max < self.min))

    def size(self) -> np.ndarray:
        if self.is_empty:
            return np.zeros(3)
        return self.max - self.min

    def center(self) -> np.ndarray:
        if self.is_empty:
            return np.zeros(3)
        return (self.min + self.max) * 0.5

    def expand_by_point(self, point: VecLike) -> AABB:
        p = as_vec3(point)
        return AABB(min=np.minimum(self.min, p), max=np.maximum(self.max, p))

    def union(self, other: AABB) -> AABB:
        if other.is_empty:
            return AABB(min=self.min.copy(), max=self.max.copy())
        return AABB(min=np.minimum(self.min, other.min), max=np.maximum(self.max, other.max))


@dataclass(frozen=True)
class OBB:
    """
    Oriented box.

    center: world-space center (3,)
    axes:   rows are the unit axes u0, u1, u2 (3, 3)
    half:   non-negative half-extents along each axis (3,)
    """
    center: np.ndarray
    axes: np.ndarray
    half: np.ndarray

    @classmethod
    def axis_aligned(cls, center: VecLike, half: VecLike) -> OBB:
        h = as_vec3(half)
        if np.any(h < 0):
            raise ValueError("OBB half-extents must be non-negative")
        return cls(center=as_vec3(center), axes=np.eye(3), half=h)

    def is_orthonormal(self, tol: float = 1e-6) -> bool:
        return bool(np.allclose(self.axes @ self.axes.T, np.eye(3), atol=tol))

"""
Geometry Kernel Ops.

Pure functions over numpy vectors/matrices:
- Transforms: euler / axis-angle rotation matrices, TRS composition
- Bounding volumes: AABB helpers, OBB from a world matrix, OBB expansion
- Intersection: OBB vs OBB via the Separating Axis Theorem (15 axes)
- Distances: point-segment and segment-segment squared distances

None of these functions mutate their inputs.
"""
from __future__ import annotations

import math
from typing import Iterable, Literal, Optional

import numpy as np

from robot_engines.geometry_kernel.schemas import AABB, OBB, VecLike, as_vec3

Axis = Literal["x", "y", "z"]

# Padding on every |R[i][j]| term of the SAT test. Without it, near-parallel
# edges produce a ~zero cross axis and boxes report as separated.
SAT_EPSILON = 1e-6

# Degenerate-length threshold for the distance routines.
DIST_EPSILON = 1e-9

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


# --- Transforms ---

def axis_angle_matrix(axis: Axis, angle_rad: float) -> np.ndarray:
    """4x4 rotation about one of the principal axes."""
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    m = np.eye(4)
    if axis == "x":
        m[1, 1], m[1, 2], m[2, 1], m[2, 2] = c, -s, s, c
    elif axis == "y":
        m[0, 0], m[0, 2], m[2, 0], m[2, 2] = c, s, -s, c
    elif axis == "z":
        m[0, 0], m[0, 1], m[1, 0], m[1, 1] = c, -s, s, c
    else:
        raise ValueError(f"Unknown axis {axis!r}")
    return m


def rotation_matrix_xyz(euler_rad: VecLike) -> np.ndarray:
    """4x4 rotation for intrinsic XYZ euler angles (Rx @ Ry @ Rz)."""
    rx, ry, rz = as_vec3(euler_rad)
    return axis_angle_matrix("x", rx) @ axis_angle_matrix("y", ry) @ axis_angle_matrix("z", rz)


def translation_matrix(offset: VecLike) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = as_vec3(offset)
    return m


def compose_transform(position: VecLike, euler_rad: VecLike, scale: VecLike = (1.0, 1.0, 1.0)) -> np.ndarray:
    """Translation @ Rotation @ Scale."""
    s = np.eye(4)
    s[0, 0], s[1, 1], s[2, 2] = as_vec3(scale)
    return translation_matrix(position) @ rotation_matrix_xyz(euler_rad) @ s


def transform_point(matrix: np.ndarray, point: VecLike) -> np.ndarray:
    p = np.append(as_vec3(point), 1.0)
    return (np.asarray(matrix, dtype=float) @ p)[:3]


# --- AABB ---

def aabb_from_points(points: Iterable[VecLike]) -> AABB:
    box = AABB.empty()
    for p in points:
        box = box.expand_by_point(p)
    return box


def aabb_corners(box: AABB) -> np.ndarray:
    lo, hi = box.min, box.max
    return np.array([
        [x, y, z]
        for x in (lo[0], hi[0])
        for y in (lo[1], hi[1])
        for z in (lo[2], hi[2])
    ])


def aabb_transform(box: AABB, matrix: np.ndarray) -> AABB:
    """World AABB enclosing a local box after an affine transform."""
    if box.is_empty:
        return AABB.empty()
    return aabb_from_points(transform_point(matrix, c) for c in aabb_corners(box))


def _axis_gap(a_min: float, a_max: float, b_min: float, b_max: float) -> float:
    if a_max < b_min:
        return b_min - a_max
    if b_max < a_min:
        return a_min - b_max
    return 0.0


def aabb_distance(a: AABB, b: AABB) -> float:
    """Euclidean gap between two boxes; 0 when they touch or overlap."""
    gaps = [_axis_gap(a.min[i], a.max[i], b.min[i], b.max[i]) for i in range(3)]
    return math.sqrt(sum(g * g for g in gaps))


def aabb_intersects(a: AABB, b: AABB) -> bool:
    if a.is_empty or b.is_empty:
        return False
    return bool(np.all(a.min <= b.max) and np.all(b.min <= a.max))


# --- OBB ---

def obb_from_world_transform(local_min: VecLike, local_max: VecLike, world_matrix: np.ndarray) -> Optional[OBB]:
    """
    Build a world OBB from local bounding extents and a 4x4 world matrix.

    The basis columns of the matrix give the axes; their lengths scale the
    local half-extents so non-uniform scale is respected. Returns None when
    any column is zero-length or non-finite (caller skips the part).
    """
    m = np.asarray(world_matrix, dtype=float)
    if m.shape != (4, 4) or not np.all(np.isfinite(m)):
        return None
    lo, hi = as_vec3(local_min), as_vec3(local_max)
    if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
        return None

    basis = m[:3, :3]
    lengths = np.linalg.norm(basis, axis=0)
    if np.any(lengths <= 0.0) or not np.all(np.isfinite(lengths)):
        return None

    axes = (basis / lengths).T
    local_center = (lo + hi) * 0.5
    local_half = np.abs(hi - lo) * 0.5
    center = transform_point(m, local_center)
    return OBB(center=center, axes=axes, half=local_half * lengths)


def obb_from_pose(position: VecLike, euler_rad: VecLike, half: VecLike) -> OBB:
    """OBB for a unit-free box placed at a position/rotation."""
    rot = rotation_matrix_xyz(euler_rad)[:3, :3]
    h = np.maximum(as_vec3(half), 0.0)
    return OBB(center=as_vec3(position), axes=rot.T.copy(), half=h)


def expand_obb(obb: OBB, margin: float) -> OBB:
    """Copy of the box with every half-extent grown by margin."""
    return OBB(center=obb.center.copy(), axes=obb.axes.copy(), half=obb.half + float(margin))


def obb_corners(obb: OBB) -> np.ndarray:
    """The 8 world-space corners, for debug wire boxes."""
    corners = []
    for sx in (-1.0, 1.0):
        for sy in (-1.0, 1.0):
            for sz in (-1.0, 1.0):
                signs = np.array([sx, sy, sz])
                corners.append(obb.center + (signs * obb.half) @ obb.axes)
    return np.array(corners)


def obb_intersects_obb(a: OBB, b: OBB) -> bool:
    """
    Separating Axis Theorem over 15 candidate axes (Gottschalk / Eberly).

    Axes tested: A0..A2, B0..B2, and the 9 cross products Ai x Bj.
    Touching boxes count as intersecting.
    """
    # Rotation expressing B in A's frame: R[i][j] = dot(Ai, Bj)
    rot = a.axes @ b.axes.T
    abs_rot = np.abs(rot) + SAT_EPSILON

    # Translation, in A's frame
    t = a.axes @ (b.center - a.center)
    ae, be = a.half, b.half

    for i in range(3):
        ra = ae[i]
        rb = be @ abs_rot[i, :]
        if abs(t[i]) > ra + rb:
            return False

    for j in range(3):
        ra = ae @ abs_rot[:, j]
        rb = be[j]
        if abs(t @ rot[:, j]) > ra + rb:
            return False

    for i in range(3):
        i1, i2 = (i + 1) % 3, (i + 2) % 3
        for j in range(3):
            j1, j2 = (j + 1) % 3, (j + 2) % 3
            ra = ae[i1] * abs_rot[i2, j] + ae[i2] * abs_rot[i1, j]
            rb = be[j1] * abs_rot[i, j2] + be[j2] * abs_rot[i, j1]
            if abs(t[i2] * rot[i1, j] - t[i1] * rot[i2, j]) > ra + rb:
                return False

    return True


# --- Distances ---

def point_segment_distance_sq(p: VecLike, a: VecLike, b: VecLike) -> float:
    """Squared distance from p to segment a-b (clamped projection)."""
    p_v, a_v, b_v = as_vec3(p), as_vec3(a), as_vec3(b)
    seg = b_v - a_v
    len_sq = float(seg @ seg)
    if len_sq < DIST_EPSILON:
        d = p_v - a_v
        return float(d @ d)
    t = max(0.0, min(1.0, float((p_v - a_v) @ seg) / len_sq))
    d = p_v - (a_v + seg * t)
    return float(d @ d)


def segment_segment_distance_sq(p0: VecLike, p1: VecLike, q0: VecLike, q1: VecLike) -> float:
    """
    Squared closest distance between segments P0-P1 and Q0-Q1.

    Classic clamped two-parameter solution; the near-parallel case fixes
    s = 0 and solves for t so the denominator is never ~0.
    """
    p0_v, q0_v = as_vec3(p0), as_vec3(q0)
    u = as_vec3(p1) - p0_v
    v = as_vec3(q1) - q0_v
    w0 = p0_v - q0_v

    a = float(u @ u)
    b = float(u @ v)
    c = float(v @ v)
    d = float(u @ w0)
    e = float(v @ w0)

    denom = a * c - b * b
    s_d = t_d = denom

    if denom < DIST_EPSILON:
        # Almost parallel
        s_n, s_d = 0.0, 1.0
        t_n, t_d = e, c
    else:
        s_n = b * e - c * d
        t_n = a * e - b * d
        if s_n < 0.0:
            s_n = 0.0
            t_n, t_d = e, c
        elif s_n > s_d:
            s_n = s_d
            t_n, t_d = e + b, c

    if t_n < 0.0:
        t_n = 0.0
        if -d < 0.0:
            s_n = 0.0
        elif -d > a:
            s_n = s_d
        else:
            s_n, s_d = -d, a
    elif t_n > t_d:
        t_n = t_d
        if -d + b < 0.0:
            s_n = 0.0
        elif -d + b > a:
            s_n = s_d
        else:
            s_n, s_d = -d + b, a

    sc = 0.0 if abs(s_n) < DIST_EPSILON else s_n / s_d
    tc = 0.0 if abs(t_n) < DIST_EPSILON else t_n / t_d

    gap = w0 + u * sc - v * tc
    return float(gap @ gap)

"""Triangle meshes, bounding boxes, shading frames and intersection records."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

import numpy as np

from .bsdf import BSDF
from .common import NoriError, coordinate_system, indent
from .object import ClassType, NoriObject, create_instance
from .ray import Ray


def _format_vector(v) -> str:
    return "[" + ", ".join(f"{float(x):g}" for x in v) + "]"


class BoundingBox:
    """Axis-aligned bounding box; an empty box has ``min > max``."""

    def __init__(self, min_point=None, max_point=None, dimension: int = 3) -> None:
        if min_point is None:
            self.min = np.full(dimension, math.inf)
            self.max = np.full(dimension, -math.inf)
        else:
            self.min = np.array(min_point, dtype=float)
            self.max = np.array(min_point if max_point is None else max_point, dtype=float)

    @property
    def is_valid(self) -> bool:
        """True when the box contains at least one point."""
        return bool(np.all(self.max >= self.min))

    @property
    def extents(self) -> np.ndarray:
        return self.max - self.min

    @property
    def center(self) -> np.ndarray:
        return (self.min + self.max) * 0.5

    def expand_by(self, point: Sequence[float]) -> None:
        """Grow the box so that it contains *point*."""
        p = np.asarray(point, dtype=float)
        self.min = np.minimum(self.min, p)
        self.max = np.maximum(self.max, p)

    def contains(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=float)
        return bool(np.all(p >= self.min) and np.all(p <= self.max))

    def clip(self, other: "BoundingBox") -> None:
        """Shrink the box to its intersection with *other*."""
        self.min = np.maximum(self.min, other.min)
        self.max = np.minimum(self.max, other.max)

    def __str__(self) -> str:
        if not self.is_valid:
            return "BoundingBox[invalid]"
        return f"BoundingBox[min={_format_vector(self.min)}, max={_format_vector(self.max)}]"


class Frame:
    """Orthonormal frame ``(s, t, n)``; built from ``n`` alone if only it is given."""

    def __init__(self, n=None, s=None, t=None) -> None:
        self.n = np.array((0.0, 0.0, 1.0) if n is None else n, dtype=float)
        if s is not None and t is not None:
            self.s = np.array(s, dtype=float)
            self.t = np.array(t, dtype=float)
        else:
            self.s, self.t = coordinate_system(self.n)

    def to_local(self, v: Sequence[float]) -> np.ndarray:
        """Express a world-space vector in this frame."""
        v = np.asarray(v, dtype=float)
        return np.array([v @ self.s, v @ self.t, v @ self.n])

    def to_world(self, v: Sequence[float]) -> np.ndarray:
        """Convert a vector in this frame to world space."""
        x, y, z = (float(c) for c in v)
        return self.s * x + self.t * y + self.n * z

    def __str__(self) -> str:
        return (
            "Frame[\n"
            f"  s = {_format_vector(self.s)},\n"
            f"  t = {_format_vector(self.t)},\n"
            f"  n = {_format_vector(self.n)}\n"
            "]"
        )


@dataclass(eq=False)
class Intersection:
    """Local information about a ray-triangle intersection."""

    p: np.ndarray = field(default_factory=lambda: np.zeros(3))
    t: float = math.inf
    uv: np.ndarray = field(default_factory=lambda: np.zeros(2))
    sh_frame: Frame = field(default_factory=Frame)
    geo_frame: Frame = field(default_factory=Frame)
    mesh: "Mesh | None" = None

    def to_local(self, d: Sequence[float]) -> np.ndarray:
        """Transform a direction into the local shading frame."""
        return self.sh_frame.to_local(d)

    def to_world(self, d: Sequence[float]) -> np.ndarray:
        """Transform a direction from the shading frame to world space."""
        return self.sh_frame.to_world(d)

    def __str__(self) -> str:
        if self.mesh is None:
            return "Intersection[invalid]"
        return (
            "Intersection[\n"
            f"  p = {_format_vector(self.p)},\n"
            f"  t = {self.t:f},\n"
            f"  uv = {_format_vector(self.uv)},\n"
            f"  shFrame = {indent(str(self.sh_frame))},\n"
            f"  geoFrame = {indent(str(self.geo_frame))},\n"
            f"  mesh = {self.mesh}\n"
            "]"
        )


class TriangleHit(NamedTuple):
    """Barycentric coordinates and ray distance of a triangle hit."""

    u: float
    v: float
    t: float


class Mesh(NoriObject):
    """Triangle mesh stored as vertex rows and index triples."""

    class_type = ClassType.MESH

    def __init__(
        self,
        positions=None,
        faces=None,
        normals=None,
        texcoords=None,
        name: str = "",
    ) -> None:
        self.name = name
        self.positions = np.zeros((0, 3)) if positions is None else np.array(positions, dtype=float).reshape(-1, 3)
        self.faces = np.zeros((0, 3), dtype=np.int64) if faces is None else np.array(faces, dtype=np.int64).reshape(-1, 3)
        self.normals = np.zeros((0, 3)) if normals is None else np.array(normals, dtype=float).reshape(-1, 3)
        self.texcoords = np.zeros((0, 2)) if texcoords is None else np.array(texcoords, dtype=float).reshape(-1, 2)
        self.bsdf: BSDF | None = None
        self.emitter: NoriObject | None = None
        self.bbox = BoundingBox()
        for p in self.positions:
            self.bbox.expand_by(p)

    @property
    def triangle_count(self) -> int:
        return len(self.faces)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def is_emitter(self) -> bool:
        return self.emitter is not None

    def activate(self) -> None:
        """Give the mesh a diffuse BSDF if no material was assigned."""
        if self.bsdf is None:
            self.bsdf = create_instance("diffuse", {})

    def _corners(self, index: int):
        i0, i1, i2 = self.faces[index]
        return self.positions[i0], self.positions[i1], self.positions[i2]

    def surface_area(self, index: int) -> float:
        """Area of triangle *index*."""
        p0, p1, p2 = self._corners(index)
        return 0.5 * float(np.linalg.norm(np.cross(p1 - p0, p2 - p0)))

    def triangle_bounds(self, index: int) -> BoundingBox:
        """Bounding box of triangle *index*."""
        p0, p1, p2 = self._corners(index)
        result = BoundingBox(p0)
        result.expand_by(p1)
        result.expand_by(p2)
        return result

    def centroid(self, index: int) -> np.ndarray:
        """Centroid of triangle *index*."""
        p0, p1, p2 = self._corners(index)
        return (p0 + p1 + p2) / 3.0

    def ray_intersect(self, index: int, ray: Ray) -> TriangleHit | None:
        """Intersect *ray* with triangle *index* (Moeller-Trumbore)."""
        p0, p1, p2 = self._corners(index)
        edge1, edge2 = p1 - p0, p2 - p0
        pvec = np.cross(ray.d, edge2)
        det = float(edge1 @ pvec)
        if -1e-8 < det < 1e-8:
            return None
        inv_det = 1.0 / det

        tvec = ray.o - p0
        u = float(tvec @ pvec) * inv_det
        if u < 0.0 or u > 1.0:
            return None

        qvec = np.cross(tvec, edge1)
        v = float(ray.d @ qvec) * inv_det
        if v < 0.0 or u + v > 1.0:
            return None

        t = float(edge2 @ qvec) * inv_det
        if ray.mint <= t <= ray.maxt:
            return TriangleHit(u, v, t)
        return None

    def add_child(self, child: NoriObject) -> None:
        """Attach a BSDF or an emitter; each may be given only once."""
        if child.class_type == ClassType.BSDF:
            if self.bsdf is not None:
                raise NoriError("Mesh: tried to register multiple BSDF instances!")
            self.bsdf = child
        elif child.class_type == ClassType.EMITTER:
            if self.emitter is not None:
                raise NoriError("Mesh: tried to register multiple Emitter instances!")
            self.emitter = child
        else:
            raise NoriError(f"Mesh::addChild(<{child.class_type}>) is not supported!")

    def __str__(self) -> str:
        bsdf = indent(str(self.bsdf)) if self.bsdf is not None else "null"
        emitter = indent(str(self.emitter)) if self.emitter is not None else "null"
        return (
            "Mesh[\n"
            f'  name = "{self.name}",\n'
            f"  vertexCount = {self.vertex_count},\n"
            f"  triangleCount = {self.triangle_count},\n"
            f"  bsdf = {bsdf},\n"
            f"  emitter = {emitter}\n"
            "]"
        )
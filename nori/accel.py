"""Ray intersection queries against the scene geometry."""

from __future__ import annotations

import dataclasses

import numpy as np

from .common import NoriError
from .mesh import BoundingBox, Frame, Intersection, Mesh
from .ray import Ray


class Accel:
    """Brute-force intersection structure holding a single mesh."""

    def __init__(self) -> None:
        self.mesh: Mesh | None = None
        self.bbox = BoundingBox()

    def add_mesh(self, mesh: Mesh) -> None:
        """Register the mesh; only one is supported."""
        if self.mesh is not None:
            raise NoriError("Accel: only a single mesh is supported!")
        self.mesh = mesh
        self.bbox = mesh.bbox

    def build(self) -> None:
        """Prepare for queries; brute-force search only refreshes the bounds."""
        self.bbox = self.mesh.bbox if self.mesh is not None else BoundingBox()

    def ray_intersect(self, ray: Ray, shadow_ray: bool = False) -> Intersection | None:
        """Return the closest intersection along *ray*, or ``None``.

        A shadow-ray query stops at the first hit found and fills in only
        ``t``, ``uv`` and ``mesh`` of the returned record.
        """
        mesh = self.mesh
        if mesh is None:
            return None

        closest = None
        current = ray
        for index in range(mesh.triangle_count):
            hit = mesh.ray_intersect(index, current)
            if hit is None:
                continue
            if shadow_ray:
                return Intersection(t=hit.t, uv=np.array([hit.u, hit.v]), mesh=mesh)
            closest = (index, hit)
            current = dataclasses.replace(current, maxt=hit.t)

        if closest is None:
            return None

        index, hit = closest
        bary = np.array([1.0 - hit.u - hit.v, hit.u, hit.v])
        corners = mesh.faces[index]

        its = Intersection(t=hit.t, uv=np.array([hit.u, hit.v]), mesh=mesh)
        p0, p1, p2 = mesh.positions[corners]
        its.p = bary @ mesh.positions[corners]

        if len(mesh.texcoords) > 0:
            its.uv = bary @ mesh.texcoords[corners]

        geo_normal = np.cross(p1 - p0, p2 - p0)
        its.geo_frame = Frame(geo_normal / np.linalg.norm(geo_normal))

        if len(mesh.normals) > 0:
            normal = bary @ mesh.normals[corners]
            its.sh_frame = Frame(normal / np.linalg.norm(normal))
        else:
            its.sh_frame = its.geo_frame
        return its
"""Loader for Wavefront OBJ triangle meshes."""

from __future__ import annotations

import time
from dataclasses import dataclass

import numpy as np

from .common import NoriError, get_file_resolver, mem_string, time_string, to_uint, tokenize
from .mesh import BoundingBox, Mesh
from .object import Properties, register_class
from .transform import Transform


@dataclass(frozen=True)
class ObjVertex:
    """Position, texture-coordinate and normal indices (1-based) of a face corner."""

    p: int | None = None
    n: int | None = None
    uv: int | None = None

    @classmethod
    def parse(cls, text: str) -> "ObjVertex":
        """Parse ``p``, ``p/uv``, ``p//n`` or ``p/uv/n``."""
        tokens = tokenize(text, "/", True)
        if not 1 <= len(tokens) <= 3:
            raise NoriError(f'Invalid vertex data: "{text}"')
        p = to_uint(tokens[0])
        uv = to_uint(tokens[1]) if len(tokens) >= 2 and tokens[1] else None
        n = to_uint(tokens[2]) if len(tokens) >= 3 and tokens[2] else None
        return cls(p=p, n=n, uv=uv)


def _floats(parts: list[str], count: int) -> list[float]:
    """Read up to *count* leading numbers; missing or malformed ones become 0."""
    values = []
    for part in parts[:count]:
        try:
            values.append(float(part))
        except ValueError:
            break
    return values + [0.0] * (count - len(values))


def _lookup(table: list, index: int | None, kind: str) -> np.ndarray:
    if index is None or not 1 <= index <= len(table):
        raise NoriError(f"OBJ file references a missing {kind} (index {index})")
    return table[index - 1]


class WavefrontOBJ(Mesh):
    """Triangle mesh read from an OBJ file; quads are split into two triangles."""

    def __init__(self, props: Properties) -> None:
        if "filename" not in props:
            raise NoriError('Property "filename" is missing!')
        filename = get_file_resolver().resolve(props["filename"])
        trafo = props.get("toWorld", Transform())

        try:
            source = filename.read_text()
        except OSError:
            raise NoriError(f'Unable to open OBJ file "{filename}"!') from None

        print(f'Loading "{filename}" .. ', end="", flush=True)
        start = time.perf_counter()

        positions: list[np.ndarray] = []
        texcoords: list[np.ndarray] = []
        normals: list[np.ndarray] = []
        indices: list[int] = []
        vertices: list[ObjVertex] = []
        vertex_map: dict[ObjVertex, int] = {}
        bbox = BoundingBox()

        for line in source.splitlines():
            parts = line.split()
            if not parts:
                continue
            prefix, rest = parts[0], parts[1:]
            if prefix == "v":
                p = trafo.apply_point(_floats(rest, 3))
                bbox.expand_by(p)
                positions.append(p)
            elif prefix == "vt":
                texcoords.append(np.array(_floats(rest, 2)))
            elif prefix == "vn":
                n = trafo.apply_normal(_floats(rest, 3))
                normals.append(n / np.linalg.norm(n))
            elif prefix == "f":
                corners = (rest + [""] * 3)[:4]
                verts = [ObjVertex.parse(text) for text in corners[:3]]
                if corners[3]:
                    verts += [ObjVertex.parse(corners[3]), verts[0], verts[2]]
                for vertex in verts:
                    if vertex not in vertex_map:
                        vertex_map[vertex] = len(vertices)
                        vertices.append(vertex)
                    indices.append(vertex_map[vertex])

        super().__init__(
            positions=[_lookup(positions, v.p, "position") for v in vertices],
            faces=np.array(indices, dtype=np.int64).reshape(-1, 3),
            normals=[_lookup(normals, v.n, "normal") for v in vertices] if normals else None,
            texcoords=[_lookup(texcoords, v.uv, "texture coordinate") for v in vertices]
            if texcoords
            else None,
            name=str(filename),
        )
        self.bbox = bbox

        elapsed = (time.perf_counter() - start) * 1000.0
        memory = 4 * (self.faces.size + self.positions.size + self.normals.size + self.texcoords.size)
        print(
            f"done. (V={self.vertex_count}, F={self.triangle_count}, "
            f"took {time_string(elapsed)} and {mem_string(memory)})"
        )


register_class("obj", WavefrontOBJ)
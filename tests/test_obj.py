import numpy as np
import pytest

from nori.common import NoriError
from nori.obj import ObjVertex, WavefrontOBJ
from nori.object import create_instance
from nori.transform import Transform

QUAD = """# unit quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 2
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def _write(tmp_path, text, name="mesh.obj"):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_parse_full_vertex():
    assert ObjVertex.parse("1/2/3") == ObjVertex(p=1, uv=2, n=3)


def test_parse_vertex_without_texcoord():
    vertex = ObjVertex.parse("4//7")
    assert vertex.p == 4
    assert vertex.uv is None
    assert vertex.n == 7


def test_parse_position_only():
    assert ObjVertex.parse("5") == ObjVertex(p=5)


def test_parse_too_many_fields():
    with pytest.raises(NoriError):
        ObjVertex.parse("1/2/3/4")


def test_parse_garbage_index():
    with pytest.raises(NoriError):
        ObjVertex.parse("x")


def test_quad_is_split_and_vertices_shared(tmp_path):
    mesh = WavefrontOBJ({"filename": _write(tmp_path, QUAD)})
    assert mesh.triangle_count == 2
    assert mesh.vertex_count == 4
    assert set(mesh.faces[0]) | set(mesh.faces[1]) == {0, 1, 2, 3}
    np.testing.assert_allclose(mesh.normals, [[0.0, 0.0, 1.0]] * 4)
    assert mesh.name.endswith("mesh.obj")


def test_texcoords_follow_positions(tmp_path):
    mesh = WavefrontOBJ({"filename": _write(tmp_path, QUAD)})
    np.testing.assert_allclose(mesh.texcoords, mesh.positions[:, :2])


def test_to_world_transform_is_applied(tmp_path):
    offset = np.array([1.0, 2.0, 3.0])
    matrix = np.eye(4)
    matrix[:3, 3] = offset
    plain = WavefrontOBJ({"filename": _write(tmp_path, QUAD)})
    moved = WavefrontOBJ({"filename": _write(tmp_path, QUAD), "toWorld": Transform(matrix)})
    np.testing.assert_allclose(moved.positions, plain.positions + offset)
    np.testing.assert_allclose(moved.bbox.min, moved.positions.min(axis=0))
    np.testing.assert_allclose(moved.bbox.max, moved.positions.max(axis=0))


def test_registered_as_obj(tmp_path):
    mesh = create_instance("obj", {"filename": _write(tmp_path, QUAD)})
    assert isinstance(mesh, WavefrontOBJ)
    assert mesh.triangle_count == 2


def test_missing_file(tmp_path):
    with pytest.raises(NoriError):
        WavefrontOBJ({"filename": str(tmp_path / "absent.obj")})


def test_missing_filename_property():
    with pytest.raises(NoriError):
        WavefrontOBJ({})


def test_out_of_range_index(tmp_path):
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 9\n"
    with pytest.raises(NoriError):
        WavefrontOBJ({"filename": _write(tmp_path, text)})


def test_missing_texcoord_reference(tmp_path):
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0 0\nf 1 2 3\n"
    with pytest.raises(NoriError):
        WavefrontOBJ({"filename": _write(tmp_path, text)})
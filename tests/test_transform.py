import numpy as np
import pytest

from nori.ray import Ray
from nori.transform import Transform


def _translation(t):
    m = np.eye(4)
    m[:3, 3] = t
    return m


def _scale(s):
    return np.diag([s[0], s[1], s[2], 1.0])


def test_identity_leaves_point_unchanged():
    p = np.array([1.5, -2.0, 3.0])
    assert np.allclose(Transform().apply_point(p), p)


def test_translation_moves_points_not_vectors():
    t = np.array([1.0, 2.0, 3.0])
    trafo = Transform(_translation(t))
    p = np.array([0.5, 0.5, 0.5])
    assert np.allclose(trafo.apply_point(p), p + t)
    assert np.allclose(trafo.apply_vector(p), p)


def test_inverse_round_trip():
    trafo = Transform(_translation([1.0, -2.0, 0.5]) @ _scale([2.0, 3.0, 0.5]))
    p = np.array([0.3, -0.7, 1.1])
    back = trafo.inverse().apply_point(trafo.apply_point(p))
    assert np.allclose(back, p)
    assert np.allclose(trafo.matrix @ trafo.inverse_matrix, np.eye(4))


def test_composition():
    a = Transform(_translation([1.0, 0.0, 2.0]))
    b = Transform(_scale([2.0, 0.5, 1.0]))
    p = np.array([1.0, 2.0, 3.0])
    ab = a * b
    assert np.allclose(ab.apply_point(p), a.apply_point(b.apply_point(p)))
    assert np.allclose(ab.inverse_matrix, np.linalg.inv(ab.matrix))


def test_normals_stay_perpendicular_under_nonuniform_scale():
    trafo = Transform(_scale([2.0, 1.0, 1.0]))
    tangent = np.array([1.0, -1.0, 0.0])
    normal = np.array([1.0, 1.0, 0.0])
    assert np.dot(trafo.apply_vector(tangent), trafo.apply_normal(normal)) == pytest.approx(0.0)


def test_homogeneous_divide():
    trafo = Transform(np.diag([1.0, 1.0, 1.0, 2.0]))
    p = np.array([2.0, 4.0, 6.0])
    assert np.allclose(trafo.apply_point(p), p / 2)


def test_apply_ray_keeps_segment():
    t = np.array([0.0, 0.0, 5.0])
    trafo = Transform(_translation(t))
    ray = Ray((1.0, 1.0, 1.0), (0.0, 1.0, 0.0), 0.5, 9.0)
    moved = trafo * ray
    assert np.allclose(moved.o, ray.o + t)
    assert np.allclose(moved.d, ray.d)
    assert moved.mint == ray.mint and moved.maxt == ray.maxt
    assert np.allclose(moved.d * moved.d_rcp, [np.inf, 1.0, np.inf]) is False or moved.d_rcp[1] == 1.0


def test_unsupported_operand():
    with pytest.raises(TypeError):
        Transform() * "nope"


def test_identity_string():
    assert str(Transform()) == "[1, 0, 0, 0;\n 0, 1, 0, 0;\n 0, 0, 1, 0;\n 0, 0, 0, 1]"
import math

import numpy as np
import pytest

from nori.camera import PerspectiveCamera, ReconstructionFilter
from nori.common import NoriError
from nori.object import ClassType, NoriObject, create_instance
from nori.transform import Transform


class BoxFilter(ReconstructionFilter):
    def __init__(self, props=None):
        self.radius = 0.5

    def eval(self, x):
        return 1.0

    def __str__(self):
        return "BoxFilter[]"


class OtherObject(NoriObject):
    class_type = ClassType.BSDF

    def __str__(self):
        return "Other[]"


def make_camera(**props):
    camera = PerspectiveCamera(props)
    camera.add_child(BoxFilter())
    camera.activate()
    return camera


def test_defaults_from_source():
    camera = PerspectiveCamera({})
    assert camera.output_size == (1280, 720)
    assert camera.fov == 30.0


def test_center_sample_looks_down_z():
    camera = make_camera(width=100, height=50)
    ray, weight = camera.sample_ray((50.0, 25.0), (0.5, 0.5))
    assert np.allclose(ray.d, [0.0, 0.0, 1.0])
    assert np.allclose(ray.o, [0.0, 0.0, 0.0])
    assert np.allclose(weight, np.ones(3))


def test_direction_is_unit_and_clip_ratio_preserved():
    camera = make_camera(width=64, height=48, fov=60.0, nearClip=0.5, farClip=50.0)
    for sample in [(0.0, 0.0), (10.3, 40.1), (63.9, 1.2)]:
        ray, _ = camera.sample_ray(sample, (0.0, 0.0))
        assert math.isclose(float(np.linalg.norm(ray.d)), 1.0, rel_tol=1e-9)
        assert math.isclose(ray.maxt / ray.mint, 100.0, rel_tol=1e-9)
        assert ray.mint >= 0.5


def test_left_edge_with_ninety_degree_fov():
    camera = make_camera(width=100, height=50, fov=90.0)
    ray, _ = camera.sample_ray((0.0, 25.0), (0.0, 0.0))
    expected = np.array([1.0, 0.0, 1.0]) / math.sqrt(2.0)
    assert np.allclose(ray.d, expected)


def test_mirror_symmetry_of_samples():
    camera = make_camera(width=80, height=60, fov=45.0)
    left, _ = camera.sample_ray((20.0, 30.0), (0.0, 0.0))
    right, _ = camera.sample_ray((60.0, 30.0), (0.0, 0.0))
    assert np.allclose(left.d, right.d * np.array([-1.0, 1.0, 1.0]))


def test_to_world_translation_moves_origin():
    matrix = np.eye(4)
    matrix[:3, 3] = (1.0, 2.0, 3.0)
    camera = make_camera(width=10, height=10, toWorld=Transform(matrix))
    ray, _ = camera.sample_ray((5.0, 5.0), (0.0, 0.0))
    assert np.allclose(ray.o, [1.0, 2.0, 3.0])
    assert np.allclose(ray.d, [0.0, 0.0, 1.0])


def test_second_filter_rejected():
    camera = PerspectiveCamera({})
    camera.add_child(BoxFilter())
    with pytest.raises(NoriError):
        camera.add_child(BoxFilter())


def test_unsupported_child_rejected():
    camera = PerspectiveCamera({})
    with pytest.raises(NoriError, match="not supported"):
        camera.add_child(OtherObject())


def test_registered_and_str():
    camera = create_instance("perspective", {"width": 32, "height": 16})
    camera.add_child(BoxFilter())
    text = str(camera)
    assert text.startswith("PerspectiveCamera[")
    assert "outputSize = [32, 16]" in text
    assert "BoxFilter[]" in text
import dataclasses
import math

import numpy as np

from nori.common import EPSILON
from nori.ray import Ray


def test_defaults_cover_open_segment():
    ray = Ray((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    assert ray.mint == EPSILON
    assert ray.maxt == math.inf


def test_point_along_ray():
    o = np.array([1.0, 2.0, 3.0])
    d = np.array([0.0, 1.0, 0.0])
    ray = Ray(o, d)
    assert np.allclose(ray(0.0), o)
    assert np.allclose(ray(1.0), o + d)


def test_reciprocal_direction():
    ray = Ray((0, 0, 0), (2.0, -4.0, 0.5))
    assert np.allclose(ray.d * ray.d_rcp, 1.0)


def test_zero_component_gives_infinite_reciprocal():
    ray = Ray((0, 0, 0), (0.0, 0.0, 1.0))
    assert ray.d_rcp[0] == math.inf


def test_update_after_direction_change():
    ray = Ray((0, 0, 0), (1.0, 1.0, 1.0))
    ray.d = np.array([2.0, 4.0, 8.0])
    ray.update()
    assert np.allclose(ray.d * ray.d_rcp, 1.0)


def test_reverse():
    ray = Ray((1, 2, 3), (0.5, -1.0, 2.0), 0.25, 7.0)
    rev = ray.reverse()
    assert np.allclose(rev.o, ray.o)
    assert np.allclose(rev.d, -ray.d)
    assert np.allclose(rev.d_rcp, -ray.d_rcp)
    assert rev.mint == ray.mint and rev.maxt == ray.maxt


def test_replace_changes_segment_only():
    ray = Ray((1, 2, 3), (0.0, 0.0, 1.0))
    copy = dataclasses.replace(ray, mint=0.5, maxt=2.0)
    assert copy.mint == 0.5 and copy.maxt == 2.0
    assert np.allclose(copy.d, ray.d)
    assert np.allclose(copy.o, ray.o)


def test_str_layout():
    text = str(Ray((0, 0, 0), (0, 0, 1)))
    assert text.startswith("Ray[\n  o = ")
    assert "maxt = inf" in text
    assert text.endswith("\n]")
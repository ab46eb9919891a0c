"""Cameras and the reconstruction filters they use to splat samples."""

from __future__ import annotations

import abc
import math
from typing import Sequence

import numpy as np

from .common import NoriError, deg_to_rad, indent
from .object import ClassType, NoriObject, Properties, create_instance, register_class
from .ray import Ray
from .transform import Transform

# Reconstruction filters are tabulated at this resolution
FILTER_RESOLUTION = 32


class ReconstructionFilter(NoriObject):
    """Radially symmetric image reconstruction filter."""

    class_type = ClassType.RECONSTRUCTION_FILTER
    radius: float = 0.0

    @abc.abstractmethod
    def eval(self, x: float) -> float:
        """Evaluate the filter at distance *x* (in pixels) from its center."""


class Camera(NoriObject):
    """Interface of cameras that sample rays from their response function."""

    class_type = ClassType.CAMERA

    def __init__(self) -> None:
        self.output_size: tuple[int, int] = (0, 0)
        self.rfilter: ReconstructionFilter | None = None

    @abc.abstractmethod
    def sample_ray(
        self, sample_position: Sequence[float], aperture_sample: Sequence[float]
    ) -> tuple[Ray, np.ndarray]:
        """Sample a ray for a film position given in fractional pixels.

        Returns the ray and its importance weight.
        """


class PerspectiveCamera(Camera):
    """Pinhole perspective camera with infinite depth of field."""

    def __init__(self, props: Properties | None = None) -> None:
        super().__init__()
        props = props or {}
        self.output_size = (int(props.get("width", 1280)), int(props.get("height", 720)))
        self.inv_output_size = (1.0 / self.output_size[0], 1.0 / self.output_size[1])
        self.camera_to_world: Transform = props.get("toWorld", Transform())
        self.fov = float(props.get("fov", 30.0))
        self.near_clip = float(props.get("nearClip", 1e-4))
        self.far_clip = float(props.get("farClip", 1e4))
        self.sample_to_camera = Transform()

    def activate(self) -> None:
        """Build the sample-to-camera mapping and ensure a filter exists."""
        width, height = self.output_size
        aspect = width / float(height)
        recip = 1.0 / (self.far_clip - self.near_clip)
        cot = 1.0 / math.tan(deg_to_rad(self.fov / 2.0))

        perspective = np.array(
            [
                [cot, 0.0, 0.0, 0.0],
                [0.0, cot, 0.0, 0.0],
                [0.0, 0.0, self.far_clip * recip, -self.near_clip * self.far_clip * recip],
                [0.0, 0.0, 1.0, 0.0],
            ]
        )
        scale = np.diag([-0.5, -0.5 * aspect, 1.0, 1.0])
        translate = np.eye(4)
        translate[:3, 3] = (-1.0, -1.0 / aspect, 0.0)
        self.sample_to_camera = Transform(scale @ translate @ perspective).inverse()

        if self.rfilter is None:
            self.rfilter = create_instance("gaussian", {})

    def sample_ray(
        self, sample_position: Sequence[float], aperture_sample: Sequence[float]
    ) -> tuple[Ray, np.ndarray]:
        near_p = self.sample_to_camera.apply_point(
            (
                float(sample_position[0]) * self.inv_output_size[0],
                float(sample_position[1]) * self.inv_output_size[1],
                0.0,
            )
        )
        d = near_p / np.linalg.norm(near_p)
        inv_z = 1.0 / float(d[2])

        ray = Ray(
            self.camera_to_world.apply_point((0.0, 0.0, 0.0)),
            self.camera_to_world.apply_vector(d),
            self.near_clip * inv_z,
            self.far_clip * inv_z,
        )
        return ray, np.ones(3)

    def add_child(self, child: NoriObject) -> None:
        """Attach a reconstruction filter; only one is allowed."""
        if child.class_type == ClassType.RECONSTRUCTION_FILTER:
            if self.rfilter is not None:
                raise NoriError("Camera: tried to register multiple reconstruction filters!")
            self.rfilter = child
        else:
            raise NoriError(f"Camera::addChild(<{child.class_type}>) is not supported!")

    def __str__(self) -> str:
        rfilter = indent(str(self.rfilter)) if self.rfilter is not None else "null"
        width, height = self.output_size
        return (
            "PerspectiveCamera[\n"
            f"  cameraToWorld = {indent(str(self.camera_to_world), 18)},\n"
            f"  outputSize = [{width}, {height}],\n"
            f"  fov = {self.fov:f},\n"
            f"  clip = [{self.near_clip:f}, {self.far_clip:f}],\n"
            f"  rfilter = {rfilter}\n"
            "]"
        )


register_class("perspective", PerspectiveCamera)
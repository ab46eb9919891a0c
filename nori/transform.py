"""Homogeneous coordinate transformations."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .ray import Ray


class Transform:
    """A 4x4 homogeneous transformation together with its inverse."""

    def __init__(self, matrix=None, inverse_matrix=None) -> None:
        if matrix is None:
            self._matrix = np.eye(4)
            self._inverse = np.eye(4) if inverse_matrix is None else np.array(
                inverse_matrix, dtype=float
            )
            return
        self._matrix = np.array(matrix, dtype=float)
        if self._matrix.shape != (4, 4):
            raise ValueError("a transform needs a 4x4 matrix")
        if inverse_matrix is None:
            self._inverse = np.linalg.inv(self._matrix)
        else:
            self._inverse = np.array(inverse_matrix, dtype=float)

    @property
    def matrix(self) -> np.ndarray:
        """The underlying matrix."""
        return self._matrix

    @property
    def inverse_matrix(self) -> np.ndarray:
        """The inverse of the underlying matrix."""
        return self._inverse

    def inverse(self) -> "Transform":
        """Return the inverse transformation."""
        return Transform(self._inverse, self._matrix)

    def __mul__(self, other):
        if isinstance(other, Transform):
            return Transform(
                self._matrix @ other._matrix, other._inverse @ self._inverse
            )
        if isinstance(other, Ray):
            return self.apply_ray(other)
        return NotImplemented

    def apply_point(self, p: Sequence[float]) -> np.ndarray:
        """Transform a point, including the homogeneous divide."""
        x, y, z = (float(c) for c in p)
        result = self._matrix @ np.array([x, y, z, 1.0])
        return result[:3] / result[3]

    def apply_vector(self, v: Sequence[float]) -> np.ndarray:
        """Transform a direction vector (translation is ignored)."""
        return self._matrix[:3, :3] @ np.asarray(v, dtype=float)

    def apply_normal(self, n: Sequence[float]) -> np.ndarray:
        """Transform a surface normal with the inverse transpose."""
        return self._inverse[:3, :3].T @ np.asarray(n, dtype=float)

    def apply_ray(self, ray: Ray) -> Ray:
        """Transform a ray, keeping its segment."""
        return Ray(
            self.apply_point(ray.o), self.apply_vector(ray.d), ray.mint, ray.maxt
        )

    def __str__(self) -> str:
        cells = [[f"{float(x):.4g}" for x in row] for row in self._matrix]
        width = max(len(cell) for row in cells for cell in row)
        rows = [", ".join(cell.rjust(width) for cell in row) for row in cells]
        return "[" + ";\n ".join(rows) + "]"
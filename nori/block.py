"""Image blocks that accumulate filtered samples, and the block scheduler."""

from __future__ import annotations

import enum
import math
import sys
import threading
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from .camera import FILTER_RESOLUTION, ReconstructionFilter
from .common import NoriError, is_valid_color, to_srgb


def _format_pair(v) -> str:
    return f"[{v[0]}, {v[1]}]"


class ImageBlock:
    """A rectangle of RGBW pixels with a border wide enough for the filter.

    ``data`` has shape ``(rows, cols, 4)``; the last channel holds the
    accumulated filter weight.
    """

    def __init__(self, size: Sequence[int], rfilter: ReconstructionFilter | None = None) -> None:
        self.offset: tuple[int, int] = (0, 0)
        self.size: tuple[int, int] = (int(size[0]), int(size[1]))
        self.filter_radius = 0.0
        self.border_size = 0
        self._filter: np.ndarray | None = None
        self._lookup_factor = 0.0
        self.lock = threading.Lock()

        if rfilter is not None:
            self.filter_radius = float(rfilter.radius)
            self.border_size = int(math.ceil(self.filter_radius - 0.5))
            table = [
                rfilter.eval(self.filter_radius * i / FILTER_RESOLUTION)
                for i in range(FILTER_RESOLUTION)
            ]
            self._filter = np.array(table + [0.0], dtype=float)
            self._lookup_factor = FILTER_RESOLUTION / self.filter_radius

        border = 2 * self.border_size
        self.data = np.zeros((self.size[1] + border, self.size[0] + border, 4))

    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def cols(self) -> int:
        return self.data.shape[1]

    def clear(self) -> None:
        """Reset all pixels and weights to zero."""
        self.data[...] = 0.0

    def put_sample(self, pos: Sequence[float], value: Sequence[float]) -> None:
        """Splat a radiance sample at image position *pos* through the filter."""
        if not is_valid_color(value):
            print(
                f"Integrator: computed an invalid radiance value: {list(value)}",
                file=sys.stderr,
            )
            return
        if self._filter is None:
            raise NoriError("ImageBlock: no reconstruction filter was given!")

        px = float(pos[0]) - 0.5 - (self.offset[0] - self.border_size)
        py = float(pos[1]) - 0.5 - (self.offset[1] - self.border_size)
        r = self.filter_radius

        x0 = max(math.ceil(px - r), 0)
        y0 = max(math.ceil(py - r), 0)
        x1 = min(math.floor(px + r), self.cols - 1)
        y1 = min(math.floor(py + r), self.rows - 1)
        if x0 > x1 or y0 > y1:
            return

        wx = self._weights(np.arange(x0, x1 + 1), px)
        wy = self._weights(np.arange(y0, y1 + 1), py)
        weights = np.outer(wy, wx)
        color = np.asarray(value, dtype=float)

        region = self.data[y0 : y1 + 1, x0 : x1 + 1]
        region[..., :3] += weights[..., None] * color
        region[..., 3] += weights

    def _weights(self, coords: np.ndarray, center: float) -> np.ndarray:
        idx = (np.abs(coords - center) * self._lookup_factor).astype(int)
        return self._filter[np.minimum(idx, FILTER_RESOLUTION)]

    def put_block(self, other: "ImageBlock") -> None:
        """Add the contents of *other*, including its border, to this block."""
        shift = self.border_size - other.border_size
        ox = other.offset[0] - self.offset[0] + shift
        oy = other.offset[1] - self.offset[1] + shift
        width = other.size[0] + 2 * other.border_size
        height = other.size[1] + 2 * other.border_size
        with self.lock:
            self.data[oy : oy + height, ox : ox + width] += other.data[:height, :width]

    def to_bitmap(self) -> np.ndarray:
        """Return the weight-normalized RGB image without the border."""
        b = self.border_size
        width, height = self.size
        region = self.data[b : b + height, b : b + width]
        weight = region[..., 3:4]
        with np.errstate(divide="ignore", invalid="ignore"):
            rgb = np.where(weight != 0, region[..., :3] / weight, 0.0)
        return rgb

    def from_bitmap(self, bitmap: np.ndarray) -> None:
        """Load an RGB image with unit weights; its size must match the block."""
        bitmap = np.asarray(bitmap, dtype=float)
        if bitmap.shape[0] != self.rows or bitmap.shape[1] != self.cols:
            raise NoriError("Invalid bitmap dimensions!")
        width, height = self.size
        self.data[:height, :width, :3] = bitmap[:height, :width, :3]
        self.data[:height, :width, 3] = 1.0

    def __str__(self) -> str:
        return f"ImageBlock[offset={_format_pair(self.offset)}, size={_format_pair(self.size)}]]"


class _Direction(enum.IntEnum):
    RIGHT = 0
    DOWN = 1
    LEFT = 2
    UP = 3


class BlockGenerator:
    """Hands out image blocks in a spiral starting from the image center."""

    def __init__(self, size: Sequence[int], block_size: int) -> None:
        self.size = (int(size[0]), int(size[1]))
        self.block_size = int(block_size)
        self.num_blocks = (
            math.ceil(self.size[0] / self.block_size),
            math.ceil(self.size[1] / self.block_size),
        )
        self.blocks_left = self.num_blocks[0] * self.num_blocks[1]
        self._direction = _Direction.RIGHT
        self._block = [self.num_blocks[0] // 2, self.num_blocks[1] // 2]
        self._steps_left = 1
        self._num_steps = 1
        self._lock = threading.Lock()

    @property
    def block_count(self) -> int:
        """Total number of blocks covering the image."""
        return self.num_blocks[0] * self.num_blocks[1]

    def next_block(self, block: ImageBlock) -> bool:
        """Set offset and size of *block* to the next region; False when done."""
        with self._lock:
            if self.blocks_left == 0:
                return False

            pos = (self._block[0] * self.block_size, self._block[1] * self.block_size)
            block.offset = pos
            block.size = (
                min(self.size[0] - pos[0], self.block_size),
                min(self.size[1] - pos[1], self.block_size),
            )

            self.blocks_left -= 1
            if self.blocks_left == 0:
                return True

            while True:
                if self._direction == _Direction.RIGHT:
                    self._block[0] += 1
                elif self._direction == _Direction.DOWN:
                    self._block[1] += 1
                elif self._direction == _Direction.LEFT:
                    self._block[0] -= 1
                else:
                    self._block[1] -= 1

                self._steps_left -= 1
                if self._steps_left == 0:
                    self._direction = _Direction((self._direction + 1) % 4)
                    if self._direction in (_Direction.LEFT, _Direction.RIGHT):
                        self._num_steps += 1
                    self._steps_left = self._num_steps

                x, y = self._block
                if 0 <= x < self.num_blocks[0] and 0 <= y < self.num_blocks[1]:
                    return True


def save_png(bitmap: np.ndarray, filename: str | Path) -> Path:
    """Write *bitmap* tonemapped to sRGB as ``<filename>.png``; return the path."""
    bitmap = np.asarray(bitmap, dtype=float)
    height, width = bitmap.shape[:2]
    print(f'Writing a {width}x{height} PNG file to "{filename}"')
    path = Path(f"{filename}.png")
    rgb8 = np.clip(255.0 * to_srgb(bitmap[..., :3]), 0.0, 255.0).astype(np.uint8)
    try:
        Image.fromarray(rgb8, mode="RGB").save(path, format="PNG")
    except OSError as error:
        raise NoriError(f'Could not save PNG file "{path}"') from error
    return path
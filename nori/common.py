"""Shared helpers: string parsing, formatting, color and geometry utilities."""

from __future__ import annotations

import enum
import functools
import math
import re
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

# Relative error threshold for ray intersection computations
EPSILON = 1e-4

PI = 3.14159265358979323846
INV_PI = 0.31830988618379067154
INV_TWOPI = 0.15915494309189533577
INV_FOURPI = 0.07957747154594766788
SQRT_TWO = 1.41421356237309504880
INV_SQRT_TWO = 0.70710678118654752440


class NoriError(RuntimeError):
    """Error raised for invalid input or unsupported operations."""


class Measure(enum.IntEnum):
    """Measures associated with probability distributions."""

    UNKNOWN = 0
    SOLID_ANGLE = 1
    DISCRETE = 2


class FileResolver:
    """Locates resource files by searching an ordered list of directories."""

    def __init__(self, paths: Iterable[str | Path] | None = None) -> None:
        self.paths: list[Path] = (
            [Path(p) for p in paths] if paths is not None else [Path.cwd()]
        )

    def prepend(self, path: str | Path) -> None:
        """Search *path* before all directories registered so far."""
        self.paths.insert(0, Path(path))

    def resolve(self, name: str | Path) -> Path:
        """Return the first existing match for *name*, or *name* itself."""
        name = Path(name)
        for directory in self.paths:
            candidate = directory / name
            if candidate.exists():
                return candidate
        return name

    def __iter__(self):
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


@functools.cache
def get_file_resolver() -> FileResolver:
    """Return the process-wide file resolver."""
    return FileResolver()


# ---------------------------------------------------------------- strings

_C_SPACE = " \t\n\v\f\r"
_INT_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)")
_DEC_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_HEX_RE = re.compile(
    r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)([pP][+-]?[0-9]+)?"
)
_SPECIAL_RE = re.compile(r"[+-]?(inf|infinity)", re.IGNORECASE)
_NAN_RE = re.compile(r"[+-]?nan(\([0-9A-Za-z_]*\))?", re.IGNORECASE)
_ULONG_MAX = 2**64 - 1


def indent(string: str, amount: int = 2) -> str:
    """Indent every line except the first by *amount* spaces."""
    if not string:
        return ""
    lines = string.split("\n")
    trailing = string.endswith("\n")
    if trailing:
        lines.pop()
    result = ("\n" + " " * amount).join(lines)
    return result + "\n" if trailing else result


def ends_with(value: str, ending: str) -> bool:
    """Check whether *value* ends with *ending*."""
    return value.endswith(ending)


def to_lower(value: str) -> str:
    """Convert a string to lower case."""
    return value.lower()


def to_bool(text: str) -> bool:
    """Parse ``true``/``false`` (any case)."""
    value = to_lower(text)
    if value == "false":
        return False
    if value == "true":
        return True
    raise NoriError(f'Could not parse boolean value "{text}"')


def to_int(text: str) -> int:
    """Parse a signed decimal integer; trailing characters are an error."""
    if text == "":
        return 0
    match = _INT_RE.fullmatch(text)
    if match is None:
        raise NoriError(f'Could not parse integer value "{text}"')
    return int(match.group(1) + match.group(2))


def to_uint(text: str) -> int:
    """Parse an unsigned 32-bit integer; negative input wraps around."""
    if text == "":
        return 0
    match = _INT_RE.fullmatch(text)
    if match is None:
        raise NoriError(f'Could not parse integer value "{text}"')
    magnitude = int(match.group(2))
    if magnitude > _ULONG_MAX:
        return 2**32 - 1
    value = -magnitude if match.group(1) == "-" else magnitude
    return value % 2**32


def to_float(text: str) -> float:
    """Parse a floating point value; trailing characters are an error."""
    if text == "":
        return 0.0
    body = text.lstrip(_C_SPACE)
    if _DEC_RE.fullmatch(body) or _SPECIAL_RE.fullmatch(body):
        return float(body)
    if _HEX_RE.fullmatch(body):
        return float.fromhex(body)
    if _NAN_RE.fullmatch(body):
        return math.nan
    raise NoriError(f'Could not parse floating point value "{text}"')


def tokenize(string: str, delim: str = ", ", include_empty: bool = False) -> list[str]:
    """Split *string* at any character in *delim*.

    Empty tokens are dropped unless *include_empty* is set; the final
    token is always kept.
    """
    if not delim:
        return [string]
    pieces = re.split("[" + re.escape(delim) + "]", string)
    last = len(pieces) - 1
    return [
        piece
        for position, piece in enumerate(pieces)
        if piece or include_empty or position == last
    ]


def to_vector3f(text: str) -> np.ndarray:
    """Parse three comma/space separated floats."""
    tokens = tokenize(text)
    if len(tokens) != 3:
        raise NoriError("Expected 3 values")
    return np.array([to_float(token) for token in tokens], dtype=float)


def time_string(time: float, precise: bool = False) -> str:
    """Format a duration in milliseconds for humans."""
    if math.isnan(time) or math.isinf(time):
        return "inf"
    suffix = "ms"
    if time > 1000:
        time /= 1000
        suffix = "s"
        if time > 60:
            time /= 60
            suffix = "m"
            if time > 60:
                time /= 60
                suffix = "h"
                if time > 12:
                    time /= 12
                    suffix = "d"
    digits = 4 if precise else 1
    return f"{time:.{digits}f}{suffix}"


def mem_string(size: int, precise: bool = False) -> str:
    """Format a memory amount in bytes for humans."""
    suffixes = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
    value = float(size)
    suffix = 0
    while suffix < 5 and value > 1024.0:
        value /= 1024.0
        suffix += 1
    digits = 0 if suffix == 0 else (4 if precise else 1)
    return f"{value:.{digits}f} {suffixes[suffix]}"


# ----------------------------------------------------------------- colors


def to_srgb(color: Sequence[float]) -> np.ndarray:
    """Convert a linear RGB color to sRGB."""
    value = np.asarray(color, dtype=float)
    curve = 1.055 * np.power(np.maximum(value, 0.0), 1.0 / 2.4) - 0.055
    return np.where(value <= 0.0031308, 12.92 * value, curve)


def to_linear_rgb(color: Sequence[float]) -> np.ndarray:
    """Convert an sRGB color to linear RGB."""
    value = np.asarray(color, dtype=float)
    curve = np.power(np.maximum(value + 0.055, 0.0) / 1.055, 2.4)
    return np.where(value <= 0.04045, value / 12.92, curve)


def is_valid_color(color: Sequence[float]) -> bool:
    """A color is valid when all channels are finite and non-negative."""
    value = np.asarray(color, dtype=float)
    return bool(np.all(np.isfinite(value)) and np.all(value >= 0))


def luminance(color: Sequence[float]) -> float:
    """Return the luminance of a linear RGB color."""
    r, g, b = (float(c) for c in color)
    return r * 0.212671 + g * 0.715160 + b * 0.072169


# ------------------------------------------------------------------- math


def rad_to_deg(value: float) -> float:
    """Convert radians to degrees."""
    return value * (180.0 / PI)


def deg_to_rad(value: float) -> float:
    """Convert degrees to radians."""
    return value * (PI / 180.0)


def clamp(value, low, high):
    """Clamp *value* into ``[low, high]``."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def lerp(t: float, v1: float, v2: float) -> float:
    """Linearly interpolate between *v1* and *v2*."""
    return (1.0 - t) * v1 + t * v2


def mod(a: int, b: int) -> int:
    """Modulo whose result is made non-negative by adding *b* once."""
    r = abs(a) % abs(b)
    if a < 0:
        r = -r
    return r + b if r < 0 else r


def spherical_direction(theta: float, phi: float) -> np.ndarray:
    """Unit direction for the given spherical coordinates."""
    sin_theta, cos_theta = math.sin(theta), math.cos(theta)
    return np.array(
        [sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta]
    )


def spherical_coordinates(v: Sequence[float]) -> np.ndarray:
    """Return ``(theta, phi)`` of a unit direction, phi in ``[0, 2*pi)``."""
    x, y, z = (float(c) for c in v)
    theta = math.acos(clamp(z, -1.0, 1.0))
    phi = math.atan2(y, x)
    if phi < 0:
        phi += 2 * PI
    return np.array([theta, phi])


def coordinate_system(a: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    """Complete the unit vector *a* to an orthonormal basis ``(b, c)``."""
    ax, ay, az = (float(x) for x in a)
    if abs(ax) > abs(ay):
        inv_len = 1.0 / math.sqrt(ax * ax + az * az)
        c = np.array([az * inv_len, 0.0, -ax * inv_len])
    else:
        inv_len = 1.0 / math.sqrt(ay * ay + az * az)
        c = np.array([0.0, az * inv_len, -ay * inv_len])
    b = np.cross(c, np.array([ax, ay, az]))
    return b, c


def fresnel(cos_theta_i: float, ext_ior: float, int_ior: float) -> float:
    """Unpolarized Fresnel reflectance of a dielectric interface."""
    eta_i, eta_t = ext_ior, int_ior
    if ext_ior == int_ior:
        return 0.0
    if cos_theta_i < 0.0:
        eta_i, eta_t = eta_t, eta_i
        cos_theta_i = -cos_theta_i

    eta = eta_i / eta_t
    sin_theta_t_sqr = eta * eta * (1 - cos_theta_i * cos_theta_i)
    if sin_theta_t_sqr > 1.0:
        return 1.0  # total internal reflection

    cos_theta_t = math.sqrt(1.0 - sin_theta_t_sqr)
    rs = (eta_i * cos_theta_i - eta_t * cos_theta_t) / (
        eta_i * cos_theta_i + eta_t * cos_theta_t
    )
    rp = (eta_t * cos_theta_i - eta_i * cos_theta_t) / (
        eta_t * cos_theta_i + eta_i * cos_theta_t
    )
    return (rs * rs + rp * rp) / 2.0
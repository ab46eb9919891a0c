"""Bidirectional scattering distribution functions."""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from .common import INV_PI, PI, Measure, fresnel
from .object import ClassType, NoriObject, Properties, register_class


def _format_vector(v) -> str:
    return "[" + ", ".join(f"{float(x):g}" for x in v) + "]"


def _color(props: Properties, name: str, default: Any) -> np.ndarray:
    return np.array(props.get(name, default), dtype=float)


def _cos_theta(v: np.ndarray) -> float:
    return float(v[2])


def _square_to_cosine_hemisphere(sample: Sequence[float]) -> np.ndarray:
    u, v = float(sample[0]), float(sample[1])
    r = math.sqrt(u)
    phi = 2.0 * PI * v
    return np.array([r * math.cos(phi), r * math.sin(phi), math.sqrt(max(0.0, 1.0 - u))])


def _beckmann(m: np.ndarray, alpha: float) -> float:
    cos_t = float(m[2])
    if cos_t <= 0.0:
        return 0.0
    cos2 = cos_t * cos_t
    tan2 = (1.0 - cos2) / cos2
    return math.exp(-tan2 / (alpha * alpha)) / (PI * alpha * alpha * cos2 * cos2)


def _sample_beckmann(sample: Sequence[float], alpha: float) -> np.ndarray:
    u, v = float(sample[0]), float(sample[1])
    tan2 = -alpha * alpha * math.log(max(1.0 - u, 1e-300))
    cos_t = 1.0 / math.sqrt(1.0 + tan2)
    sin_t = math.sqrt(max(0.0, 1.0 - cos_t * cos_t))
    phi = 2.0 * PI * v
    return np.array([sin_t * math.cos(phi), sin_t * math.sin(phi), cos_t])


def _smith_g1(v: np.ndarray, m: np.ndarray, alpha: float) -> float:
    cos_v = float(v[2])
    if cos_v == 0.0 or float(np.dot(v, m)) / cos_v <= 0.0:
        return 0.0
    tan_v = math.sqrt(max(0.0, 1.0 - cos_v * cos_v)) / abs(cos_v)
    if tan_v == 0.0:
        return 1.0
    b = 1.0 / (alpha * tan_v)
    if b >= 1.6:
        return 1.0
    return (3.535 * b + 2.181 * b * b) / (1.0 + 2.276 * b + 2.577 * b * b)


@dataclass(eq=False)
class BSDFQueryRecord:
    """Directions (in the local frame) and measure of a BSDF query."""

    wi: np.ndarray
    wo: np.ndarray = field(default_factory=lambda: np.zeros(3))
    measure: Measure = Measure.UNKNOWN
    eta: float = 1.0

    def __post_init__(self) -> None:
        self.wi = np.array(self.wi, dtype=float)
        self.wo = np.array(self.wo, dtype=float)


class BSDF(NoriObject):
    """Base class of all scattering models."""

    class_type = ClassType.BSDF

    @abc.abstractmethod
    def sample(self, record: BSDFQueryRecord, sample: Sequence[float]) -> np.ndarray:
        """Sample ``record.wo`` and return ``eval * cos(theta_o) / pdf``.

        A zero result means that sampling failed.
        """

    @abc.abstractmethod
    def eval(self, record: BSDFQueryRecord) -> np.ndarray:
        """Evaluate the BSDF for the directions and measure in *record*."""

    @abc.abstractmethod
    def pdf(self, record: BSDFQueryRecord) -> float:
        """Density of sampling ``record.wo`` given ``record.wi``."""

    def is_diffuse(self) -> bool:
        """Whether the model can be handled by non-specular techniques."""
        return False


class Diffuse(BSDF):
    """Lambertian reflectance."""

    def __init__(self, props: Properties | None = None) -> None:
        props = props or {}
        self.albedo = _color(props, "albedo", (0.5, 0.5, 0.5))

    def _invalid(self, record: BSDFQueryRecord) -> bool:
        return (
            record.measure != Measure.SOLID_ANGLE
            or _cos_theta(record.wi) <= 0
            or _cos_theta(record.wo) <= 0
        )

    def eval(self, record: BSDFQueryRecord) -> np.ndarray:
        if self._invalid(record):
            return np.zeros(3)
        return self.albedo * INV_PI

    def pdf(self, record: BSDFQueryRecord) -> float:
        if self._invalid(record):
            return 0.0
        return INV_PI * _cos_theta(record.wo)

    def sample(self, record: BSDFQueryRecord, sample: Sequence[float]) -> np.ndarray:
        if _cos_theta(record.wi) <= 0:
            return np.zeros(3)
        record.measure = Measure.SOLID_ANGLE
        record.wo = _square_to_cosine_hemisphere(sample)
        record.eta = 1.0
        return self.albedo.copy()

    def is_diffuse(self) -> bool:
        return True

    def __str__(self) -> str:
        return f"Diffuse[\n  albedo = {_format_vector(self.albedo)}\n]"


class Mirror(BSDF):
    """Ideal specular reflection."""

    def __init__(self, props: Properties | None = None) -> None:
        pass

    def eval(self, record: BSDFQueryRecord) -> np.ndarray:
        return np.zeros(3)

    def pdf(self, record: BSDFQueryRecord) -> float:
        return 0.0

    def sample(self, record: BSDFQueryRecord, sample: Sequence[float]) -> np.ndarray:
        if _cos_theta(record.wi) <= 0:
            return np.zeros(3)
        wi = record.wi
        record.wo = np.array([-wi[0], -wi[1], wi[2]])
        record.measure = Measure.DISCRETE
        record.eta = 1.0
        return np.ones(3)

    def __str__(self) -> str:
        return "Mirror[]"


class Dielectric(BSDF):
    """Smooth dielectric interface that reflects or refracts."""

    def __init__(self, props: Properties | None = None) -> None:
        props = props or {}
        self.int_ior = float(props.get("intIOR", 1.5046))
        self.ext_ior = float(props.get("extIOR", 1.000277))

    def eval(self, record: BSDFQueryRecord) -> np.ndarray:
        return np.zeros(3)

    def pdf(self, record: BSDFQueryRecord) -> float:
        return 0.0

    def sample(self, record: BSDFQueryRecord, sample: Sequence[float]) -> np.ndarray:
        wi = record.wi
        cos_i = _cos_theta(wi)
        reflectance = fresnel(cos_i, self.ext_ior, self.int_ior)
        record.measure = Measure.DISCRETE

        if float(sample[0]) < reflectance:
            record.wo = np.array([-wi[0], -wi[1], wi[2]])
            record.eta = 1.0
            return np.ones(3)

        if cos_i < 0:
            eta_i, eta_t, side = self.int_ior, self.ext_ior, -1.0
        else:
            eta_i, eta_t, side = self.ext_ior, self.int_ior, 1.0
        eta = eta_i / eta_t
        cos_t = math.sqrt(max(0.0, 1.0 - eta * eta * (1.0 - cos_i * cos_i)))
        record.wo = -eta * wi + np.array([0.0, 0.0, (eta * abs(cos_i) - cos_t) * side])
        record.eta = eta_t / eta_i
        return np.full(3, eta * eta)

    def __str__(self) -> str:
        return (
            "Dielectric[\n"
            f"  intIOR = {self.int_ior:f},\n"
            f"  extIOR = {self.ext_ior:f}\n"
            "]"
        )


class Microfacet(BSDF):
    """Rough dielectric coating (Beckmann distribution) over a diffuse base."""

    def __init__(self, props: Properties | None = None) -> None:
        props = props or {}
        self.alpha = float(props.get("alpha", 0.1))
        self.int_ior = float(props.get("intIOR", 1.5046))
        self.ext_ior = float(props.get("extIOR", 1.000277))
        self.kd = _color(props, "kd", (0.5, 0.5, 0.5))
        # The specular part is scaled by 1 - max(kd) to conserve energy.
        self.ks = 1.0 - float(np.max(self.kd))

    def _invalid(self, record: BSDFQueryRecord) -> bool:
        return (
            record.measure != Measure.SOLID_ANGLE
            or _cos_theta(record.wi) <= 0
            or _cos_theta(record.wo) <= 0
        )

    def eval(self, record: BSDFQueryRecord) -> np.ndarray:
        if self._invalid(record):
            return np.zeros(3)
        wi, wo = record.wi, record.wo
        wh = wi + wo
        wh = wh / np.linalg.norm(wh)
        distribution = _beckmann(wh, self.alpha)
        reflectance = fresnel(float(np.dot(wh, wi)), self.ext_ior, self.int_ior)
        shadowing = _smith_g1(wi, wh, self.alpha) * _smith_g1(wo, wh, self.alpha)
        specular = (
            self.ks * distribution * reflectance * shadowing
            / (4.0 * _cos_theta(wi) * _cos_theta(wo) * _cos_theta(wh))
        )
        return self.kd * INV_PI + specular

    def pdf(self, record: BSDFQueryRecord) -> float:
        if self._invalid(record):
            return 0.0
        wi, wo = record.wi, record.wo
        wh = wi + wo
        wh = wh / np.linalg.norm(wh)
        jacobian = 1.0 / (4.0 * abs(float(np.dot(wh, wo))))
        specular = _beckmann(wh, self.alpha) * _cos_theta(wh) * jacobian
        return self.ks * specular + (1.0 - self.ks) * _cos_theta(wo) * INV_PI

    def sample(self, record: BSDFQueryRecord, sample: Sequence[float]) -> np.ndarray:
        wi = record.wi
        if _cos_theta(wi) <= 0:
            return np.zeros(3)
        u, v = float(sample[0]), float(sample[1])
        if u < self.ks:
            wh = _sample_beckmann((u / self.ks, v), self.alpha)
            wo = 2.0 * float(np.dot(wi, wh)) * wh - wi
        else:
            wo = _square_to_cosine_hemisphere(((u - self.ks) / (1.0 - self.ks), v))
        record.wo = wo
        record.measure = Measure.SOLID_ANGLE
        record.eta = 1.0
        if _cos_theta(wo) <= 0:
            return np.zeros(3)
        density = self.pdf(record)
        if density <= 0:
            return np.zeros(3)
        return self.eval(record) * _cos_theta(wo) / density

    def is_diffuse(self) -> bool:
        return True

    def __str__(self) -> str:
        return (
            "Microfacet[\n"
            f"  alpha = {self.alpha:f},\n"
            f"  intIOR = {self.int_ior:f},\n"
            f"  extIOR = {self.ext_ior:f},\n"
            f"  kd = {_format_vector(self.kd)},\n"
            f"  ks = {self.ks:f}\n"
            "]"
        )


register_class("diffuse", Diffuse)
register_class("mirror", Mirror)
register_class("dielectric", Dielectric)
register_class("microfacet", Microfacet)
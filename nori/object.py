"""Base class of scene objects and the registry that constructs them by name."""

from __future__ import annotations

import abc
import enum
from typing import Any, Callable, Mapping

from .common import NoriError

Properties = Mapping[str, Any]


class ClassType(enum.IntEnum):
    """Kinds of objects that can appear in a scene description."""

    SCENE = 0
    MESH = 1
    BSDF = 2
    PHASE_FUNCTION = 3
    EMITTER = 4
    MEDIUM = 5
    CAMERA = 6
    INTEGRATOR = 7
    SAMPLER = 8
    TEST = 9
    RECONSTRUCTION_FILTER = 10

    def __str__(self) -> str:
        return _TYPE_NAMES.get(self, "<unknown>")


_TYPE_NAMES = {
    ClassType.SCENE: "scene",
    ClassType.MESH: "mesh",
    ClassType.BSDF: "bsdf",
    ClassType.PHASE_FUNCTION: "phase",
    ClassType.EMITTER: "emitter",
    ClassType.MEDIUM: "medium",
    ClassType.CAMERA: "camera",
    ClassType.INTEGRATOR: "integrator",
    ClassType.SAMPLER: "sampler",
    ClassType.TEST: "test",
    ClassType.RECONSTRUCTION_FILTER: "rfilter",
}


class NoriObject(abc.ABC):
    """Base class of everything that can be instantiated from a scene file."""

    class_type: ClassType
    parent: "NoriObject | None" = None

    def add_child(self, child: "NoriObject") -> None:
        """Attach a child object; unsupported unless a subclass overrides it."""
        raise NoriError(
            "add_child() is not implemented for objects of type "
            f"'{self.class_type}'!"
        )

    def activate(self) -> None:
        """Finish configuration once all children have been added."""

    def set_parent(self, parent: "NoriObject") -> None:
        """Record the object this one was attached to."""
        self.parent = parent

    @abc.abstractmethod
    def __str__(self) -> str:
        """Human-readable summary."""


Constructor = Callable[[Properties], NoriObject]

_constructors: dict[str, Constructor] = {}


def register_class(name: str, constructor: Constructor) -> Constructor:
    """Make *constructor* available under *name*, replacing any earlier one."""
    _constructors[name] = constructor
    return constructor


def create_instance(name: str, props: Properties | None = None) -> NoriObject:
    """Construct the object registered as *name* from its properties."""
    try:
        constructor = _constructors[name]
    except KeyError:
        raise NoriError(
            f'A constructor for class "{name}" could not be found!'
        ) from None
    return constructor(props if props is not None else {})
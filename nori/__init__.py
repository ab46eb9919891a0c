"""Ray tracer building blocks: rays, transforms, meshes, OBJ loading, BSDFs, a camera and image blocks."""

__version__ = "0.1.0"
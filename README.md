# nori

This package holds the building blocks of a compact ray tracer. They are
written to be read as well as used, and work on NumPy arrays throughout.

It provides:

- rays and homogeneous transforms
- triangle meshes and a Wavefront OBJ loader
- brute-force ray/triangle intersection
- a few BSDFs
- a perspective camera
- image blocks that accumulate filtered samples
- PNG output

## Installing

Install it with pip from a checkout of this project. It needs Python 3.10
or newer, along with `numpy` and `pillow`. The `test` extra adds `pytest`.

## Modules

- `nori.common` holds the shared helpers:
  - the `NoriError` exception
  - the `Measure` enum
  - a `FileResolver` and the process-wide `get_file_resolver()`
  - string parsing: `to_bool`, `to_int`, `to_uint`, `to_float`, `to_vector3f` and `tokenize`
  - formatting: `indent`, `time_string` and `mem_string`
  - colour helpers: `to_srgb`, `to_linear_rgb`, `is_valid_color` and `luminance`
  - maths helpers: `clamp`, `lerp`, `mod`, `deg_to_rad`, `rad_to_deg`,
    `spherical_direction`, `spherical_coordinates`, `coordinate_system` and `fresnel`
- `nori.ray` has `Ray`, a segment `o + t*d` for `t` in `[mint, maxt]`.
- `nori.transform` has `Transform`, a 4×4 matrix stored together with its
  inverse. It offers `apply_point`, `apply_vector`, `apply_normal`,
  `apply_ray`, `inverse()`, and composition with `*`.
- `nori.object` is the object model:
  - `ClassType` and the `NoriObject` base class
  - a registry that maps type names to constructors: `register_class` and `create_instance`
- `nori.bsdf` has `BSDFQueryRecord` and these materials:
  - `Diffuse`, which is Lambertian
  - `Mirror`
  - `Dielectric`, which reflects or refracts according to the Fresnel term
  - `Microfacet`, a Beckmann coating over a diffuse base

  Importing the module registers them as `diffuse`, `mirror`,
  `dielectric` and `microfacet`.
- `nori.mesh` has:
  - `BoundingBox` and `Frame`
  - `Intersection`
  - `Mesh`, which provides per-triangle `surface_area`, `triangle_bounds`,
    `centroid` and Möller–Trumbore `ray_intersect`
- `nori.accel` has `Accel`, a brute-force intersector for a single mesh.
- `nori.obj` has the `WavefrontOBJ` mesh loader, registered as `obj`. It
  splits quads into two triangles and resolves file names through
  `get_file_resolver()`.
- `nori.camera` has the `ReconstructionFilter` and `Camera` interfaces and
  `PerspectiveCamera`, registered as `perspective`.
- `nori.block` has:
  - `ImageBlock`, which holds RGB and weight per pixel and accepts
    `put_sample`, `put_block`, `to_bitmap` and `from_bitmap`
  - `BlockGenerator`, which hands out tiles in a spiral from the image centre
  - `save_png`

## Examples

Helpers from `nori.common`:

```python
from nori.common import fresnel, time_string, tokenize

fresnel(1.0, 1.000277, 1.5046)      # reflectance at normal incidence
tokenize("1, 2, 3", ", ", False)    # ['1', '2', '3']
time_string(1500.0, False)          # '1.5s'
```

Intersecting a ray with a mesh:

```python
from nori.accel import Accel
from nori.mesh import Mesh
from nori.ray import Ray

mesh = Mesh(positions=[[0, 0, 0], [1, 0, 0], [0, 1, 0]], faces=[[0, 1, 2]])
accel = Accel()
accel.add_mesh(mesh)

its = accel.ray_intersect(Ray(o=[0.25, 0.25, 1.0], d=[0.0, 0.0, -1.0]))
its.t   # 1.0
its.p   # array([0.25, 0.25, 0.  ])
```

`ray_intersect` returns `None` when the ray misses.

Sampling a BSDF:

```python
from nori.bsdf import BSDFQueryRecord, Diffuse

bsdf = Diffuse({"albedo": (0.8, 0.2, 0.2)})
record = BSDFQueryRecord(wi=[0.0, 0.0, 1.0])
weight = bsdf.sample(record, (0.3, 0.7))   # the albedo; record.wo is now set
```

The package has no concrete reconstruction filter, so you supply one by
subclassing `ReconstructionFilter`. You can then splat samples into an
image block and write a PNG:

```python
from nori.block import ImageBlock, save_png
from nori.camera import ReconstructionFilter

class BoxFilter(ReconstructionFilter):
    radius = 0.5

    def eval(self, x):
        return 1.0

    def __str__(self):
        return "BoxFilter[]"

block = ImageBlock((4, 4), BoxFilter())
block.put_sample((1.5, 2.5), (1.0, 1.0, 1.0))
save_png(block.to_bitmap(), "out")   # writes out.png
```

A perspective camera needs a filter attached before `activate()`:

```python
from nori.camera import PerspectiveCamera

camera = PerspectiveCamera({"width": 64, "height": 48})
camera.add_child(BoxFilter())
camera.activate()
ray, weight = camera.sample_ray((32.0, 24.0), (0.5, 0.5))
```

## Errors

Malformed input and unsupported operations raise `nori.common.NoriError`.
This covers:

- bad numbers or booleans
- unknown type names in `create_instance`
- attaching a second BSDF or emitter to a mesh
- attaching a second filter to a camera
- adding a second mesh to `Accel`
- an unreadable OBJ file, or bad vertex data in one

## What the package does not do

The package supplies the parts a renderer is assembled from, but not a
renderer. It has:

- no scene-file parser
- no integrators
- no samplers
- no scene object
- no rendering loop or command-line program
- no preview window
- no OpenEXR input or output; images are saved as PNG only

It also registers no reconstruction filter. If a `PerspectiveCamera` has no
filter attached, `activate()` asks for a `gaussian` filter, and that raises
`NoriError` unless you have registered one with `register_class`.
"""Geometric shape primitives.

Shapes form a closed set of immutable variants (:class:`Box`,
:class:`Sphere`, :class:`Cylinder`, :class:`Mesh`) sharing one capability
interface. All points are expressed in the shape frame, whose origin is
the shape center (for :class:`Cylinder` the axis is the local z axis).

Example
-------
>>> import numpy as np
>>> from skcollision.shapes import Box
>>> box = Box(extents=[0.2, 0.2, 0.2])
>>> box.signed_distance(np.array([[0.0, 0.0, 0.0], [0.2, 0.0, 0.0]]))
array([-0.1,  0.1])
"""

from dataclasses import dataclass
from dataclasses import field
import hashlib

import numpy as np
from scipy.spatial import cKDTree

from skcollision._lazy_imports import _lazy_trimesh


def _as_points(points):
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points[None, :]
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(
            'points must be (n_point, 3) array, get {}'.format(points.shape))
    return points


def _n_samples(length, spacing):
    return max(2, int(np.ceil(length / spacing)) + 1)


@dataclass(frozen=True, eq=False)
class Shape:
    """Capability interface shared by every shape variant."""

    kind = None

    def signed_distance(self, points):
        """Compute signed distances to the surface.

        Parameters
        ----------
        points : numpy.ndarray[float](n_point, 3)
            points w.r.t. the shape frame.

        Returns
        -------
        signed_distances : numpy.ndarray[float](n_point,)
            negative inside the shape.
        """
        raise NotImplementedError

    def closest_point(self, points):
        """Return the nearest surface point of each point."""
        raise NotImplementedError

    def contains(self, points):
        """Return boolean array, `True` for points inside or on surface."""
        return self.signed_distance(points) <= 0.0

    @property
    def bounds(self):
        """Axis aligned bounds, numpy.ndarray(2, 3) of [min, max]."""
        raise NotImplementedError

    @property
    def volume(self):
        raise NotImplementedError

    @property
    def is_degenerate(self):
        return not (np.isfinite(self.volume) and self.volume > 0.0)

    def surface_points(self, spacing):
        """Sample the surface deterministically.

        Parameters
        ----------
        spacing : float
            approximate distance between neighboring samples.

        Returns
        -------
        points : numpy.ndarray[float](n_point, 3)
        """
        raise NotImplementedError

    def digest(self):
        """Stable key of the shape kind and parameters."""
        raise NotImplementedError

    def to_trimesh(self):
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class Box(Shape):
    """Box specified by full `extents` (x, y, z)."""

    extents: np.ndarray
    kind = 'box'

    def __post_init__(self):
        extents = np.array(self.extents, dtype=np.float64).reshape(-1)
        if extents.shape != (3,):
            raise ValueError(
                'extents must be 3-vector, get {}'.format(extents.shape))
        extents.setflags(write=False)
        object.__setattr__(self, 'extents', extents)

    @property
    def half_extents(self):
        return self.extents * 0.5

    def signed_distance(self, points):
        points = _as_points(points)
        sd_vals_each_axis = np.abs(points) - self.half_extents[None, :]

        positive_dists_each_axis = np.maximum(sd_vals_each_axis, 0.0)
        positive_dists = np.sqrt(np.sum(positive_dists_each_axis**2, axis=1))

        negative_dists_each_axis = np.max(sd_vals_each_axis, axis=1)
        negative_dists = np.minimum(negative_dists_each_axis, 0.0)
        return positive_dists + negative_dists

    def closest_point(self, points):
        points = _as_points(points)
        half = self.half_extents
        closest = np.clip(points, -half, half)
        inside = np.all(np.abs(points) <= half, axis=1)
        if np.any(inside):
            # push inner points to the nearest face
            pts_in = points[inside]
            gap = half[None, :] - np.abs(pts_in)
            axis = np.argmin(gap, axis=1)
            rows = np.arange(len(pts_in))
            sign = np.where(pts_in[rows, axis] >= 0.0, 1.0, -1.0)
            projected = pts_in.copy()
            projected[rows, axis] = sign * half[axis]
            closest[inside] = projected
        return closest

    def contains(self, points):
        points = _as_points(points)
        return np.all(np.abs(points) <= self.half_extents[None, :], axis=1)

    @property
    def bounds(self):
        return np.array([-self.half_extents, self.half_extents])

    @property
    def volume(self):
        if np.any(self.extents <= 0.0):
            return 0.0
        return float(np.prod(self.extents))

    def surface_points(self, spacing):
        half = self.half_extents
        axes = [np.linspace(-h, h, _n_samples(2 * h, spacing)) for h in half]
        points = []
        for i in range(3):
            j, k = [a for a in range(3) if a != i]
            gj, gk = np.meshgrid(axes[j], axes[k], indexing='ij')
            for sign in (-1.0, 1.0):
                face = np.zeros((gj.size, 3))
                face[:, i] = sign * half[i]
                face[:, j] = gj.ravel()
                face[:, k] = gk.ravel()
                points.append(face)
        return np.vstack(points)

    def digest(self):
        return (self.kind, tuple(np.round(self.extents, 12).tolist()))

    def to_trimesh(self):
        trimesh = _lazy_trimesh()
        return trimesh.creation.box(extents=self.extents)


@dataclass(frozen=True, eq=False)
class Sphere(Shape):
    """Sphere specified by `radius`."""

    radius: float
    kind = 'sphere'

    def __post_init__(self):
        object.__setattr__(self, 'radius', float(self.radius))

    def signed_distance(self, points):
        points = _as_points(points)
        dists_from_origin = np.sqrt(np.sum(points**2, axis=1))
        return dists_from_origin - self.radius

    def closest_point(self, points):
        points = _as_points(points)
        norms = np.linalg.norm(points, axis=1)
        directions = np.tile(np.array([1.0, 0.0, 0.0]), (len(points), 1))
        nonzero = norms > 1e-12
        directions[nonzero] = points[nonzero] / norms[nonzero, None]
        return directions * self.radius

    @property
    def bounds(self):
        r = self.radius
        return np.array([[-r, -r, -r], [r, r, r]])

    @property
    def volume(self):
        if self.radius <= 0.0:
            return 0.0
        return 4.0 / 3.0 * np.pi * self.radius ** 3

    def surface_points(self, spacing):
        # fibonacci lattice
        area = 4.0 * np.pi * self.radius ** 2
        n = max(8, int(np.ceil(area / spacing ** 2)))
        indices = np.arange(n) + 0.5
        phi = np.arccos(1.0 - 2.0 * indices / n)
        theta = np.pi * (1.0 + 5 ** 0.5) * indices
        return self.radius * np.stack([np.cos(theta) * np.sin(phi),
                                       np.sin(theta) * np.sin(phi),
                                       np.cos(phi)], axis=1)

    def digest(self):
        return (self.kind, round(self.radius, 12))

    def to_trimesh(self):
        trimesh = _lazy_trimesh()
        return trimesh.creation.icosphere(radius=self.radius, subdivisions=3)


@dataclass(frozen=True, eq=False)
class Cylinder(Shape):
    """Cylinder specified by `radius` and `height` along the local z axis."""

    radius: float
    height: float
    kind = 'cylinder'

    def __post_init__(self):
        object.__setattr__(self, 'radius', float(self.radius))
        object.__setattr__(self, 'height', float(self.height))

    def _to_2d(self, points):
        radius_from_center = np.sqrt(points[:, 0]**2 + points[:, 1]**2)
        return np.vstack([radius_from_center, points[:, 2]]).T

    def signed_distance(self, points):
        points = _as_points(points)
        # Now the problem is reduced to 2 dim [radius, height] box sdf
        half_extent_2d = np.array([self.radius, 0.5 * self.height])
        sd_vals_each_axis = np.abs(self._to_2d(points)) \
            - half_extent_2d[None, :]

        positive_dists_each_axis = np.maximum(sd_vals_each_axis, 0.0)
        positive_dists = np.sqrt(np.sum(positive_dists_each_axis**2, axis=1))

        negative_dists_each_axis = np.max(sd_vals_each_axis, axis=1)
        negative_dists = np.minimum(negative_dists_each_axis, 0.0)
        return positive_dists + negative_dists

    def closest_point(self, points):
        points = _as_points(points)
        half_height = 0.5 * self.height
        pts_2d = self._to_2d(points)
        rho, z = pts_2d[:, 0], pts_2d[:, 1]

        rho_c = np.minimum(rho, self.radius)
        z_c = np.clip(z, -half_height, half_height)
        inside = (rho <= self.radius) & (np.abs(z) <= half_height)
        side_closer = (self.radius - rho) < (half_height - np.abs(z))
        rho_c = np.where(inside & side_closer, self.radius, rho_c)
        z_c = np.where(inside & ~side_closer,
                       np.where(z >= 0.0, half_height, -half_height), z_c)

        directions = np.tile(np.array([1.0, 0.0]), (len(points), 1))
        nonzero = rho > 1e-12
        directions[nonzero] = points[nonzero, :2] / rho[nonzero, None]
        return np.hstack([directions * rho_c[:, None], z_c[:, None]])

    @property
    def bounds(self):
        r, h = self.radius, 0.5 * self.height
        return np.array([[-r, -r, -h], [r, r, h]])

    @property
    def volume(self):
        if self.radius <= 0.0 or self.height <= 0.0:
            return 0.0
        return np.pi * self.radius ** 2 * self.height

    def surface_points(self, spacing):
        r, half_height = self.radius, 0.5 * self.height
        n_theta = max(8, int(np.ceil(2 * np.pi * r / spacing)))
        theta = np.linspace(0.0, 2 * np.pi, n_theta, endpoint=False)
        zs = np.linspace(-half_height, half_height,
                         _n_samples(self.height, spacing))
        tt, zz = np.meshgrid(theta, zs, indexing='ij')
        side = np.stack([r * np.cos(tt.ravel()),
                         r * np.sin(tt.ravel()),
                         zz.ravel()], axis=1)

        caps = [np.array([[0.0, 0.0, -half_height], [0.0, 0.0, half_height]])]
        for rho in np.linspace(0.0, r, _n_samples(r, spacing))[1:-1]:
            n_ring = max(6, int(np.ceil(2 * np.pi * rho / spacing)))
            ring_theta = np.linspace(0.0, 2 * np.pi, n_ring, endpoint=False)
            ring = np.stack([rho * np.cos(ring_theta),
                             rho * np.sin(ring_theta),
                             np.zeros(n_ring)], axis=1)
            for z in (-half_height, half_height):
                cap = ring.copy()
                cap[:, 2] = z
                caps.append(cap)
        return np.vstack([side] + caps)

    def digest(self):
        return (self.kind, round(self.radius, 12), round(self.height, 12))

    def to_trimesh(self):
        trimesh = _lazy_trimesh()
        return trimesh.creation.cylinder(radius=self.radius,
                                         height=self.height, sections=32)


@dataclass(frozen=True, eq=False)
class Mesh(Shape):
    """Closed triangle mesh.

    Inside tests use a filled voxelization (trimesh) at `pitch` and
    distances are measured to a dense surface sample, so values are
    approximate at the scale of `pitch`.

    Parameters
    ----------
    vertices : numpy.ndarray[float](n_vertex, 3)
    faces : numpy.ndarray[int](n_face, 3)
    pitch : float or None
        voxel size for inside tests. If `None`, 1/64 of the longest
        bounding box side is used.
    """

    vertices: np.ndarray
    faces: np.ndarray
    pitch: float = None
    _cache: dict = field(default_factory=dict, init=False, repr=False,
                         compare=False)
    kind = 'mesh'

    def __post_init__(self):
        vertices = np.array(self.vertices, dtype=np.float64)
        faces = np.array(self.faces, dtype=np.int64)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise ValueError('vertices must be (n, 3) array')
        if faces.ndim != 2 or faces.shape[1] != 3:
            raise ValueError('faces must be (n, 3) array')
        vertices.setflags(write=False)
        faces.setflags(write=False)
        object.__setattr__(self, 'vertices', vertices)
        object.__setattr__(self, 'faces', faces)
        if self.pitch is None and len(vertices) > 0:
            longest = float(np.max(np.ptp(vertices, axis=0)))
            object.__setattr__(self, 'pitch', longest / 64.0)

    @classmethod
    def from_trimesh(cls, mesh, pitch=None):
        return cls(vertices=mesh.vertices, faces=mesh.faces, pitch=pitch)

    def to_trimesh(self):
        trimesh = _lazy_trimesh()
        return trimesh.Trimesh(vertices=self.vertices.copy(),
                               faces=self.faces.copy(), process=False)

    def _filled_voxels(self):
        if 'voxels' not in self._cache:
            self._cache['voxels'] = \
                self.to_trimesh().voxelized(pitch=self.pitch).fill()
        return self._cache['voxels']

    def _surface_tree(self):
        if 'tree' not in self._cache:
            samples = self.surface_points(self.pitch)
            self._cache['tree'] = (cKDTree(samples), samples)
        return self._cache['tree']

    def contains(self, points):
        points = _as_points(points)
        return np.asarray(self._filled_voxels().is_filled(points), dtype=bool)

    def signed_distance(self, points):
        points = _as_points(points)
        tree, _ = self._surface_tree()
        dists, _ = tree.query(points)
        return np.where(self.contains(points), -dists, dists)

    def closest_point(self, points):
        points = _as_points(points)
        tree, samples = self._surface_tree()
        _, indices = tree.query(points)
        return samples[indices]

    @property
    def bounds(self):
        return np.array([self.vertices.min(axis=0),
                         self.vertices.max(axis=0)])

    @property
    def volume(self):
        if len(self.faces) == 0:
            return 0.0
        return float(abs(self.to_trimesh().volume))

    def surface_points(self, spacing):
        trimesh = _lazy_trimesh()
        vertices, _ = trimesh.remesh.subdivide_to_size(
            self.vertices, self.faces, max_edge=spacing, max_iter=20)
        return np.asarray(vertices, dtype=np.float64)

    def digest(self):
        hasher = hashlib.md5()
        hasher.update(np.ascontiguousarray(self.vertices).tobytes())
        hasher.update(np.ascontiguousarray(self.faces).tobytes())
        return (self.kind, hasher.hexdigest(), round(self.pitch or 0.0, 12))


SHAPE_TYPES = (Box, Sphere, Cylinder, Mesh)


def validate_shape(shape):
    """Check that `shape` is one of the supported variants.

    Raises
    ------
    TypeError
        if `shape` is not an instance of :data:`SHAPE_TYPES`.
    """
    if type(shape) not in SHAPE_TYPES:
        raise TypeError(
            'shape must be one of {}, but got {}'.format(
                [t.__name__ for t in SHAPE_TYPES], type(shape)))
    return shape

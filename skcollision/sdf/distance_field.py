from collections import OrderedDict
from logging import getLogger

import numpy as np
from scipy.interpolate import RegularGridInterpolator
from scipy.ndimage import distance_transform_edt

from skcollision.config import get_default_max_dims
from skcollision.config import get_default_padding_voxels
from skcollision.config import get_default_resolution
from skcollision.coordinates import as_coords
from skcollision.exceptions import GeometryError
from skcollision.shapes import validate_shape


logger = getLogger(__name__)


def _as_points(points):
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points[None, :]
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(
            'points must be (n_point, 3) array, get {}'.format(points.shape))
    return points


def transformed_bounds(shape, pose):
    """Axis aligned bounds of `shape` placed at `pose`.

    Parameters
    ----------
    shape : skcollision.shapes.Shape
    pose : skcollision.coordinates.Coordinates

    Returns
    -------
    bounds : numpy.ndarray(2, 3)
    """
    b_min, b_max = shape.bounds
    corners = np.array([[x, y, z]
                        for x in (b_min[0], b_max[0])
                        for y in (b_min[1], b_max[1])
                        for z in (b_min[2], b_max[2])])
    corners = pose.transform_vector(corners)
    return np.array([corners.min(axis=0), corners.max(axis=0)])


def signed_distance_transform(occupancy, resolution):
    """Signed euclidean distance transform of a boolean voxel grid.

    Free voxels get the distance to the nearest occupied voxel and
    occupied voxels the negative distance to the nearest free voxel. Both
    are shifted by half a voxel so that the zero level lies between
    neighboring occupied and free voxel centers.

    Parameters
    ----------
    occupancy : numpy.ndarray[bool](nx, ny, nz)
    resolution : float
        voxel size in [m].

    Returns
    -------
    sdf_data : numpy.ndarray[float](nx, ny, nz)
    """
    occupancy = np.asarray(occupancy, dtype=bool)
    outside = distance_transform_edt(~occupancy)
    inside = distance_transform_edt(occupancy)
    return np.where(occupancy, 0.5 - inside, outside - 0.5) * resolution


def _n_voxels(length, resolution):
    # tolerance keeps exact multiples of the resolution from rounding up
    return np.ceil(length / resolution - 1e-9).astype(np.int64) + 2


def _grid_layout(b_min, b_max, resolution, padding, max_dims):
    span = b_max - b_min
    if padding is None:
        n_pad = get_default_padding_voxels()
        pad = n_pad * resolution
    else:
        n_pad = None
        pad = float(padding)
        if pad < 0.0:
            raise ValueError('padding must be non negative, get {}'
                             .format(padding))
    dims = _n_voxels(span + 2 * pad, resolution)

    if max_dims is not None and np.any(dims > max_dims):
        if n_pad is None:
            coarse = np.max(span + 2 * pad) / (max_dims - 2)
        else:
            if max_dims - 2 - 2 * n_pad <= 0:
                raise ValueError('max_dims {} is too small'.format(max_dims))
            coarse = np.max(span) / (max_dims - 2 - 2 * n_pad)
        coarse = float(coarse) * (1.0 + 1e-6)
        logger.warning(
            'grid of {} voxels exceeds max_dims {}. '
            'resolution is coarsened from {} to {}'
            .format(dims.tolist(), max_dims, resolution, coarse))
        resolution = coarse
        if n_pad is not None:
            pad = n_pad * resolution
        dims = _n_voxels(span + 2 * pad, resolution)
        dims = np.minimum(dims, max_dims)

    # voxel centers straddle the bounds, shapes aligned with the bounds
    # get their faces between two voxel centers.
    origin = b_min - pad - 0.5 * resolution
    return origin, resolution, dims


class DistanceField(object):
    """Voxel grid of signed distances to the nearest surface.

    The grid is expressed in its reference frame. Voxel (i, j, k) is
    centered at ``origin + resolution * (i, j, k)``. Values are negative
    inside obstacles. Each voxel also stores the unit gradient of the
    distance, i.e. the direction pushing a point out of the obstacle.

    Parameters
    ----------
    sdf_data : numpy.ndarray[float](nx, ny, nz)
        signed distances at voxel centers.
    origin : numpy.ndarray[float](3,)
        center of the voxel (0, 0, 0).
    resolution : float
        voxel size in [m].
    gradients : numpy.ndarray[float](nx, ny, nz, 3) or None
        precomputed gradients. computed with `numpy.gradient` if `None`.
    """

    def __init__(self, sdf_data, origin, resolution, gradients=None):
        data = np.array(sdf_data, dtype=np.float64)
        if data.ndim != 3:
            raise GeometryError(
                'sdf_data must be 3 dimensional, get {}'.format(data.ndim))
        if np.any(np.array(data.shape) < 2):
            raise GeometryError(
                'distance field grid is empty: dims {}'.format(data.shape))
        resolution = float(resolution)
        if not (np.isfinite(resolution) and resolution > 0.0):
            raise GeometryError(
                'resolution must be positive, get {}'.format(resolution))

        if gradients is None:
            gradients = np.stack(np.gradient(data, resolution), axis=-1)
        gradients = np.array(gradients, dtype=np.float64)
        if gradients.shape != data.shape + (3,):
            raise ValueError('gradients must be of shape {}, get {}'.format(
                data.shape + (3,), gradients.shape))
        norms = np.linalg.norm(gradients, axis=-1, keepdims=True)
        gradients = np.where(norms > 1e-12, gradients / np.maximum(norms, 1e-12),
                             0.0)

        self._data = data
        self._gradients = gradients
        self._origin = np.array(origin, dtype=np.float64).reshape(3)
        self._resolution = resolution
        self._dims = np.array(data.shape, dtype=np.int64)
        for array in (self._data, self._gradients, self._origin, self._dims):
            array.setflags(write=False)

        axes = [self._origin[i] + np.arange(d) * resolution
                for i, d in enumerate(self._dims)]
        self._upper = np.array([axis[-1] for axis in axes])
        self._itp = RegularGridInterpolator(
            axes,
            np.concatenate([data[..., None], gradients], axis=-1),
            bounds_error=False,
            fill_value=None)

    @property
    def origin(self):
        return self._origin

    @property
    def resolution(self):
        return self._resolution

    @property
    def dims(self):
        return self._dims

    @property
    def data(self):
        return self._data

    @property
    def gradients(self):
        return self._gradients

    @property
    def num_voxels(self):
        return int(np.prod(self._dims))

    @property
    def bounds(self):
        """Bounds of the voxel centers, numpy.ndarray(2, 3)."""
        return np.array([self._origin, self._upper])

    def grid_points(self):
        """Return voxel centers as (n_voxel, 3) array in C order."""
        axes = [self._origin[i] + np.arange(d) * self._resolution
                for i, d in enumerate(self._dims)]
        grid = np.meshgrid(*axes, indexing='ij')
        return np.stack([g.ravel() for g in grid], axis=1)

    def is_out_of_bounds(self, points):
        """check if the the input points is out of bounds

        Parameters
        ----------
        points : numpy.ndarray[float](n_points, 3)
            points w.r.t. the field frame.

        Returns
        -------
        is_out_arr : numpy.ndarray[bool](n_points,)
        """
        points = _as_points(points)
        return np.logical_or(
            (points < self._origin[None, :]).any(axis=1),
            (points > self._upper[None, :]).any(axis=1))

    def signed_distance(self, points):
        """Compute signed distances and gradients at points.

        Points outside of the grid are clamped onto the grid and the
        clamping offset is added to the distance, so the result stays a
        finite upper bound estimate growing with the distance to the grid.

        Parameters
        ----------
        points : numpy.ndarray[float](n_points, 3)
            points w.r.t. the field frame.

        Returns
        -------
        distances : numpy.ndarray[float](n_points,)
        gradients : numpy.ndarray[float](n_points, 3)
            unit vectors (zero where undefined).
        """
        points = _as_points(points)
        clamped = np.clip(points, self._origin, self._upper)
        offset = points - clamped
        outside_dist = np.linalg.norm(offset, axis=1)

        values = self._itp(clamped)
        distances = values[:, 0] + outside_dist
        gradients = values[:, 1:]
        out = outside_dist > 0.0
        if np.any(out):
            gradients[out] = offset[out] / outside_dist[out, None]
        norms = np.linalg.norm(gradients, axis=1)
        valid = norms > 1e-12
        gradients[valid] /= norms[valid, None]
        gradients[~valid] = 0.0
        return distances, gradients

    def __call__(self, points):
        return self.signed_distance(points)[0]

    @classmethod
    def from_shapes(cls, shapes, poses=None, resolution=None, padding=None,
                    max_dims=None):
        """Build a distance field of the union of shapes.

        Parameters
        ----------
        shapes : list[skcollision.shapes.Shape]
        poses : list[Coordinates] or None
            pose of each shape w.r.t. the field frame. identity if `None`.
        resolution : float or None
            voxel size in [m]. `skcollision.config.get_default_resolution()`
            if `None`.
        padding : float or None
            free margin around the shapes in [m]. 4 voxels if `None`.
        max_dims : int or None
            maximum number of voxels along an axis. The resolution is
            coarsened when exceeded.

        Returns
        -------
        field : DistanceField

        Raises
        ------
        GeometryError
            if a shape is degenerate, the resolution is invalid or the grid
            does not contain any occupied voxel.
        """
        shapes = [validate_shape(shape) for shape in shapes]
        if len(shapes) == 0:
            raise GeometryError('at least one shape is required')
        if poses is None:
            poses = [None] * len(shapes)
        if len(poses) != len(shapes):
            raise ValueError(
                'length of shapes ({}) and poses ({}) must be the same'
                .format(len(shapes), len(poses)))
        poses = [as_coords(pose) for pose in poses]

        if resolution is None:
            resolution = get_default_resolution()
        resolution = float(resolution)
        if not (np.isfinite(resolution) and resolution > 0.0):
            raise GeometryError(
                'resolution must be positive and finite, get {}'
                .format(resolution))
        if max_dims is None:
            max_dims = get_default_max_dims()
        for shape in shapes:
            if shape.is_degenerate:
                raise GeometryError(
                    'degenerate shape {} has no volume'.format(shape))

        all_bounds = np.array([transformed_bounds(shape, pose)
                               for shape, pose in zip(shapes, poses)])
        b_min = all_bounds[:, 0].min(axis=0)
        b_max = all_bounds[:, 1].max(axis=0)
        origin, resolution, dims = _grid_layout(
            b_min, b_max, resolution, padding, max_dims)
        if np.any(dims < 2):
            raise GeometryError(
                'resolution {} produces an empty grid'.format(resolution))

        axes = [origin[i] + np.arange(d) * resolution
                for i, d in enumerate(dims)]
        grid = np.meshgrid(*axes, indexing='ij')
        points = np.stack([g.ravel() for g in grid], axis=1)
        occupied = np.zeros(len(points), dtype=bool)
        for shape, pose in zip(shapes, poses):
            occupied |= shape.contains(pose.inverse_transform_vector(points))
        occupancy = occupied.reshape(tuple(dims))
        if not np.any(occupancy):
            raise GeometryError(
                'resolution {} is too coarse, no voxel is occupied'
                .format(resolution))

        sdf_data = signed_distance_transform(occupancy, resolution)
        logger.info(
            'built distance field: dims {}, resolution {}, {} occupied voxels'
            .format(dims.tolist(), resolution, int(np.count_nonzero(occupancy))))
        return cls(sdf_data, origin, resolution)

    @classmethod
    def from_shape(cls, shape, pose=None, **kwargs):
        return cls.from_shapes([shape], [pose], **kwargs)

    def copy(self):
        """Return a field with its own copies of the grid arrays."""
        return DistanceField(self._data.copy(), self._origin.copy(),
                             self._resolution, self._gradients.copy())

    def __repr__(self):
        return '<DistanceField dims={} resolution={} origin={}>'.format(
            self._dims.tolist(), self._resolution,
            np.round(self._origin, 6).tolist())


class DistanceFieldCache(object):
    """Reference counted store of distance field templates.

    Fields are keyed by shape digests, poses and grid parameters, so
    identical geometry is transformed only once. Every owner receives its
    own copy of the template. An entry lives while at least one owner
    holds it and is dropped on the last :meth:`release`.

    Examples
    --------
    >>> from skcollision.sdf import DistanceFieldCache
    >>> from skcollision.shapes import Box
    >>> cache = DistanceFieldCache()
    >>> field, key = cache.acquire([Box([0.1, 0.1, 0.1])], resolution=0.02)
    >>> len(cache)
    1
    >>> cache.release(key)
    >>> len(cache)
    0
    """

    def __init__(self):
        self._fields = OrderedDict()
        self._owners = {}
        self.hits = 0
        self.misses = 0

    def _key(self, shapes, poses, resolution, padding, max_dims):
        if poses is None:
            poses = [None] * len(shapes)
        pose_keys = tuple(
            tuple(np.round(as_coords(pose).T(), 12).ravel().tolist())
            for pose in poses)
        return (tuple(validate_shape(s).digest() for s in shapes),
                pose_keys, resolution, padding, max_dims)

    def acquire(self, shapes, poses=None, resolution=None, padding=None,
                max_dims=None):
        """Return an owned field of `shapes` and the key to release it.

        Returns
        -------
        field : DistanceField
            a copy of the cached template, not shared with other owners.
        key : tuple
            pass to :meth:`release` when the owner drops the field.

        Raises
        ------
        GeometryError
            if the field cannot be built. nothing is cached.
        """
        if resolution is None:
            resolution = get_default_resolution()
        key = self._key(shapes, poses, resolution, padding, max_dims)
        if key in self._fields:
            self.hits += 1
        else:
            self.misses += 1
            self._fields[key] = DistanceField.from_shapes(
                shapes, poses, resolution=resolution, padding=padding,
                max_dims=max_dims)
            self._owners[key] = 0
        self._owners[key] += 1
        return self._fields[key].copy(), key

    def release(self, key):
        """Drop one owner of `key`, removing the entry with the last one."""
        if key not in self._owners:
            return
        self._owners[key] -= 1
        if self._owners[key] <= 0:
            del self._owners[key]
            del self._fields[key]

    def owners(self, key):
        return self._owners.get(key, 0)

    def clear(self):
        self._fields.clear()
        self._owners.clear()

    def __len__(self):
        return len(self._fields)

    def __contains__(self, key):
        return key in self._fields

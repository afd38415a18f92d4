"""Collision bodies owned by robot links.

A :class:`CollisionBody` owns its shapes, the distance field of their
union and a surface sample, all expressed in the owner frame (the link
frame for link bodies and attached bodies).
"""

from collections import OrderedDict
from logging import getLogger

import numpy as np

from skcollision.collision.types import ROBOT_ATTACHED
from skcollision.collision.types import ROBOT_LINK
from skcollision.coordinates import as_coords
from skcollision.exceptions import GeometryError
from skcollision.exceptions import NotFoundError
from skcollision.sdf import DistanceField
from skcollision.shapes import validate_shape


logger = getLogger(__name__)


class CollisionBody(object):
    """Shapes fused into one distance field.

    Parameters
    ----------
    name : str
        name used for allowed collision lookups and contact keys.
    shapes : list[skcollision.shapes.Shape]
    poses : list[Coordinates] or None
        pose of each shape w.r.t. the owner frame.
    resolution : float or None
    padding : float or None
    max_dims : int or None
    surface_spacing : float or None
        spacing of the surface sample. the field resolution if `None`.
    cache : skcollision.sdf.DistanceFieldCache or None

    Raises
    ------
    GeometryError
        if the shapes cannot produce a distance field.
    """

    body_type = ROBOT_LINK

    def __init__(self, name, shapes, poses=None, resolution=None,
                 padding=None, max_dims=None, surface_spacing=None,
                 cache=None):
        shapes = tuple(validate_shape(shape) for shape in shapes)
        if len(shapes) == 0:
            raise GeometryError('body {} has no shapes'.format(name))
        if poses is None:
            poses = [None] * len(shapes)
        if len(poses) != len(shapes):
            raise ValueError(
                'length of shapes ({}) and poses ({}) must be the same'
                .format(len(shapes), len(poses)))
        poses = tuple(as_coords(pose) for pose in poses)

        if surface_spacing is not None and not surface_spacing > 0.0:
            raise ValueError('surface_spacing must be positive, get {}'
                             .format(surface_spacing))

        kwargs = dict(resolution=resolution, padding=padding,
                      max_dims=max_dims)
        if cache is None:
            field = DistanceField.from_shapes(shapes, poses, **kwargs)
            cache_key = None
        else:
            field, cache_key = cache.acquire(shapes, poses, **kwargs)

        if surface_spacing is None:
            surface_spacing = field.resolution
        samples = np.vstack([
            pose.transform_vector(shape.surface_points(surface_spacing))
            for shape, pose in zip(shapes, poses)])
        samples.setflags(write=False)

        self.name = name
        self._shapes = shapes
        self._poses = poses
        self._field = field
        self._cache = cache
        self._cache_key = cache_key
        self._samples = samples
        self._center = 0.5 * (samples.min(axis=0) + samples.max(axis=0))
        self._radius = float(
            np.max(np.linalg.norm(samples - self._center, axis=1)))
        self._released = False

    @property
    def shapes(self):
        return self._shapes

    @property
    def poses(self):
        return self._poses

    @property
    def field(self):
        return self._field

    @property
    def surface_points(self):
        """Surface sample w.r.t. the owner frame, (n_point, 3)."""
        return self._samples

    @property
    def bounding_sphere(self):
        """(center, radius) of a sphere enclosing the body."""
        return self._center, self._radius

    @property
    def released(self):
        return self._released

    def release(self):
        """Drop the owned shapes, field and samples.

        The cache entry of the field is released too, so nothing of a
        released body stays reachable through the cache.
        """
        if self._released:
            return
        if self._cache is not None:
            self._cache.release(self._cache_key)
            self._cache = None
            self._cache_key = None
        self._shapes = ()
        self._poses = ()
        self._field = None
        self._samples = None
        self._released = True

    def __repr__(self):
        return '<{} {} shapes={}{}>'.format(
            self.__class__.__name__, self.name, len(self._shapes),
            ' released' if self._released else '')


class AttachedBody(CollisionBody):
    """Body rigidly attached to a link.

    Parameters
    ----------
    body_id : str
    link_name : str
        parent link.
    shapes : list[skcollision.shapes.Shape]
    poses : list[Coordinates] or None
        pose of each shape w.r.t. the parent link.
    touch_links : list[str]
        names exempted from collision against this body.
    """

    body_type = ROBOT_ATTACHED

    def __init__(self, body_id, link_name, shapes, poses=None,
                 touch_links=(), **kwargs):
        super(AttachedBody, self).__init__(body_id, shapes, poses, **kwargs)
        self.link_name = link_name
        self.touch_links = frozenset(touch_links)

    @property
    def body_id(self):
        return self.name


class LinkGeometry(object):
    """Collision geometry of one link.

    Holds the link's own body (`None` for links without collision shapes)
    and its attached bodies in attach order.

    Parameters
    ----------
    link_name : str
    shapes : list[skcollision.shapes.Shape]
    poses : list[Coordinates] or None
    field_kwargs :
        keyword arguments passed to every :class:`CollisionBody`.
    """

    def __init__(self, link_name, shapes=(), poses=None, **field_kwargs):
        self.link_name = link_name
        self._field_kwargs = field_kwargs
        if len(shapes) > 0:
            self.body = CollisionBody(link_name, shapes, poses, **field_kwargs)
        else:
            self.body = None
        self._attached_bodies = OrderedDict()

    @property
    def attached_bodies(self):
        return list(self._attached_bodies.values())

    def has_attached_body(self, body_id):
        return body_id in self._attached_bodies

    def attached_body(self, body_id):
        if body_id not in self._attached_bodies:
            raise NotFoundError(
                'no body {} attached to link {}'.format(
                    body_id, self.link_name))
        return self._attached_bodies[body_id]

    def attach_body(self, body_id, shapes, poses=None, touch_links=()):
        """Attach shapes to this link.

        The new body is built before anything changes, so a
        `GeometryError` leaves the link as it was. Attaching an existing
        `body_id` replaces the previous body.

        Returns
        -------
        body : AttachedBody
        """
        body = AttachedBody(body_id, self.link_name, shapes, poses,
                            touch_links, **self._field_kwargs)
        previous = self._attached_bodies.pop(body_id, None)
        if previous is not None:
            previous.release()
            logger.info('replaced body {} attached to link {}'.format(
                body_id, self.link_name))
        self._attached_bodies[body_id] = body
        logger.debug('attached body {} ({} shapes) to link {}'.format(
            body_id, len(body.shapes), self.link_name))
        return body

    def clear_attached_body(self, body_id):
        """Detach and release the body `body_id`.

        Raises
        ------
        NotFoundError
            if no such body is attached.
        """
        body = self.attached_body(body_id)
        del self._attached_bodies[body_id]
        body.release()
        logger.debug('detached body {} from link {}'.format(
            body_id, self.link_name))

    def clear_attached_bodies(self):
        for body in self._attached_bodies.values():
            body.release()
        self._attached_bodies.clear()

    def bodies(self):
        """Own body (if any) followed by attached bodies."""
        if self.body is not None:
            yield self.body
        for body in self._attached_bodies.values():
            yield body

    def __repr__(self):
        return '<LinkGeometry {} attached={}>'.format(
            self.link_name, list(self._attached_bodies.keys()))

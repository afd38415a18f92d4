"""Environment obstacles and robot versus world collision checking."""

from collections import OrderedDict
from logging import getLogger

from skcollision.collision.link_geometry import CollisionBody
from skcollision.collision.narrow_phase import BodyRef
from skcollision.collision.narrow_phase import check_pairs
from skcollision.collision.types import CollisionRequest
from skcollision.collision.types import CollisionResult
from skcollision.collision.types import WORLD_OBJECT
from skcollision.coordinates import as_coords
from skcollision.exceptions import NotFoundError
from skcollision.sdf import DistanceFieldCache


logger = getLogger(__name__)


class WorldObject(CollisionBody):
    """Obstacle owning one shape at a world pose.

    Parameters
    ----------
    object_id : str
    shape : skcollision.shapes.Shape
    pose : Coordinates or None
        world pose of the shape.
    """

    body_type = WORLD_OBJECT

    def __init__(self, object_id, shape, pose=None, **kwargs):
        pose = as_coords(pose)
        super(WorldObject, self).__init__(object_id, [shape], None, **kwargs)
        self._pose = pose

    @property
    def object_id(self):
        return self.name

    @property
    def shape(self):
        if len(self.shapes) == 0:
            return None
        return self.shapes[0]

    @property
    def pose(self):
        return self._pose.copy_worldcoords()


class WorldObjectStore(object):
    """Ordered mapping of object name to :class:`WorldObject`.

    Parameters
    ----------
    field_kwargs :
        keyword arguments passed to every :class:`WorldObject`.
    """

    def __init__(self, **field_kwargs):
        self._field_kwargs = field_kwargs
        self._objects = OrderedDict()

    def add(self, name, shape, pose=None):
        """Create or replace object `name`.

        The new object is built first, so a `GeometryError` leaves the
        store unchanged. A replaced object keeps its insertion position
        and is released.

        Returns
        -------
        obj : WorldObject
        """
        obj = WorldObject(name, shape, pose, **self._field_kwargs)
        previous = self._objects.get(name)
        self._objects[name] = obj
        if previous is not None:
            previous.release()
            logger.info('replaced world object {}'.format(name))
        else:
            logger.debug('added world object {}'.format(name))
        return obj

    def remove(self, name):
        """Remove and release object `name`.

        Raises
        ------
        NotFoundError
            if there is no such object.
        """
        obj = self.get(name)
        del self._objects[name]
        obj.release()
        logger.debug('removed world object {}'.format(name))

    def clear(self):
        for obj in self._objects.values():
            obj.release()
        self._objects.clear()

    def get(self, name):
        if name not in self._objects:
            raise NotFoundError('no world object {}'.format(name))
        return self._objects[name]

    @property
    def names(self):
        return list(self._objects.keys())

    def __contains__(self, name):
        return name in self._objects

    def __len__(self):
        return len(self._objects)

    def __iter__(self):
        return iter(self._objects.values())


class CollisionWorldDistanceField(object):
    """Robot versus environment collision checker.

    Parameters
    ----------
    resolution : float or None
        voxel size of the object distance fields.
    padding : float or None
    max_dims : int or None
    surface_spacing : float or None
    cache : skcollision.sdf.DistanceFieldCache or None
        a new cache owned by this checker if `None`.
    """

    def __init__(self, resolution=None, padding=None, max_dims=None,
                 surface_spacing=None, cache=None):
        if cache is None:
            cache = DistanceFieldCache()
        self.cache = cache
        self._objects = WorldObjectStore(
            resolution=resolution, padding=padding, max_dims=max_dims,
            surface_spacing=surface_spacing, cache=cache)

    @property
    def objects(self):
        return self._objects

    def add_to_object(self, name, shape, pose=None):
        """Add or replace the obstacle `name`.

        Raises
        ------
        GeometryError
            if the shape cannot produce a distance field. nothing changes.
        """
        return self._objects.add(name, shape, pose)

    def remove_object(self, name):
        """Remove the obstacle `name`, raising NotFoundError if unknown."""
        self._objects.remove(name)

    def clear_objects(self):
        self._objects.clear()

    def has_object(self, name):
        return name in self._objects

    def _world_pairs(self, robot_refs, object_refs, acm):
        for ref_a in robot_refs:
            for ref_b in object_refs:
                if acm is not None and acm.get_entry(ref_a.name, ref_b.name):
                    logger.debug('skip allowed pair {} and {}'.format(
                        ref_a.name, ref_b.name))
                    continue
                if ref_b.name in ref_a.touch_links:
                    logger.debug('skip touch link pair {} and {}'.format(
                        ref_a.name, ref_b.name))
                    continue
                yield ref_a, ref_b

    def check_robot_collision(self, request, result, robot, state, acm=None):
        """Check collisions between robot bodies and world objects.

        Parameters
        ----------
        request : skcollision.collision.CollisionRequest
        result : skcollision.collision.CollisionResult
            updated in place. it is not cleared.
        robot : skcollision.collision.CollisionRobotDistanceField
        state : skcollision.model.RobotState
        acm : skcollision.collision.AllowedCollisionMatrix or None

        Returns
        -------
        result : skcollision.collision.CollisionResult

        Raises
        ------
        InvalidRequestError
            if the request group is unknown. `result` is untouched.
        """
        request.validate()
        link_names = robot.resolve_group(request.group_name)
        robot_refs = robot.body_refs(link_names, state)
        object_refs = [
            BodyRef(obj.name, None, obj.body_type, obj, obj.pose, frozenset())
            for obj in self._objects]
        return check_pairs(request, result,
                           self._world_pairs(robot_refs, object_refs, acm))

    def distance_robot(self, robot, state, acm=None, group_name=None):
        """Return the minimum signed distance between robot and world.

        `numpy.inf` when no pair is checked.
        """
        request = CollisionRequest(group_name=group_name, distance=True)
        return self.check_robot_collision(
            request, CollisionResult(), robot, state, acm).distance

    def __repr__(self):
        return '<{} objects={}>'.format(
            self.__class__.__name__, self._objects.names)

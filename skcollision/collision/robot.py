"""Self collision checking with per-link distance fields.

Example
-------
>>> from skcollision.collision import AllowedCollisionMatrix
>>> from skcollision.collision import CollisionRequest
>>> from skcollision.collision import CollisionResult
>>> from skcollision.collision import CollisionRobotDistanceField
>>> from skcollision.model import RobotState
>>> from skcollision.models import DualArmRobot
>>> robot = DualArmRobot()
>>> crobot = CollisionRobotDistanceField(robot)
>>> acm = AllowedCollisionMatrix(robot.link_names, False)
>>> result = crobot.check_self_collision(
...     CollisionRequest(), CollisionResult(), RobotState(robot), acm)
>>> result.collision
False
"""

from logging import getLogger

from skcollision.collision.link_geometry import LinkGeometry
from skcollision.collision.narrow_phase import BodyRef
from skcollision.collision.narrow_phase import check_pairs
from skcollision.collision.types import CollisionRequest
from skcollision.collision.types import CollisionResult
from skcollision.collision.types import pair_key
from skcollision.collision.types import ROBOT_ATTACHED
from skcollision.collision.types import ROBOT_LINK
from skcollision.collision.types import WHOLE_BODY
from skcollision.exceptions import InvalidRequestError
from skcollision.exceptions import NotFoundError
from skcollision.sdf import DistanceFieldCache


logger = getLogger(__name__)


class CollisionRobotDistanceField(object):
    """Self collision checker of one robot model.

    Parameters
    ----------
    robot_model : skcollision.model.RobotModel
    adjacency : list[tuple(str, str)] or None
        link pairs skipped unless the allowed collision matrix has an
        explicit `False` entry for them. parent-child pairs of
        `robot_model` if `None`.
    resolution : float or None
        voxel size of the link distance fields.
    padding : float or None
    max_dims : int or None
    surface_spacing : float or None
        spacing of surface samples. the field resolution if `None`.
    cache : skcollision.sdf.DistanceFieldCache or None
        a new cache owned by this checker if `None`.
    """

    def __init__(self, robot_model, adjacency=None, resolution=None,
                 padding=None, max_dims=None, surface_spacing=None,
                 cache=None):
        self.robot_model = robot_model
        if adjacency is None:
            adjacency = robot_model.adjacent_link_pairs()
        self._adjacency = frozenset(pair_key(a, b) for a, b in adjacency)
        if cache is None:
            cache = DistanceFieldCache()
        self.cache = cache
        self._field_kwargs = dict(resolution=resolution, padding=padding,
                                  max_dims=max_dims,
                                  surface_spacing=surface_spacing,
                                  cache=cache)
        self._link_geometries = {}
        for link in robot_model.link_list:
            self._link_geometries[link.name] = LinkGeometry(
                link.name, link.collision_shapes, link.shape_poses,
                **self._field_kwargs)
        logger.info('created collision geometry of {} links for robot {}'
                    .format(len(self._link_geometries), robot_model.name))

    @property
    def adjacency(self):
        return self._adjacency

    def is_adjacent(self, link_a, link_b):
        return pair_key(link_a, link_b) in self._adjacency

    def link_geometry(self, link_name):
        if link_name not in self._link_geometries:
            raise NotFoundError('robot {} has no link {}'.format(
                self.robot_model.name, link_name))
        return self._link_geometries[link_name]

    def attach_body(self, link_name, body_id, shapes, poses=None,
                    touch_links=()):
        """Attach shapes to a link so they move with it.

        Parameters
        ----------
        link_name : str
        body_id : str
            name of the body for allowed collision lookups and contacts.
        shapes : list[skcollision.shapes.Shape]
        poses : list[Coordinates] or None
            pose of each shape w.r.t. the link.
        touch_links : list[str]
            links (or world objects) this body may touch.

        Returns
        -------
        body : skcollision.collision.AttachedBody

        Raises
        ------
        NotFoundError
            if `link_name` is unknown.
        GeometryError
            if the shapes cannot produce a distance field. nothing changes.
        """
        return self.link_geometry(link_name).attach_body(
            body_id, shapes, poses, touch_links)

    def clear_attached_body(self, link_name, body_id):
        """Detach `body_id` from `link_name` and release its shapes."""
        self.link_geometry(link_name).clear_attached_body(body_id)

    def clear_attached_bodies(self, link_name=None):
        if link_name is None:
            for geometry in self._link_geometries.values():
                geometry.clear_attached_bodies()
        else:
            self.link_geometry(link_name).clear_attached_bodies()

    def attached_bodies(self, link_name=None):
        if link_name is not None:
            return self.link_geometry(link_name).attached_bodies
        bodies = []
        for name in self.robot_model.link_names:
            bodies.extend(self._link_geometries[name].attached_bodies)
        return bodies

    def resolve_group(self, group_name):
        """Return link names of a request group.

        Raises
        ------
        InvalidRequestError
            if the group is unknown.
        """
        if self.robot_model.has_group(group_name):
            return self.robot_model.group_link_names(group_name)
        if group_name is None or group_name == WHOLE_BODY:
            return self.robot_model.link_names
        raise InvalidRequestError('robot {} has no group {}'.format(
            self.robot_model.name, group_name))

    def body_refs(self, link_names, state):
        """Place the bodies of `link_names` at their world poses.

        For each link, its own body comes first, then attached bodies in
        attach order.

        Returns
        -------
        refs : list[skcollision.collision.narrow_phase.BodyRef]
        """
        refs = []
        for link_name in link_names:
            geometry = self._link_geometries[link_name]
            pose = state.link_transform(link_name)
            for body in geometry.bodies():
                if body.body_type == ROBOT_LINK:
                    touch_links = frozenset()
                else:
                    touch_links = body.touch_links
                refs.append(BodyRef(body.name, link_name, body.body_type,
                                    body, pose, touch_links))
        return refs

    def _self_pairs(self, refs, acm):
        for i, ref_a in enumerate(refs):
            for ref_b in refs[i + 1:]:
                # bodies attached to one link move together with it
                if ref_a.link_name == ref_b.link_name \
                        and ref_a.body_type == ROBOT_ATTACHED \
                        and ref_b.body_type == ROBOT_ATTACHED:
                    logger.debug('skip bodies {} and {} attached to {}'
                                 .format(ref_a.name, ref_b.name,
                                         ref_a.link_name))
                    continue
                if ref_a.body_type == ROBOT_LINK \
                        and ref_b.body_type == ROBOT_LINK \
                        and self.is_adjacent(ref_a.name, ref_b.name):
                    explicit_check = acm is not None \
                        and acm.has_entry(ref_a.name, ref_b.name) \
                        and not acm.get_entry(ref_a.name, ref_b.name)
                    if not explicit_check:
                        logger.debug('skip adjacent links {} and {}'.format(
                            ref_a.name, ref_b.name))
                        continue
                if acm is not None and acm.get_entry(ref_a.name, ref_b.name):
                    logger.debug('skip allowed pair {} and {}'.format(
                        ref_a.name, ref_b.name))
                    continue
                if ref_b.name in ref_a.touch_links \
                        or ref_a.name in ref_b.touch_links:
                    logger.debug('skip touch link pair {} and {}'.format(
                        ref_a.name, ref_b.name))
                    continue
                yield ref_a, ref_b

    def check_self_collision(self, request, result, state, acm=None):
        """Check collisions between bodies of the robot.

        Parameters
        ----------
        request : skcollision.collision.CollisionRequest
        result : skcollision.collision.CollisionResult
            updated in place. it is not cleared.
        state : skcollision.model.RobotState
            source of link world transforms.
        acm : skcollision.collision.AllowedCollisionMatrix or None
            every non adjacent pair is checked if `None`.

        Returns
        -------
        result : skcollision.collision.CollisionResult

        Raises
        ------
        InvalidRequestError
            if the request group is unknown. `result` is untouched.
        """
        request.validate()
        link_names = self.resolve_group(request.group_name)
        refs = self.body_refs(link_names, state)
        return check_pairs(request, result, self._self_pairs(refs, acm))

    def distance_self(self, state, acm=None, group_name=None):
        """Return the minimum signed distance over checked body pairs.

        `numpy.inf` when no pair is checked.
        """
        request = CollisionRequest(group_name=group_name, distance=True)
        return self.check_self_collision(
            request, CollisionResult(), state, acm).distance

    def __repr__(self):
        return '<{} robot={} links={}>'.format(
            self.__class__.__name__, self.robot_model.name,
            len(self._link_geometries))

from collections import OrderedDict
from logging import getLogger

from skcollision.coordinates import as_coords
from skcollision.coordinates import Coordinates
from skcollision.exceptions import NotFoundError
from skcollision.model.joint import FixedJoint
from skcollision.model.link import Link


logger = getLogger(__name__)


def get_ancestors(link):
    """Get list of ancestor link names from link to root."""
    ancestors = []
    current = link
    while current is not None:
        ancestors.append(current.name)
        current = current.parent_link
    return ancestors


class RobotModel(object):
    """Kinematic tree of links connected by joints, with named link groups.

    Links are added parent first. Each non-root link is connected to its
    parent by one joint.

    Parameters
    ----------
    name : str or None

    Examples
    --------
    >>> from skcollision.model import RobotModel
    >>> from skcollision.model import RotationalJoint
    >>> from skcollision.shapes import Box
    >>> robot = RobotModel('arm')
    >>> _ = robot.add_link('base_link', shapes=[Box([0.2, 0.2, 0.2])])
    >>> _ = robot.add_link(
    ...     'upper_link', parent='base_link',
    ...     joint=RotationalJoint(name='shoulder_joint', axis='y'),
    ...     origin=[0, 0, 0.2])
    >>> robot.adjacent_link_pairs()
    [('base_link', 'upper_link')]
    """

    def __init__(self, name=None):
        self.name = name
        self._links = OrderedDict()
        self._joints = OrderedDict()
        self._groups = OrderedDict()

    @property
    def link_names(self):
        return list(self._links.keys())

    @property
    def link_list(self):
        return list(self._links.values())

    @property
    def joint_names(self):
        """Names of joints with at least one degree of freedom."""
        return [name for name, j in self._joints.items() if j.joint_dof > 0]

    @property
    def joint_list(self):
        return list(self._joints.values())

    @property
    def root_link(self):
        for link in self._links.values():
            if link.parent_link is None:
                return link
        return None

    def add_link(self, name, parent=None, joint=None, origin=None,
                 shapes=(), shape_poses=None):
        """Add a link.

        Parameters
        ----------
        name : str
        parent : str or None
            parent link name. `None` for the root link.
        joint : skcollision.model.Joint or None
            joint connecting the parent to the new link. a fixed joint is
            created if `None`.
        origin : Coordinates or list or None
            pose of the link w.r.t. the parent at joint value 0. overrides
            the joint origin when given.
        shapes : list[skcollision.shapes.Shape]
        shape_poses : list[Coordinates] or None

        Returns
        -------
        link : skcollision.model.Link
        """
        if name in self._links:
            raise ValueError('link {} already exists'.format(name))
        link = Link(name, shapes, shape_poses)
        if parent is None:
            if self.root_link is not None:
                raise ValueError(
                    'robot {} already has root link {}'.format(
                        self.name, self.root_link.name))
            self._links[name] = link
            return link

        parent_link = self.link(parent)
        if joint is None:
            joint = FixedJoint(name='{}_joint'.format(name))
        if joint.name is None:
            joint.name = '{}_joint'.format(name)
        if joint.name in self._joints:
            raise ValueError('joint {} already exists'.format(joint.name))
        if origin is not None:
            if not hasattr(origin, 'rotation') and len(origin) == 3:
                origin = Coordinates(pos=origin)
            joint.origin = as_coords(origin)
        joint.parent_link = parent_link
        joint.child_link = link
        link.add_joint(joint)
        link.add_parent_link(parent_link)
        parent_link.add_child_link(link)
        self._links[name] = link
        self._joints[joint.name] = joint
        return link

    def link(self, name):
        if name not in self._links:
            raise NotFoundError(
                'robot {} has no link {}'.format(self.name, name))
        return self._links[name]

    def has_link(self, name):
        return name in self._links

    def joint(self, name):
        if name not in self._joints:
            raise NotFoundError(
                'robot {} has no joint {}'.format(self.name, name))
        return self._joints[name]

    def add_group(self, name, link_names):
        """Register a named group of links, order is preserved."""
        link_names = list(link_names)
        for link_name in link_names:
            self.link(link_name)
        self._groups[name] = link_names

    @property
    def group_names(self):
        return list(self._groups.keys())

    def has_group(self, name):
        return name in self._groups

    def group_link_names(self, name):
        if name not in self._groups:
            raise NotFoundError(
                'robot {} has no group {}'.format(self.name, name))
        return list(self._groups[name])

    def kinematic_distance(self, link_a, link_b):
        """Compute minimum kinematic chain distance between two links."""
        ancestors_a = get_ancestors(self.link(link_a))
        ancestors_b = get_ancestors(self.link(link_b))

        # Find common ancestor
        set_a = set(ancestors_a)
        for i, ancestor in enumerate(ancestors_b):
            if ancestor in set_a:
                return ancestors_a.index(ancestor) + i
        return float('inf')

    def adjacent_link_pairs(self, min_link_distance=2):
        """Return link pairs closer than `min_link_distance` in the chain.

        The default 2 returns parent-child pairs only.

        Returns
        -------
        pairs : list[tuple(str, str)]
            names of each pair sorted, pairs in link order.
        """
        names = self.link_names
        pairs = []
        for i, name_a in enumerate(names):
            for name_b in names[i + 1:]:
                if 0 < self.kinematic_distance(name_a, name_b) \
                        < min_link_distance:
                    pairs.append(tuple(sorted((name_a, name_b))))
        return pairs

    def default_joint_values(self):
        return OrderedDict(
            (name, self._joints[name].default_value())
            for name in self.joint_names)

    def __repr__(self):
        return '#<{} {} links={}>'.format(
            self.__class__.__name__, self.name, len(self._links))


class RobotState(object):
    """Joint values and link world transforms of a robot model.

    Forward kinematics is recomputed on every joint update.
    :meth:`update_link_transform` overrides one link's world transform
    without moving its descendants, until the next joint update.

    Parameters
    ----------
    robot_model : RobotModel
    root_coords : Coordinates or None
        world pose of the root link.
    """

    def __init__(self, robot_model, root_coords=None):
        self.robot_model = robot_model
        self.root_coords = as_coords(root_coords)
        self._joint_values = OrderedDict()
        self._link_transforms = {}
        self.set_to_default_values()

    def set_to_default_values(self):
        self._joint_values = self.robot_model.default_joint_values()
        self.update_transforms()

    def set_joint_values(self, values):
        """Set joint values from a mapping of joint name to value.

        Values beyond the joint limits are clamped.

        Raises
        ------
        NotFoundError
            if a joint name is unknown.
        """
        for name, value in values.items():
            joint = self.robot_model.joint(name)
            self._joint_values[name] = float(joint.clamp(float(value)))
        self.update_transforms()

    def joint_value(self, name):
        if name not in self._joint_values:
            raise NotFoundError('no joint value for {}'.format(name))
        return self._joint_values[name]

    @property
    def joint_values(self):
        return OrderedDict(self._joint_values)

    def update_transforms(self):
        """Recompute world transforms of every link."""
        transforms = {}
        for link in self.robot_model.link_list:
            if link.parent_link is None:
                transforms[link.name] = self.root_coords.copy_worldcoords()
                continue
            joint = link.joint
            value = self._joint_values.get(joint.name, 0.0)
            transforms[link.name] = transforms[link.parent_link.name]\
                .transform(joint.child_transform(value))
        self._link_transforms = transforms

    def update_link_transform(self, name, coords):
        """Override the world transform of link `name`."""
        self.robot_model.link(name)
        self._link_transforms[name] = as_coords(coords)

    def link_transform(self, name):
        """Return world transform of link `name`.

        Returns
        -------
        coords : Coordinates
            a copy, modifying it does not affect the state.
        """
        if name not in self._link_transforms:
            self.robot_model.link(name)
        return self._link_transforms[name].copy_worldcoords()

    def copy(self):
        state = RobotState(self.robot_model, self.root_coords)
        state._joint_values = OrderedDict(self._joint_values)
        state._link_transforms = {
            name: coords.copy_worldcoords()
            for name, coords in self._link_transforms.items()}
        return state

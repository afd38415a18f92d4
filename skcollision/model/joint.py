from logging import getLogger

import numpy as np

from skcollision.coordinates import as_coords
from skcollision.coordinates import convert_to_axis_vector
from skcollision.coordinates import Coordinates
from skcollision.coordinates import normalize_vector
from skcollision.coordinates import rotation_matrix


logger = getLogger(__name__)


class Joint(object):
    """Connection between a parent link and a child link.

    Parameters
    ----------
    name : str
    parent_link : skcollision.model.Link
    child_link : skcollision.model.Link
    origin : Coordinates or None
        pose of the child link w.r.t. the parent link at joint value 0.
    min_angle : float
    max_angle : float
    """

    def __init__(self, name=None, child_link=None, parent_link=None,
                 origin=None, min_angle=-np.pi / 2.0, max_angle=np.pi / 2.0):
        self.name = name
        self.parent_link = parent_link
        self.child_link = child_link
        self.origin = as_coords(origin)
        self.min_angle = min_angle
        self.max_angle = max_angle

    @property
    def joint_dof(self):
        raise NotImplementedError

    def clamp(self, v):
        """Clamp `v` into [min_angle, max_angle], warning on violation."""
        if v > self.max_angle:
            logger.warning('{} :joint-angle({}) violate max-angle({})'
                           .format(self, v, self.max_angle))
            return self.max_angle
        if v < self.min_angle:
            logger.warning('{} :joint-angle({}) violate min-angle({})'
                           .format(self, v, self.min_angle))
            return self.min_angle
        return v

    def default_value(self):
        """Value inside the limits closest to zero."""
        return float(np.clip(0.0, self.min_angle, self.max_angle))

    def child_transform(self, v):
        """Return pose of the child link w.r.t. the parent link.

        Parameters
        ----------
        v : float
            joint value.

        Returns
        -------
        coords : Coordinates
        """
        raise NotImplementedError

    def __repr__(self):
        return '#<{} {}>'.format(self.__class__.__name__, self.name)


class RotationalJoint(Joint):

    def __init__(self, axis='z', min_angle=-np.pi, max_angle=np.pi,
                 *args, **kwargs):
        super(RotationalJoint, self).__init__(
            min_angle=min_angle, max_angle=max_angle, *args, **kwargs)
        self.axis = normalize_vector(convert_to_axis_vector(axis))

    @property
    def joint_dof(self):
        """Returns DOF of rotational joint, 1."""
        return 1

    def child_transform(self, v):
        return Coordinates(
            pos=self.origin.translation,
            rot=self.origin.rotation.dot(rotation_matrix(v, self.axis)))


class LinearJoint(Joint):

    def __init__(self, axis='z', min_angle=-0.5, max_angle=0.5,
                 *args, **kwargs):
        super(LinearJoint, self).__init__(
            min_angle=min_angle, max_angle=max_angle, *args, **kwargs)
        self.axis = normalize_vector(convert_to_axis_vector(axis))

    @property
    def joint_dof(self):
        """Returns DOF of linear joint, 1."""
        return 1

    def child_transform(self, v):
        return Coordinates(
            pos=self.origin.translation + self.origin.rotation.dot(
                v * self.axis),
            rot=self.origin.rotation)


class FixedJoint(Joint):

    def __init__(self, *args, **kwargs):
        super(FixedJoint, self).__init__(
            min_angle=0.0, max_angle=0.0, *args, **kwargs)

    @property
    def joint_dof(self):
        """Returns DOF of fixed joint, 0."""
        return 0

    def clamp(self, v):
        return 0.0

    def child_transform(self, v=0.0):
        return self.origin.copy_worldcoords()

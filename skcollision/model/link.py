from collections.abc import Sequence

from skcollision.coordinates import as_coords
from skcollision.shapes import validate_shape


class Link(object):
    """Rigid body of a robot model.

    Parameters
    ----------
    name : str
    collision_shapes : list[skcollision.shapes.Shape]
    shape_poses : list[Coordinates] or None
        pose of each shape w.r.t. the link frame. identity if `None`.
    """

    def __init__(self, name, collision_shapes=(), shape_poses=None):
        if not isinstance(collision_shapes, Sequence):
            collision_shapes = [collision_shapes]
        self.name = name
        self.collision_shapes = tuple(
            validate_shape(shape) for shape in collision_shapes)
        if shape_poses is None:
            shape_poses = [None] * len(self.collision_shapes)
        if len(shape_poses) != len(self.collision_shapes):
            raise ValueError(
                'length of collision_shapes ({}) and shape_poses ({}) '
                'must be the same'.format(
                    len(self.collision_shapes), len(shape_poses)))
        self.shape_poses = tuple(as_coords(pose) for pose in shape_poses)
        self.joint = None
        self._child_links = []
        self._parent_link = None

    @property
    def parent_link(self):
        return self._parent_link

    @property
    def child_links(self):
        return self._child_links

    def add_joint(self, j):
        self.joint = j

    def add_child_link(self, child_link):
        """Add child link."""
        if child_link is not None and child_link not in self._child_links:
            self._child_links.append(child_link)

    def add_parent_link(self, parent_link):
        self._parent_link = parent_link

    def __repr__(self):
        return '#<{} {}>'.format(self.__class__.__name__, self.name)

import copy

import numpy as np

from skcollision.coordinates.math import _check_valid_rotation
from skcollision.coordinates.math import _check_valid_translation
from skcollision.coordinates.math import quaternion2matrix
from skcollision.coordinates.math import rotation_matrix
from skcollision.coordinates.math import rpy_matrix


class Transform(object):
    """Transform specified by translation and rotation

    Parameters
    ----------
    translation : list(3,) or numpy.ndarray(3,)
        translation
    rotation : numpy.ndarray(3, 3)
        3x3 rotation matrix
    """

    def __init__(self, translation, rotation):
        self.translation = np.array(translation, dtype=np.float64)
        self.rotation = np.array(rotation, dtype=np.float64)

    def transform_vector(self, vec):
        """Apply this transform to vector/vectors

        Parameters
        ----------
        vec : numpy.ndarray(3,) or numpy.ndarray(n_points, 3)
            vector/vectors to be transformed

        Returns
        -------
        vec_transformed : numpy.ndarray(3,) or numpy.ndarray(n_points, 3)
            transformed points
        """
        vec = np.asarray(vec, dtype=np.float64)
        assert vec.ndim < 3, "vec must be either 1 or 2 dimensional."
        if vec.ndim == 1:
            return self.rotation.dot(vec) + self.translation
        return vec.dot(self.rotation.T) + self.translation[None, :]

    def rotate_vector(self, vec):
        """Rotate vector/vectors with the rotation of this Transform."""
        vec = np.asarray(vec, dtype=np.float64)
        assert vec.ndim < 3, "vec must be either 1 or 2 dimensional."
        if vec.ndim == 1:
            return self.rotation.dot(vec)
        return vec.dot(self.rotation.T)

    def inverse_transformation(self):
        """Return inverse transform

        Returns
        -------
        inv_transform : skcollision.coordinates.base.Transform
            inverse transformation
        """
        new_rot = self.rotation.T
        new_trans = -new_rot.dot(self.translation)
        return Transform(new_trans, new_rot)

    def __mul__(self, tf_23):
        """Composite this transform with other transform

        Let this transform be tf_12 (frame 2 expressed in frame 1) and the
        other tf_23, then tf_13 = tf_12 * tf_23.
        """
        rot_13 = self.rotation.dot(tf_23.rotation)
        tran_13 = self.translation + self.rotation.dot(tf_23.translation)
        return Transform(tran_13, rot_13)

    def __repr__(self):
        return 'Transform(translation={}, rotation={})'.format(
            self.translation.tolist(), self.rotation.tolist())


def _parse_rotation(rot):
    rotation = np.array(rot, dtype=np.float64)
    if rotation.shape == (4,):
        rotation = quaternion2matrix(rotation)
    elif rotation.shape == (3,):
        rotation = rpy_matrix(*rotation)
    return _check_valid_rotation(rotation)


class Coordinates(object):

    """Coordinates class to manipulate rotation and translation.

    Parameters
    ----------
    pos : list or numpy.ndarray or None
        shape of (3,) translation vector or
        4x4 homogeneous transformation matrix.
        If the homogeneous transformation matrix is given,
        `rot` will be overwritten.
        If this value is `None`, set [0, 0, 0] vector as default.
    rot : list or numpy.ndarray or None
        we can take 3x3 rotation matrix or
        [yaw, pitch, roll] or
        quaternion [w, x, y, z] order.
        Quaternions are normalized.
        If this value is `None`, set the identity matrix as default.
    name : str or None
        name of this coordinates
    """

    def __init__(self, pos=None, rot=None, name=None):
        if pos is not None:
            T = np.array(pos, dtype=np.float64)
            if T.shape == (4, 4):
                pos = T[:3, 3]
                rot = T[:3, :3]
        if rot is None:
            self._rotation = np.eye(3)
        else:
            self._rotation = _parse_rotation(rot)
        if pos is None:
            self._translation = np.zeros(3)
        else:
            self._translation = _check_valid_translation(pos) * 1.
        if name is None:
            name = ''
        self.name = name

    @property
    def rotation(self):
        """Return 3x3 rotation matrix of this coordinates."""
        return self._rotation

    @rotation.setter
    def rotation(self, rotation):
        self._rotation = _parse_rotation(rotation)

    @property
    def translation(self):
        """Return translation of this coordinates. unit is [m]"""
        return self._translation

    @translation.setter
    def translation(self, translation):
        self._translation = _check_valid_translation(translation) * 1.

    def worldpos(self):
        return self._translation

    def worldrot(self):
        return self._rotation

    def T(self):
        """Return 4x4 homogeneous transformation matrix.

        Examples
        --------
        >>> from skcollision.coordinates import Coordinates
        >>> Coordinates(pos=[1, 2, 3]).T()
        array([[1., 0., 0., 1.],
               [0., 1., 0., 2.],
               [0., 0., 1., 3.],
               [0., 0., 0., 1.]])
        """
        matrix = np.eye(4)
        matrix[:3, :3] = self._rotation
        matrix[:3, 3] = self._translation
        return matrix

    def get_transform(self):
        """Return the corresponding Transform."""
        return Transform(self._translation, self._rotation)

    def translate(self, vec, wrt='local'):
        """Translate this coordinates.

        Parameters
        ----------
        vec : list or numpy.ndarray
            shape of (3,) translation vector. unit is [m] order.
        wrt : str
            'local' or 'world'.

        Returns
        -------
        self : skcollision.coordinates.Coordinates
        """
        vec = _check_valid_translation(vec)
        if wrt == 'local':
            vec = self._rotation.dot(vec)
        elif wrt != 'world':
            raise ValueError('wrt {} is not supported'.format(wrt))
        self._translation = self._translation + vec
        return self

    def rotate(self, theta, axis, wrt='local'):
        """Rotate this coordinates by theta radians around axis."""
        rot = rotation_matrix(theta, axis)
        if wrt == 'local':
            self._rotation = self._rotation.dot(rot)
        elif wrt == 'world':
            self._rotation = rot.dot(self._rotation)
        else:
            raise ValueError('wrt {} is not supported'.format(wrt))
        return self

    def transform(self, c):
        """Return new coordinates of `c` composed on the right of self."""
        return Coordinates(
            pos=self._translation + self._rotation.dot(c.translation),
            rot=self._rotation.dot(c.rotation))

    def transform_vector(self, v):
        """Transform points from this frame to the world frame."""
        return self.get_transform().transform_vector(v)

    def inverse_transform_vector(self, vec):
        """Transform points from the world frame to this frame."""
        vec = np.asarray(vec, dtype=np.float64)
        if vec.ndim == 1:
            return self._rotation.T.dot(vec - self._translation)
        return (vec - self._translation[None, :]).dot(self._rotation)

    def rotate_vector(self, v):
        return self.get_transform().rotate_vector(v)

    def inverse_transformation(self):
        """Return the inverse coordinates."""
        rot = self._rotation.T
        return Coordinates(pos=-rot.dot(self._translation), rot=rot)

    def copy_worldcoords(self):
        return Coordinates(pos=self._translation.copy(),
                           rot=self._rotation.copy(),
                           name=self.name)

    copy_coords = copy_worldcoords

    def __copy__(self):
        return self.copy_worldcoords()

    def __deepcopy__(self, memo):
        return Coordinates(pos=copy.deepcopy(self._translation, memo),
                           rot=copy.deepcopy(self._rotation, memo),
                           name=self.name)

    def __repr__(self):
        return '#<{} {} pos={} rot={}>'.format(
            self.__class__.__name__, self.name,
            np.round(self._translation, 6).tolist(),
            np.round(self._rotation, 6).tolist())


def make_coords(*args, **kwargs):
    """Return Coordinates

    This is a wrapper of Coordinates class
    """
    return Coordinates(*args, **kwargs)


def as_coords(pose):
    """Convert pose-like input to Coordinates.

    Parameters
    ----------
    pose : None, Coordinates, Transform or numpy.ndarray(4, 4)
        `None` means identity.

    Returns
    -------
    coords : skcollision.coordinates.Coordinates
        a new coordinates instance owned by the caller.
    """
    if pose is None:
        return Coordinates()
    if isinstance(pose, Coordinates):
        return pose.copy_worldcoords()
    if isinstance(pose, Transform):
        return Coordinates(pos=pose.translation, rot=pose.rotation)
    pose = np.asarray(pose, dtype=np.float64)
    if pose.shape == (4, 4):
        return Coordinates(pos=pose)
    raise TypeError('pose must be Coordinates, Transform, 4x4 matrix or '
                    'None, but got {}'.format(type(pose)))

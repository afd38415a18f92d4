import numpy as np


_AXIS_VECTORS = {
    'x': np.array([1, 0, 0]),
    'y': np.array([0, 1, 0]),
    'z': np.array([0, 0, 1]),
    '-x': np.array([-1, 0, 0]),
    '-y': np.array([0, -1, 0]),
    '-z': np.array([0, 0, -1]),
}


def convert_to_axis_vector(axis):
    """Convert axis to float vector.

    Parameters
    ----------
    axis : str or list or numpy.ndarray
        rotation axis such as 'x', '-z' or [0, 1, 0].

    Returns
    -------
    axis : numpy.ndarray
        converted axis

    Examples
    --------
    >>> from skcollision.coordinates.math import convert_to_axis_vector
    >>> convert_to_axis_vector('y')
    array([0., 1., 0.])
    >>> convert_to_axis_vector([1, 1, 0])
    array([1., 1., 0.])
    """
    if isinstance(axis, str):
        try:
            return _AXIS_VECTORS[axis].astype(np.float64)
        except KeyError:
            raise ValueError(
                "Axis conversion for '{}' is not supported.".format(axis))
    axis = np.array(axis, dtype=np.float64)
    if axis.shape != (3,):
        raise ValueError(
            'Axis must be a 3-vector, got shape {}'.format(axis.shape))
    return axis


def _check_valid_rotation(rotation):
    """Checks that the given rotation matrix is valid."""
    rotation = np.array(rotation)
    if not np.issubdtype(rotation.dtype, np.number):
        raise ValueError('Rotation must be specified as numeric numpy array')

    if rotation.shape != (3, 3):
        raise ValueError('Rotation must be specified as a 3x3 ndarray')

    if np.abs(np.linalg.det(rotation) - 1.0) > 1e-3:
        raise ValueError('Illegal rotation. Must have determinant == 1.0, '
                         'get {}'.format(np.linalg.det(rotation)))
    return rotation


def _check_valid_translation(translation):
    """Checks that the translation vector is valid."""
    translation = np.array(translation)
    if not np.issubdtype(translation.dtype, np.number):
        raise ValueError(
            'Translation must be specified as numeric numpy array')

    t = translation.squeeze()
    if t.shape != (3,):
        raise ValueError(
            'Translation must be specified as a 3-vector, '
            '3x1 ndarray, or 1x3 ndarray')
    if not np.all(np.isfinite(t)):
        raise ValueError('Translation must be finite, get {}'.format(t))
    return t


def normalize_vector(v, ord=2):
    """Return normalized vector

    A zero vector is returned unchanged.

    Examples
    --------
    >>> from skcollision.coordinates.math import normalize_vector
    >>> normalize_vector([0, 3, 4])
    array([0. , 0.6, 0.8])
    """
    v = np.array(v, dtype=np.float64)
    norm = np.linalg.norm(v, ord=ord)
    if norm == 0:
        return v
    return v / norm


def rotation_matrix(theta, axis):
    """Return the rotation matrix.

    Return the rotation matrix associated with counterclockwise rotation
    about the given axis by theta radians.

    Parameters
    ----------
    theta : float
        radian
    axis : str or list or numpy.ndarray
        rotation axis such that 'x', 'y', 'z' or [0, 0, 1].

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix.
    """
    axis = normalize_vector(convert_to_axis_vector(axis))
    a = np.cos(theta / 2.0)
    b, c, d = -axis * np.sin(theta / 2.0)
    aa, bb, cc, dd = a * a, b * b, c * c, d * d
    bc, ad, ac, ab, bd, cd = b * c, a * d, a * c, a * b, b * d, c * d
    return np.array([[aa + bb - cc - dd, 2 * (bc + ad), 2 * (bd - ac)],
                     [2 * (bc - ad), aa + cc - bb - dd, 2 * (cd + ab)],
                     [2 * (bd + ac), 2 * (cd - ab), aa + dd - bb - cc]])


def quaternion2matrix(q, normalize=True):
    """Returns matrix of given quaternion.

    Parameters
    ----------
    q : list or numpy.ndarray
        quaternion [w, x, y, z] order
    normalize : bool
        if `True`, the quaternion is normalized first. Otherwise a
        quaternion whose norm is not 1 raises ValueError.

    Returns
    -------
    rot : numpy.ndarray
        3x3 rotation matrix
    """
    q = np.array(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError('quaternion must be 4-vector, get {}'.format(q.shape))
    norm = np.linalg.norm(q)
    if norm < 1e-12:
        raise ValueError('quaternion norm must not be zero')
    if normalize:
        q = q / norm
    elif not np.allclose(norm, 1.0):
        raise ValueError("quaternion q's norm is not 1")
    q0, q1, q2, q3 = q
    return np.array([
        [q0 * q0 + q1 * q1 - q2 * q2 - q3 * q3,
         2 * (q1 * q2 - q0 * q3),
         2 * (q1 * q3 + q0 * q2)],
        [2 * (q1 * q2 + q0 * q3),
         q0 * q0 - q1 * q1 + q2 * q2 - q3 * q3,
         2 * (q2 * q3 - q0 * q1)],
        [2 * (q1 * q3 - q0 * q2),
         2 * (q2 * q3 + q0 * q1),
         q0 * q0 - q1 * q1 - q2 * q2 + q3 * q3]])


def rpy_matrix(az, ay, ax):
    """Return rotation matrix from yaw-pitch-roll

    Rotates ax around x, then ay around y and az around z, all in the
    world frame.
    """
    return rotation_matrix(az, 'z').dot(
        rotation_matrix(ay, 'y')).dot(rotation_matrix(ax, 'x'))

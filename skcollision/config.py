import os


_default_resolution = 0.01
_default_padding_voxels = 4
_default_max_dims = 128


def get_default_resolution():
    """Return the default voxel resolution in [m].

    The value can be overridden with the ``SKCOLLISION_RESOLUTION``
    environment variable.
    """
    value = os.environ.get('SKCOLLISION_RESOLUTION')
    if value is None:
        return _default_resolution
    try:
        resolution = float(value)
    except ValueError:
        raise ValueError(
            'SKCOLLISION_RESOLUTION must be a float, got {}'.format(value))
    if not resolution > 0.0:
        raise ValueError(
            'SKCOLLISION_RESOLUTION must be positive, got {}'.format(value))
    return resolution


def get_default_padding_voxels():
    return _default_padding_voxels


def get_default_max_dims():
    return _default_max_dims

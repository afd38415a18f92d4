# flake8: noqa

from .base import Coordinates
from .base import Transform
from .base import as_coords
from .base import make_coords

from .math import convert_to_axis_vector
from .math import normalize_vector
from .math import quaternion2matrix
from .math import rotation_matrix
from .math import rpy_matrix

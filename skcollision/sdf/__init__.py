# flake8: noqa

from skcollision.sdf.distance_field import DistanceField
from skcollision.sdf.distance_field import DistanceFieldCache
from skcollision.sdf.distance_field import signed_distance_transform
from skcollision.sdf.distance_field import transformed_bounds

# flake8: noqa

from skcollision.collision.acm import AllowedCollisionMatrix
from skcollision.collision.link_geometry import AttachedBody
from skcollision.collision.link_geometry import CollisionBody
from skcollision.collision.link_geometry import LinkGeometry
from skcollision.collision.robot import CollisionRobotDistanceField
from skcollision.collision.types import CollisionRequest
from skcollision.collision.types import CollisionResult
from skcollision.collision.types import Contact
from skcollision.collision.types import pair_key
from skcollision.collision.world import CollisionWorldDistanceField
from skcollision.collision.world import WorldObject
from skcollision.collision.world import WorldObjectStore

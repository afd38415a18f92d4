# flake8: noqa

from skcollision.model.joint import FixedJoint
from skcollision.model.joint import Joint
from skcollision.model.joint import LinearJoint
from skcollision.model.joint import RotationalJoint
from skcollision.model.link import Link
from skcollision.model.robot_model import RobotModel
from skcollision.model.robot_model import RobotState

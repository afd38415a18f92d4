# flake8: noqa

from skcollision.models.dual_arm import DualArmRobot

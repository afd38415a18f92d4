import numpy as np

from skcollision.coordinates import Coordinates
from skcollision.model import LinearJoint
from skcollision.model import RobotModel
from skcollision.model import RotationalJoint
from skcollision.shapes import Box
from skcollision.shapes import Sphere


class DualArmRobot(RobotModel):

    """Two-armed mobile manipulator built from primitives.

    A base, a fixed bellow, a prismatic torso and two mirrored arms
    (shoulder pan, shoulder lift, elbow, wrist, two fixed fingers). At
    the default configuration the arms point forward (+x) and no pair of
    non adjacent links is in contact.
    """

    def __init__(self, name='dual_arm_robot'):
        super(DualArmRobot, self).__init__(name)
        self.add_link('base_link',
                      shapes=[Box([0.6, 0.6, 0.3])],
                      shape_poses=[Coordinates(pos=[0, 0, 0.15])])
        self.add_link('base_bellow_link', parent='base_link',
                      origin=[0, 0, 0.3],
                      shapes=[Box([0.2, 0.2, 0.2])],
                      shape_poses=[Coordinates(pos=[0, 0, 0.1])])
        self.add_link('torso_lift_link', parent='base_bellow_link',
                      joint=LinearJoint(name='torso_lift_joint', axis='z',
                                        min_angle=0.0, max_angle=0.3),
                      origin=[0, 0, 0.2],
                      shapes=[Box([0.3, 0.5, 0.6])],
                      shape_poses=[Coordinates(pos=[0, 0, 0.35])])
        for prefix, side in (('r', -1.0), ('l', 1.0)):
            self._add_arm(prefix, side)

        self.add_group('whole_body', self.link_names)
        self.add_group('right_arm', self._arm_link_names('r'))
        self.add_group('left_arm', self._arm_link_names('l'))

    @staticmethod
    def _arm_link_names(prefix):
        return ['{}_{}'.format(prefix, name) for name in (
            'shoulder_pan_link', 'upper_arm_link', 'forearm_link',
            'gripper_palm_link', 'gripper_l_finger_link',
            'gripper_r_finger_link')]

    def _add_arm(self, prefix, side):
        def name(s):
            return '{}_{}'.format(prefix, s)

        self.add_link(name('shoulder_pan_link'), parent='torso_lift_link',
                      joint=RotationalJoint(
                          name=name('shoulder_pan_joint'), axis='z',
                          min_angle=-np.pi / 2.0, max_angle=np.pi / 2.0),
                      origin=[0, side * 0.4, 0.6],
                      shapes=[Sphere(0.1)])
        self.add_link(name('upper_arm_link'), parent=name('shoulder_pan_link'),
                      joint=RotationalJoint(
                          name=name('shoulder_lift_joint'), axis='y',
                          min_angle=-np.pi / 2.0, max_angle=np.pi / 2.0),
                      origin=[0, 0, 0],
                      shapes=[Box([0.3, 0.08, 0.08])],
                      shape_poses=[Coordinates(pos=[0.25, 0, 0])])
        self.add_link(name('forearm_link'), parent=name('upper_arm_link'),
                      joint=RotationalJoint(
                          name=name('elbow_flex_joint'), axis='y',
                          min_angle=-2.3, max_angle=0.0),
                      origin=[0.45, 0, 0],
                      shapes=[Box([0.25, 0.07, 0.07])],
                      shape_poses=[Coordinates(pos=[0.15, 0, 0])])
        self.add_link(name('gripper_palm_link'), parent=name('forearm_link'),
                      joint=RotationalJoint(
                          name=name('wrist_roll_joint'), axis='x'),
                      origin=[0.35, 0, 0],
                      shapes=[Box([0.1, 0.1, 0.06])])
        for finger, offset in (('l', 0.03), ('r', -0.03)):
            self.add_link(name('gripper_{}_finger_link'.format(finger)),
                          parent=name('gripper_palm_link'),
                          origin=[0.1, offset, 0],
                          shapes=[Box([0.08, 0.02, 0.02])],
                          shape_poses=[Coordinates(pos=[0.04, 0, 0])])

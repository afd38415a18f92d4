#!/usr/bin/env python
"""Self and world collision checks of the dual arm sample robot.

This example demonstrates:
1. Building distance fields for every link
2. Checking self collision with an allowed collision matrix
3. Adding a table and checking robot versus world collision
4. Attaching a cup to the right gripper with touch links

Usage:
    python dual_arm_collision_demo.py
    python dual_arm_collision_demo.py --resolution 0.02 --verbose
"""

import argparse
import logging

import numpy as np

from skcollision.collision import AllowedCollisionMatrix
from skcollision.collision import CollisionRequest
from skcollision.collision import CollisionResult
from skcollision.collision import CollisionRobotDistanceField
from skcollision.collision import CollisionWorldDistanceField
from skcollision.coordinates import Coordinates
from skcollision.model import RobotState
from skcollision.models import DualArmRobot
from skcollision.shapes import Box
from skcollision.shapes import Cylinder


def print_result(title, result):
    print('{}: collision={} contacts={}'.format(
        title, result.collision, result.contact_count))
    for (name_a, name_b), contacts in result.contacts.items():
        for contact in contacts:
            print('  {} - {} depth {:.3f} at {}'.format(
                name_a, name_b, contact.depth,
                np.round(contact.position, 3)))


def main():
    parser = argparse.ArgumentParser(
        description='Distance field collision checking demo',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('--resolution', type=float, default=0.01,
                        help='voxel size of the distance fields')
    parser.add_argument('--verbose', action='store_true',
                        help='log every colliding pair')
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose
                        else logging.WARNING)

    print('Building distance fields...')
    robot = DualArmRobot()
    crobot = CollisionRobotDistanceField(robot, resolution=args.resolution)
    cworld = CollisionWorldDistanceField(resolution=args.resolution,
                                         cache=crobot.cache)
    acm = AllowedCollisionMatrix(robot.link_names, False)
    state = RobotState(robot)

    request = CollisionRequest(contacts=True, max_contacts=10,
                               max_contacts_per_pair=2,
                               verbose=args.verbose)
    print_result('default pose', crobot.check_self_collision(
        request, CollisionResult(), state, acm))

    # swing the right arm into the torso
    state.set_joint_values({'r_shoulder_pan_joint': np.pi / 2.0})
    print_result('right arm swung in', crobot.check_self_collision(
        request, CollisionResult(), state, acm))
    state.set_to_default_values()

    cworld.add_to_object('table', Box([0.6, 1.2, 0.05]),
                         Coordinates(pos=[0.9, 0.0, 1.05]))
    print_result('table', cworld.check_robot_collision(
        request, CollisionResult(), crobot, state, acm))
    print('distance to table: {:.3f}'.format(
        cworld.distance_robot(crobot, state, acm)))

    crobot.attach_body(
        'r_gripper_palm_link', 'cup', [Cylinder(0.05, 0.12)],
        [Coordinates(pos=[0.25, 0, 0])],
        touch_links=['r_gripper_l_finger_link', 'r_gripper_r_finger_link'])
    print_result('with cup', crobot.check_self_collision(
        request, CollisionResult(), state, acm))
    print('attached bodies: {}'.format(
        [body.name for body in crobot.attached_bodies()]))


if __name__ == '__main__':
    main()

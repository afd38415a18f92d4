import unittest

import numpy as np
import pytest

from skcollision.collision import AllowedCollisionMatrix
from skcollision.collision import CollisionRequest
from skcollision.collision import CollisionResult
from skcollision.collision import CollisionRobotDistanceField
from skcollision.collision import CollisionWorldDistanceField
from skcollision.coordinates import Coordinates
from skcollision.exceptions import GeometryError
from skcollision.exceptions import InvalidRequestError
from skcollision.exceptions import NotFoundError
from skcollision.model import RobotState
from skcollision.models import DualArmRobot
from skcollision.shapes import Box


class TestDistanceFieldCollisionDetection(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.robot_model = DualArmRobot()
        cls.crobot = CollisionRobotDistanceField(cls.robot_model)

    def setUp(self):
        self.acm = AllowedCollisionMatrix(self.robot_model.link_names, True)
        self.cworld = CollisionWorldDistanceField()
        self.crobot.clear_attached_bodies()

    def test_default_not_in_collision(self):
        state = RobotState(self.robot_model)
        req = CollisionRequest(group_name='whole_body')
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertFalse(res.collision)

        # adjacent links are skipped even when every pair is checked
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, acm)
        self.assertFalse(res.collision)
        self.assertGreater(self.crobot.distance_self(state, acm), 0.0)

    def test_change_torso_position(self):
        state = RobotState(self.robot_model)
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        req = CollisionRequest(group_name='right_arm')
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, acm)
        state.set_joint_values({'torso_lift_joint': 0.15})
        self.crobot.check_self_collision(req, res, state, acm)
        self.crobot.check_self_collision(req, res, state, acm)
        self.assertFalse(res.collision)
        np.testing.assert_almost_equal(
            state.link_transform('r_shoulder_pan_link').translation,
            [0.0, -0.4, 1.25])

    def test_links_in_collision(self):
        req = CollisionRequest(group_name='whole_body')
        state = RobotState(self.robot_model)
        offset = Coordinates(pos=[0.01, 0, 0])

        state.update_link_transform('base_link', Coordinates())
        state.update_link_transform('base_bellow_link', offset)
        self.acm.set_entry('base_link', 'base_bellow_link', False)
        res1 = CollisionResult()
        self.crobot.check_self_collision(req, res1, state, self.acm)
        self.assertTrue(res1.collision)

        self.acm.set_entry('base_link', 'base_bellow_link', True)
        res2 = CollisionResult()
        self.crobot.check_self_collision(req, res2, state, self.acm)
        self.assertFalse(res2.collision)

        state.update_link_transform('r_gripper_palm_link', Coordinates())
        state.update_link_transform('l_gripper_palm_link', offset)
        self.acm.set_entry('r_gripper_palm_link', 'l_gripper_palm_link',
                           False)
        res3 = CollisionResult()
        self.crobot.check_self_collision(req, res3, state, self.acm)
        self.assertTrue(res3.collision)

    def test_contact_reporting(self):
        req = CollisionRequest(group_name='whole_body', contacts=True,
                               max_contacts=1)
        state = RobotState(self.robot_model)
        offset = Coordinates(pos=[0.01, 0, 0])
        state.update_link_transform('base_link', Coordinates())
        state.update_link_transform('base_bellow_link', offset)
        state.update_link_transform('r_gripper_palm_link', Coordinates())
        state.update_link_transform('l_gripper_palm_link', offset)
        self.acm.set_entry('base_link', 'base_bellow_link', False)
        self.acm.set_entry('r_gripper_palm_link', 'l_gripper_palm_link',
                           False)

        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertTrue(res.collision)
        self.assertEqual(len(res.contacts), 1)
        self.assertEqual(len(next(iter(res.contacts.values()))), 1)
        self.assertEqual(res.contact_count, 1)

        res.clear()
        req.max_contacts = 2
        req.max_contacts_per_pair = 1
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertTrue(res.collision)
        self.assertEqual(res.contact_count, 2)
        self.assertEqual(len(res.contacts), 2)
        for contacts in res.contacts.values():
            self.assertEqual(len(contacts), 1)
        self.assertIn(('base_bellow_link', 'base_link'), res.contacts)
        self.assertIn(('l_gripper_palm_link', 'r_gripper_palm_link'),
                      res.contacts)

        res.contacts = {}
        res.contact_count = 0
        req.max_contacts = 10
        req.max_contacts_per_pair = 2
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        self.crobot.check_self_collision(req, res, state, acm)
        self.assertTrue(res.collision)
        self.assertLessEqual(len(res.contacts), 10)
        self.assertLessEqual(res.contact_count, 10)
        self.assertEqual(
            res.contact_count,
            sum(len(contacts) for contacts in res.contacts.values()))
        for contacts in res.contacts.values():
            self.assertLessEqual(len(contacts), 2)
            depths = [c.depth for c in contacts]
            self.assertEqual(depths, sorted(depths, reverse=True))

    def test_contact_positions(self):
        req = CollisionRequest(group_name='whole_body', contacts=True,
                               max_contacts=1)
        state = RobotState(self.robot_model)
        state.update_link_transform('r_gripper_palm_link',
                                    Coordinates(pos=[5.0, 0, 0]))
        state.update_link_transform('l_gripper_palm_link',
                                    Coordinates(pos=[5.01, 0, 0]))
        self.acm.set_entry('r_gripper_palm_link', 'l_gripper_palm_link',
                           False)

        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertTrue(res.collision)
        self.assertEqual(len(res.contacts), 1)
        contacts = res.contacts[('l_gripper_palm_link', 'r_gripper_palm_link')]
        self.assertEqual(len(contacts), 1)
        self.assertAlmostEqual(contacts[0].position[0], 5.0, delta=0.33)
        self.assertGreater(contacts[0].depth, 0.0)
        self.assertAlmostEqual(np.linalg.norm(contacts[0].normal), 1.0)

        state.update_link_transform('r_gripper_palm_link',
                                    Coordinates(pos=[3.0, 0, 0]))
        state.update_link_transform(
            'l_gripper_palm_link',
            Coordinates(pos=[3.0, 0, 0], rot=[0.965, 0.0, 0.258, 0.0]))
        res2 = CollisionResult()
        self.crobot.check_self_collision(req, res2, state, self.acm)
        self.assertTrue(res2.collision)
        self.assertEqual(len(res2.contacts), 1)
        contacts = next(iter(res2.contacts.values()))
        self.assertEqual(len(contacts), 1)
        self.assertAlmostEqual(contacts[0].position[0], 3.0, delta=0.33)

    def test_attached_body(self):
        req = CollisionRequest(group_name='right_arm')
        state = RobotState(self.robot_model)
        pos1 = Coordinates(pos=[1.0, 0, 0])
        state.update_link_transform('r_gripper_palm_link', pos1)

        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertFalse(res.collision)

        self.cworld.add_to_object('box', Box([0.25, 0.25, 0.25]), pos1)
        res = CollisionResult()
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertTrue(res.collision)

        box = self.cworld.objects.get('box')
        self.cworld.remove_object('box')
        self.assertTrue(box.released)
        self.assertFalse(self.cworld.has_object('box'))

        self.crobot.attach_body('r_gripper_palm_link', 'box',
                                [Box([0.25, 0.25, 0.25])], [Coordinates()])
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertTrue(res.collision)

        attached = self.crobot.link_geometry(
            'r_gripper_palm_link').attached_body('box')
        self.crobot.clear_attached_body('r_gripper_palm_link', 'box')
        self.assertTrue(attached.released)

        self.crobot.attach_body('r_gripper_palm_link', 'box',
                                [Box([0.1, 0.1, 0.1])], [Coordinates()],
                                touch_links=['r_gripper_palm_link'])
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertFalse(res.collision)

        self.cworld.add_to_object('coll', Box([0.1, 0.1, 0.1]),
                                  Coordinates(pos=[1.01, 0, 0]))
        res = CollisionResult()
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertTrue(res.collision)

        # the attached box still collides with the object
        self.acm.set_entry('coll', 'r_gripper_palm_link', True)
        res = CollisionResult()
        req = CollisionRequest(group_name='right_arm', contacts=True,
                               max_contacts=10, verbose=True)
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertTrue(res.collision)
        self.assertEqual(list(res.contacts.keys()), [('box', 'coll')])
        contact = res.contacts[('box', 'coll')][0]
        self.assertEqual(contact.body_type_1, 'robot_attached')
        self.assertEqual(contact.body_type_2, 'world_object')

    def test_attached_body_moves_with_link(self):
        req = CollisionRequest(group_name='right_arm')
        state = RobotState(self.robot_model)
        self.crobot.attach_body('r_gripper_palm_link', 'cup',
                                [Box([0.05, 0.05, 0.05])],
                                [Coordinates(pos=[0.25, 0, 0])],
                                touch_links=['r_gripper_palm_link'])
        palm = state.link_transform('r_gripper_palm_link')
        obstacle_pos = palm.transform_vector([0.25, 0, 0])
        self.cworld.add_to_object('obstacle', Box([0.04, 0.04, 0.04]),
                                  Coordinates(pos=obstacle_pos))
        res = CollisionResult()
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertTrue(res.collision)

        state.set_joint_values({'r_shoulder_pan_joint': -0.5})
        res = CollisionResult()
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertFalse(res.collision)

        # touch links also exempt world objects
        state.set_to_default_values()
        self.crobot.attach_body('r_gripper_palm_link', 'cup',
                                [Box([0.05, 0.05, 0.05])],
                                [Coordinates(pos=[0.25, 0, 0])],
                                touch_links=['r_gripper_palm_link',
                                             'obstacle'])
        self.assertEqual(
            len(self.crobot.attached_bodies('r_gripper_palm_link')), 1)
        res = CollisionResult()
        self.cworld.check_robot_collision(
            req, res, self.crobot, state, self.acm)
        self.assertFalse(res.collision)

    def test_bodies_attached_to_same_link(self):
        req = CollisionRequest(group_name='right_arm')
        state = RobotState(self.robot_model)
        pos1 = Coordinates(pos=[1.0, 0, 0])
        state.update_link_transform('r_gripper_palm_link', pos1)
        self.crobot.attach_body('r_gripper_palm_link', 'cup',
                                [Box([0.1, 0.1, 0.1])], [Coordinates()],
                                touch_links=['r_gripper_palm_link'])
        self.crobot.attach_body('r_gripper_palm_link', 'lid',
                                [Box([0.1, 0.1, 0.02])],
                                [Coordinates(pos=[0, 0, 0.05])],
                                touch_links=['r_gripper_palm_link'])
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertFalse(res.collision)

        # bodies attached to different links are still checked
        state.update_link_transform('l_gripper_palm_link', pos1)
        self.crobot.attach_body('l_gripper_palm_link', 'plate',
                                [Box([0.1, 0.1, 0.02])], [Coordinates()],
                                touch_links=['l_gripper_palm_link'])
        req = CollisionRequest(group_name='whole_body', contacts=True,
                               max_contacts=20, verbose=True)
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, self.acm)
        self.assertTrue(res.collision)
        self.assertIn(('cup', 'plate'), res.contacts)
        self.assertNotIn(('cup', 'lid'), res.contacts)

    def test_idempotence(self):
        req = CollisionRequest(group_name='whole_body', contacts=True,
                               max_contacts=10, max_contacts_per_pair=2)
        state = RobotState(self.robot_model)
        state.update_link_transform('r_gripper_palm_link', Coordinates())
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        results = []
        for _ in range(2):
            res = CollisionResult()
            self.crobot.check_self_collision(req, res, state, acm)
            results.append(res)
        self.assertTrue(results[0].collision)
        self.assertEqual(results[0].collision, results[1].collision)
        self.assertEqual(results[0].contact_count, results[1].contact_count)
        self.assertEqual(list(results[0].contacts.keys()),
                         list(results[1].contacts.keys()))

    def test_contacts_disabled_sets_flag_only(self):
        req = CollisionRequest(group_name='whole_body', contacts=False)
        state = RobotState(self.robot_model)
        state.update_link_transform('r_gripper_palm_link', Coordinates())
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        res = CollisionResult()
        self.crobot.check_self_collision(req, res, state, acm)
        self.assertTrue(res.collision)
        self.assertEqual(res.contact_count, 0)
        self.assertEqual(res.contacts, {})

    def test_cap_under_reports(self):
        state = RobotState(self.robot_model)
        state.update_link_transform('r_gripper_palm_link', Coordinates())
        state.update_link_transform('l_gripper_palm_link', Coordinates())
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)

        capped = CollisionResult()
        self.crobot.check_self_collision(
            CollisionRequest(contacts=True, max_contacts=1),
            capped, state, acm)
        exhaustive = CollisionResult()
        self.crobot.check_self_collision(
            CollisionRequest(contacts=True, max_contacts=100),
            exhaustive, state, acm)
        self.assertTrue(capped.collision)
        self.assertEqual(capped.contact_count, 1)
        self.assertGreater(exhaustive.contact_count, capped.contact_count)
        self.assertTrue(
            set(capped.contacts).issubset(set(exhaustive.contacts)))

        # verbose enumerates every pair without adding capped contacts
        verbose = CollisionResult()
        self.crobot.check_self_collision(
            CollisionRequest(contacts=True, max_contacts=1, verbose=True),
            verbose, state, acm)
        self.assertEqual(verbose.contact_count, 1)

    def test_distance(self):
        state = RobotState(self.robot_model)
        acm = AllowedCollisionMatrix(self.robot_model.link_names, False)
        self.cworld.add_to_object('wall', Box([0.1, 2.0, 2.0]),
                                  Coordinates(pos=[1.2, 0, 1.0]))
        dist = self.cworld.distance_robot(self.crobot, state, acm)
        # fingers end at x=0.98, the wall starts at x=1.15
        self.assertAlmostEqual(dist, 0.17, delta=0.02)

        req = CollisionRequest(distance=True)
        res = CollisionResult()
        self.cworld.check_robot_collision(req, res, self.crobot, state, acm)
        self.assertFalse(res.collision)
        self.assertAlmostEqual(res.distance, dist)

        self.cworld.clear_objects()
        self.assertEqual(
            self.cworld.distance_robot(self.crobot, state, acm), np.inf)

    def test_invalid_request(self):
        state = RobotState(self.robot_model)
        res = CollisionResult()
        with pytest.raises(InvalidRequestError):
            self.crobot.check_self_collision(
                CollisionRequest(group_name='no_such_group'),
                res, state, self.acm)
        with pytest.raises(InvalidRequestError):
            self.cworld.check_robot_collision(
                CollisionRequest(group_name='no_such_group'),
                res, self.crobot, state, self.acm)
        self.assertFalse(res.collision)
        self.assertEqual(res.contact_count, 0)
        with pytest.raises(InvalidRequestError):
            CollisionRequest(max_contacts=-1)

    def test_not_found(self):
        with pytest.raises(NotFoundError):
            self.crobot.attach_body('no_such_link', 'box',
                                    [Box([0.1, 0.1, 0.1])])
        with pytest.raises(NotFoundError):
            self.crobot.clear_attached_body('r_gripper_palm_link', 'box')
        with pytest.raises(NotFoundError):
            self.cworld.remove_object('box')
        with pytest.raises(KeyError):
            self.cworld.remove_object('box')

    def test_geometry_error_is_atomic(self):
        self.crobot.attach_body('r_gripper_palm_link', 'box',
                                [Box([0.1, 0.1, 0.1])])
        with pytest.raises(GeometryError):
            self.crobot.attach_body('r_gripper_palm_link', 'box',
                                    [Box([0.0, 0.1, 0.1])])
        geometry = self.crobot.link_geometry('r_gripper_palm_link')
        self.assertTrue(geometry.has_attached_body('box'))
        self.assertFalse(geometry.attached_body('box').released)

        self.cworld.add_to_object('box', Box([0.1, 0.1, 0.1]))
        with pytest.raises(GeometryError):
            self.cworld.add_to_object('box', Box([0.1, 0.1, -0.1]))
        self.assertTrue(self.cworld.has_object('box'))
        self.assertFalse(self.cworld.objects.get('box').released)

import unittest

import numpy as np
from numpy import testing
import pytest

from skcollision.collision import CollisionRequest
from skcollision.collision import CollisionResult
from skcollision.collision import Contact
from skcollision.collision import pair_key
from skcollision.exceptions import InvalidRequestError


class TestCollisionTypes(unittest.TestCase):

    def test_request_defaults(self):
        req = CollisionRequest()
        self.assertEqual(req.group_name, 'whole_body')
        self.assertFalse(req.contacts)
        self.assertEqual(req.max_contacts, 1)
        self.assertEqual(req.contacts_per_pair, 1)
        self.assertFalse(req.exhaustive)
        self.assertTrue(CollisionRequest(distance=True).exhaustive)

    def test_request_caps(self):
        self.assertEqual(
            CollisionRequest(max_contacts_per_pair=0).contacts_per_pair, 1)
        with pytest.raises(InvalidRequestError):
            CollisionRequest(max_contacts=-1)
        with pytest.raises(InvalidRequestError):
            CollisionRequest(max_contacts_per_pair=-2)
        with pytest.raises(ValueError):
            CollisionRequest(max_contacts=1.5)
        req = CollisionRequest()
        req.max_contacts = -3
        with pytest.raises(InvalidRequestError):
            req.validate()

    def test_result(self):
        res = CollisionResult()
        self.assertFalse(res.collision)
        self.assertEqual(res.distance, np.inf)
        contact = Contact([1, 2, 3], -0.1, [0, 0, 1], 'a', 'b')
        res.add_contact(('a', 'b'), contact)
        res.add_contact(('a', 'b'), contact)
        self.assertEqual(res.contact_count, 2)
        self.assertEqual(len(res.contacts[('a', 'b')]), 2)
        testing.assert_array_equal(contact.position, [1.0, 2.0, 3.0])
        self.assertEqual(contact.depth, -0.1)

        res.collision = True
        res.clear()
        self.assertFalse(res.collision)
        self.assertEqual(res.contact_count, 0)
        self.assertEqual(res.contacts, {})

    def test_pair_key(self):
        self.assertEqual(pair_key('b_link', 'a_link'), ('a_link', 'b_link'))
        self.assertEqual(pair_key('a_link', 'b_link'), ('a_link', 'b_link'))

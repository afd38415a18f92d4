"""Collision query parameters and results."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from skcollision.exceptions import InvalidRequestError


ROBOT_LINK = 'robot_link'
ROBOT_ATTACHED = 'robot_attached'
WORLD_OBJECT = 'world_object'

WHOLE_BODY = 'whole_body'


def pair_key(name_a, name_b):
    """Return the contact map key of a pair, names sorted."""
    if name_b < name_a:
        return (name_b, name_a)
    return (name_a, name_b)


@dataclass
class CollisionRequest:
    """Parameters of a collision query.

    Parameters
    ----------
    group_name : str or None
        links under consideration. ``'whole_body'`` or `None` selects every
        link unless the robot model defines a group of that name.
    contacts : bool
        compute contacts in addition to the collision flag.
    max_contacts : int
        overall cap on the number of contacts.
    max_contacts_per_pair : int
        cap on the contacts of a single pair. 0 means one.
    verbose : bool
        enumerate every pair, logging each collision at INFO level.
    distance : bool
        compute the minimum signed distance over the checked pairs. This
        makes the enumeration exhaustive.
    """
    group_name: Optional[str] = WHOLE_BODY
    contacts: bool = False
    max_contacts: int = 1
    max_contacts_per_pair: int = 1
    verbose: bool = False
    distance: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise InvalidRequestError on negative caps."""
        for name in ('max_contacts', 'max_contacts_per_pair'):
            value = getattr(self, name)
            if int(value) != value or value < 0:
                raise InvalidRequestError(
                    '{} must be a non negative integer, get {}'
                    .format(name, value))

    @property
    def contacts_per_pair(self):
        """Effective per pair cap."""
        return max(1, int(self.max_contacts_per_pair))

    @property
    def exhaustive(self):
        return self.verbose or self.distance


@dataclass
class Contact:
    """A reported collision point.

    Parameters
    ----------
    position : numpy.ndarray(3,)
        world position of the deepest sample.
    depth : float
        penetration depth, non negative.
    normal : numpy.ndarray(3,)
        unit world vector pushing `body_name_2` out of `body_name_1`.
    """
    position: np.ndarray
    depth: float
    normal: np.ndarray
    body_name_1: str = ''
    body_name_2: str = ''
    body_type_1: str = ROBOT_LINK
    body_type_2: str = ROBOT_LINK

    def __post_init__(self):
        self.position = np.array(self.position, dtype=np.float64)
        self.normal = np.array(self.normal, dtype=np.float64)
        self.depth = float(self.depth)


class CollisionResult(object):
    """Output of a collision query.

    `contacts` maps a pair key (sorted names) to the list of its contacts
    in insertion order. A result is not cleared by the checkers, caps are
    applied relative to what it already holds.
    """

    def __init__(self):
        self.collision = False
        self.contact_count = 0
        self.contacts = {}
        self.distance = np.inf

    def clear(self):
        self.collision = False
        self.contact_count = 0
        self.contacts = {}
        self.distance = np.inf

    def add_contact(self, key, contact):
        self.contacts.setdefault(key, []).append(contact)
        self.contact_count += 1

    def __repr__(self):
        return '<CollisionResult collision={} contact_count={} pairs={}>'\
            .format(self.collision, self.contact_count, len(self.contacts))

"""Pairwise distance queries and capped contact aggregation.

Both checkers reduce to a stream of body pairs which survived pruning.
Each pair is evaluated in both directions: the surface sample of one
body is looked up in the distance field of the other. A pair collides
when the smallest signed distance is not positive.
"""

from collections import namedtuple
from logging import getLogger

import numpy as np

from skcollision.collision.types import Contact
from skcollision.collision.types import pair_key


logger = getLogger(__name__)


BodyRef = namedtuple(
    'BodyRef',
    ['name', 'link_name', 'body_type', 'body', 'pose', 'touch_links'])
BodyRef.__doc__ = """Collision body placed in the world for one query.

`pose` is the world pose of the owner frame.
"""


class PairEvaluation(object):
    """Signed distances of both sample sets of a pair.

    Parameters
    ----------
    distances : numpy.ndarray(n,)
    positions : numpy.ndarray(n, 3)
        world positions of the samples.
    normals : numpy.ndarray(n, 3)
        world unit normals, oriented from the first to the second name of
        the pair key.
    """

    def __init__(self, distances, positions, normals):
        self.distances = distances
        self.positions = positions
        self.normals = normals
        if len(distances) > 0:
            self.min_distance = float(np.min(distances))
        else:
            self.min_distance = np.inf

    @property
    def in_collision(self):
        return self.min_distance <= 0.0

    def colliding_indices(self):
        """Indices of colliding samples, deepest first.

        Ties keep sample order, i.e. the first direction comes first.
        """
        order = np.argsort(self.distances, kind='stable')
        return order[self.distances[order] <= 0.0]


def _query(field_ref, sample_ref):
    points = sample_ref.pose.transform_vector(sample_ref.body.surface_points)
    local = field_ref.pose.inverse_transform_vector(points)
    distances, gradients = field_ref.body.field.signed_distance(local)
    return distances, points, field_ref.pose.rotate_vector(gradients)


def evaluate_pair(ref_a, ref_b):
    """Evaluate samples of `ref_b` in the field of `ref_a` and the converse.

    Returns
    -------
    evaluation : PairEvaluation
    """
    first = pair_key(ref_a.name, ref_b.name)[0]
    d_ab, p_ab, n_ab = _query(ref_a, ref_b)
    d_ba, p_ba, n_ba = _query(ref_b, ref_a)
    # gradients of a field point out of its own body
    if ref_a.name != first:
        n_ab = -n_ab
    if ref_b.name != first:
        n_ba = -n_ba
    return PairEvaluation(np.hstack([d_ab, d_ba]),
                          np.vstack([p_ab, p_ba]),
                          np.vstack([n_ab, n_ba]))


def bounding_gap(ref_a, ref_b):
    """Distance between the bounding spheres of two bodies."""
    center_a, radius_a = ref_a.body.bounding_sphere
    center_b, radius_b = ref_b.body.bounding_sphere
    center_a = ref_a.pose.transform_vector(center_a)
    center_b = ref_b.pose.transform_vector(center_b)
    return np.linalg.norm(center_a - center_b) - radius_a - radius_b


def _record_collision(request, result, ref_a, ref_b, evaluation):
    """Add contacts of a colliding pair and tell whether to stop."""
    result.collision = True
    key = pair_key(ref_a.name, ref_b.name)
    message = 'collision between {} and {} (depth {:.4f})'.format(
        key[0], key[1], -evaluation.min_distance)
    if request.verbose:
        logger.info(message)
    else:
        logger.debug(message)

    if not request.contacts:
        return not request.exhaustive

    per_pair = request.contacts_per_pair - len(result.contacts.get(key, ()))
    remaining = request.max_contacts - result.contact_count
    indices = evaluation.colliding_indices()
    n_contact = max(0, min(per_pair, remaining, len(indices)))
    if ref_a.name == key[0]:
        types = (ref_a.body_type, ref_b.body_type)
    else:
        types = (ref_b.body_type, ref_a.body_type)
    for index in indices[:n_contact]:
        result.add_contact(key, Contact(
            position=evaluation.positions[index],
            depth=abs(evaluation.distances[index]),
            normal=evaluation.normals[index],
            body_name_1=key[0],
            body_name_2=key[1],
            body_type_1=types[0],
            body_type_2=types[1]))

    if result.contact_count >= request.max_contacts:
        return not request.exhaustive
    return False


def check_pairs(request, result, pairs):
    """Run the narrow phase over `pairs` and aggregate into `result`.

    Parameters
    ----------
    request : skcollision.collision.CollisionRequest
    result : skcollision.collision.CollisionResult
    pairs : iterable of (BodyRef, BodyRef)
        pairs which survived pruning, in enumeration order.

    Returns
    -------
    result : skcollision.collision.CollisionResult
    """
    for ref_a, ref_b in pairs:
        if not request.distance:
            margin = ref_a.body.field.resolution + ref_b.body.field.resolution
            if bounding_gap(ref_a, ref_b) > margin:
                continue
        evaluation = evaluate_pair(ref_a, ref_b)
        if request.distance:
            result.distance = min(result.distance, evaluation.min_distance)
        if not evaluation.in_collision:
            continue
        if _record_collision(request, result, ref_a, ref_b, evaluation):
            break
    return result

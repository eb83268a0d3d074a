"""Tests for the utility functions."""

import unittest
from unittest.mock import MagicMock

from outings.errors import ValidationError
from outings.utils import (
    dedupe,
    haversine_distance,
    normalize_member_ids,
)

GATE = (28.123456, 77.123456)
# Meters per degree of latitude on a 6371 km sphere.
METERS_PER_DEGREE = 111194.93


class DistanceTestCase(unittest.TestCase):
    def test_same_point(self):
        self.assertEqual(haversine_distance(*GATE, *GATE), 0)

    def test_one_degree_of_latitude(self):
        distance = haversine_distance(0, 0, 1, 0)
        self.assertAlmostEqual(distance, METERS_PER_DEGREE, delta=1)


class MemberIdTestCase(unittest.TestCase):
    def test_mixed_shapes(self):
        ref = MagicMock()
        ref.id = "carol"
        members = ["alice", {"uid": "bob"}, {"_id": "dave"}, ref, "alice"]
        self.assertEqual(
            normalize_member_ids(members), ["alice", "bob", "dave", "carol"]
        )

    def test_empty(self):
        self.assertEqual(normalize_member_ids(None), [])

    def test_unrecognized_entry(self):
        with self.assertRaises(ValidationError):
            normalize_member_ids([42])

    def test_dedupe_keeps_order(self):
        self.assertEqual(dedupe(["b", "a", "b", "c", "a"]), ["b", "a", "c"])


if __name__ == "__main__":
    unittest.main()

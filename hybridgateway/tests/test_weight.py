"""
Unit tests for endpoint weight distribution.
"""
import unittest

from hybridgateway.weight import BackendWeight, calculate_endpoint_weights, enforce_weight_limits


class WeightTest(unittest.TestCase):

    def test_equal_backends(self):
        weights = calculate_endpoint_weights([
            BackendWeight('a', 1, 2),
            BackendWeight('b', 1, 2),
        ])
        self.assertEqual(weights, {'a': 1, 'b': 1})

    def test_weights_follow_endpoint_counts(self):
        # 50% of traffic over 2 endpoints, 50% over 3
        weights = calculate_endpoint_weights([
            BackendWeight('a', 50, 2),
            BackendWeight('b', 50, 3),
        ])
        self.assertEqual(weights, {'a': 3, 'b': 2})

    def test_uneven_weights(self):
        weights = calculate_endpoint_weights([
            BackendWeight('a', 80, 4),
            BackendWeight('b', 20, 1),
        ])
        self.assertEqual(weights, {'a': 1, 'b': 1})

    def test_zero_weight_and_no_endpoints(self):
        weights = calculate_endpoint_weights([
            BackendWeight('a', 0, 2),
            BackendWeight('b', 1, 0),
            BackendWeight('c', 3, 1),
        ])
        self.assertEqual(weights, {'a': 0, 'b': 0, 'c': 1})
        self.assertEqual(calculate_endpoint_weights([BackendWeight('a', 0, 1)]), {'a': 0})
        self.assertEqual(calculate_endpoint_weights([]), {})

    def test_limit(self):
        weights = enforce_weight_limits({'a': 131070, 'b': 1, 'c': 0}, 65535)
        self.assertEqual(weights['a'], 65535)
        self.assertEqual(weights['b'], 1)
        self.assertEqual(weights['c'], 0)
        self.assertEqual(enforce_weight_limits({'a': 10}), {'a': 10})

"""
Spread backendRef weights over the endpoints behind each backend.

A backend with weight W and E endpoints gives each endpoint W/E of the
traffic. The fractions are scaled to the smallest integers keeping the same
proportions, then capped to the largest weight Kong accepts.
"""
from collections import namedtuple
from functools import reduce
import math

from hybridgateway import settings

BackendWeight = namedtuple('BackendWeight', ['name', 'weight', 'endpoints'])


def lcm(a, b):
    if a == 0 or b == 0:
        return 0
    return a // math.gcd(a, b) * b


def calculate_endpoint_weights(backends):
    """Return a mapping of backend name to per-endpoint weight."""
    fractions = []
    for backend in backends:
        if not backend.weight or not backend.endpoints:
            fractions.append((backend.name, 0, 1))
            continue
        divisor = math.gcd(backend.weight, backend.endpoints)
        fractions.append((backend.name, backend.weight // divisor, backend.endpoints // divisor))

    denominators = [den for _, num, den in fractions if num]
    if not denominators:
        return {name: 0 for name, _, _ in fractions}

    common = reduce(lcm, denominators)
    weights = [(name, num * common // den) for name, num, den in fractions]
    divisor = reduce(math.gcd, [weight for _, weight in weights if weight])
    return enforce_weight_limits({name: weight // divisor for name, weight in weights})


def enforce_weight_limits(weights, limit=None):
    limit = limit or settings.MAX_TARGET_WEIGHT
    highest = max(weights.values(), default=0)
    if highest <= limit:
        return weights

    scale = limit / highest
    return {
        name: max(int(weight * scale), 1) if weight else 0
        for name, weight in weights.items()
    }

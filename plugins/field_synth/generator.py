"""
Random Literals and Constant Leaves

Every random number that ends up in a generated field passes through
here. Values are truncated to 6 decimals at the moment they are drawn, so
the literal printed into the GLSL source and the number used by the
numpy evaluation are the same value.
"""

import math
import numpy as np
from .field_node import FieldNode

LITERAL_DIGITS = 6


class BuildContext:
    """Random source and id counter threaded through every node constructor.

    Owning one context per generation loop keeps reference names unique
    across all the trees that loop builds.
    """

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self._last_id = 0

    @classmethod
    def from_seed(cls, seed):
        return cls(np.random.default_rng(seed))

    def next_id(self):
        self._last_id += 1
        return self._last_id

    def random(self):
        """Uniform float in [0, 1)."""
        return float(self.rng.random())

    def choice(self, options):
        """Uniform pick from a sequence."""
        return options[int(self.rng.integers(len(options)))]


def glsl_type(dimension):
    """Semantic type tag: scalar for 1, vector of that width otherwise."""
    return "float" if dimension == 1 else f"vec{dimension}"


def round_literal(value):
    return round(float(value), LITERAL_DIGITS)


def truncate_literal(value):
    """Drop digits past the sixth decimal; keeps draws from [0, 1) below 1."""
    scale = 10 ** LITERAL_DIGITS
    return math.floor(float(value) * scale) / scale


def random_values(ctx, dimension):
    """Draw ``dimension`` values in [0, 1), already at literal precision."""
    return tuple(truncate_literal(ctx.random()) for _ in range(dimension))


def format_float(value):
    return f"{value:.{LITERAL_DIGITS}f}"


def format_literal(values):
    """GLSL literal for a tuple of values: ``0.5`` or ``vec2(0.5, 0.25)``."""
    if len(values) == 1:
        return format_float(values[0])
    inner = ", ".join(format_float(v) for v in values)
    return f"{glsl_type(len(values))}({inner})"


def literal_array(values):
    """numpy form of a literal: scalar for one value, vector otherwise."""
    if len(values) == 1:
        return np.float64(values[0])
    return np.array(values, dtype=np.float64)


class Constant(FieldNode):
    """Spatially constant field: ignores the point, returns one literal."""

    prefix = "constant"

    def __init__(self, ctx, dimension, values):
        super().__init__(ctx, dimension)
        self.values = tuple(values)

    def body(self):
        return f"return {format_literal(self.values)};"

    def evaluate(self, points):
        shape = np.shape(points)[:-1]
        if self.dimension == 1:
            return np.full(shape, self.values[0], dtype=np.float64)
        return np.broadcast_to(literal_array(self.values), shape + (self.dimension,)).copy()


def random_constant(ctx, dimension):
    """Leaf node holding a ``random_values`` literal sampled now."""
    return Constant(ctx, dimension, random_values(ctx, dimension))

"""
Combinators

Binary nodes blending the outputs of two same-dimension nodes with a
weighting rule. The tree builder picks among the *active* combinators
only; which ones are active is a preset setting.
"""

import numpy as np
from .field_node import FieldNode, expand_weight, mirror
from .generator import format_float, format_literal, literal_array, random_values, round_literal


class Combinator(FieldNode):
    """Base for (dimension, a, b) -> node combiners."""

    def __init__(self, ctx, dimension, a, b):
        for node in (a, b):
            if node.dimension != dimension:
                raise ValueError(
                    f"{type(self).__name__} expects dim {dimension} nodes, got {node.dimension}")
        super().__init__(ctx, dimension, (a, b))
        self.a = a
        self.b = b


class MixN(Combinator):
    """Static per-component convex combination a*m + b*(1-m)."""

    prefix = "mixN"

    def __init__(self, ctx, dimension, a, b):
        super().__init__(ctx, dimension, a, b)
        self.weights = random_values(ctx, dimension)

    def body(self):
        m = format_literal(self.weights)
        return (f"{self.glsl_type} m = {m};\n"
                f"return {self.a.reference}(p) * m + {self.b.reference}(p) * (1.0 - m);")

    def evaluate(self, points):
        m = literal_array(self.weights)
        return self.a.evaluate(points) * m + self.b.evaluate(points) * (1.0 - m)


class MixQuad(Combinator):
    """Spatially varying blend with a soft quadratic cut along a random line.

    v = mirror(dot(p, dir) + offset) - 0.5 lies in [-0.5, 0.5], so
    w = 4 v^2 lies in [0, 1].
    """

    prefix = "mixQuad"

    def __init__(self, ctx, dimension, a, b):
        super().__init__(ctx, dimension, a, b)
        self.direction = tuple(round_literal(v * 4.0 - 2.0) for v in random_values(ctx, 2))
        self.offset = random_values(ctx, 1)[0]

    def body(self):
        return (f"float v = mirror(dot(p, {format_literal(self.direction)}) + "
                f"{format_float(self.offset)}) - 0.5;\n"
                f"float w = 4.0 * v * v;\n"
                f"return {self.a.reference}(p) * w + {self.b.reference}(p) * (1.0 - w);")

    def weight(self, points):
        points = np.asarray(points, dtype=np.float64)
        v = mirror(points @ np.array(self.direction) + self.offset) - 0.5
        return 4.0 * v * v

    def evaluate(self, points):
        w = expand_weight(self.weight(points), self.dimension)
        return self.a.evaluate(points) * w + self.b.evaluate(points) * (1.0 - w)


class Mix1(Combinator):
    """Fixed scalar ratio blend."""

    prefix = "mix1"

    def __init__(self, ctx, dimension, a, b):
        super().__init__(ctx, dimension, a, b)
        self.ratio = random_values(ctx, 1)[0]

    def body(self):
        r = format_float(self.ratio)
        return f"return {self.a.reference}(p) * {r} + {self.b.reference}(p) * (1.0 - {r});"

    def evaluate(self, points):
        return self.a.evaluate(points) * self.ratio + self.b.evaluate(points) * (1.0 - self.ratio)


class MixPower(Combinator):
    """Normalized power blend (a^p1 * b^p2)^(1/(p1+p2)), per component.

    Field values stay within [0, 1], so the bases are never negative.
    """

    prefix = "mixPower"

    def __init__(self, ctx, dimension, a, b):
        super().__init__(ctx, dimension, a, b)
        self.p1, self.p2 = (round_literal(0.5 + v) for v in random_values(ctx, 2))

    def body(self):
        p1, p2 = format_float(self.p1), format_float(self.p2)
        return (f"return pow(pow({self.a.reference}(p), {self.glsl_type}({p1})) * "
                f"pow({self.b.reference}(p), {self.glsl_type}({p2})), "
                f"{self.glsl_type}(1.0 / ({p1} + {p2})));")

    def evaluate(self, points):
        a = np.clip(self.a.evaluate(points), 0.0, None)
        b = np.clip(self.b.evaluate(points), 0.0, None)
        return np.power(np.power(a, self.p1) * np.power(b, self.p2), 1.0 / (self.p1 + self.p2))


# Registry keyed by the names used in presets
COMBINATORS = {
    "mixN": MixN,
    "mixQuad": MixQuad,
    "mixPower": MixPower,
    "mix1": Mix1,
}

DEFAULT_COMBINATORS = ("mixN", "mixQuad")

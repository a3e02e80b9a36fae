"""
Structural Composers

Displace warps space: the value node is sampled at the point produced
by a 2D point node. Blend alpha-blends two value nodes through a scalar
alpha field, so the mix ratio varies from point to point.
"""

from .field_node import FieldNode, expand_weight


class Displace(FieldNode):

    prefix = "displace"

    def __init__(self, ctx, dimension, value, point):
        if value.dimension != dimension or point.dimension != 2:
            raise ValueError(
                f"Displace needs a dim {dimension} value and a dim 2 point node, "
                f"got {value.dimension} and {point.dimension}")
        super().__init__(ctx, dimension, (value, point))
        self.value = value
        self.point = point

    def body(self):
        return f"return {self.value.reference}({self.point.reference}(p));"

    def evaluate(self, points):
        return self.value.evaluate(self.point.evaluate(points))


class Blend(FieldNode):

    prefix = "blend"

    def __init__(self, ctx, dimension, a, b, alpha):
        if a.dimension != dimension or b.dimension != dimension or alpha.dimension != 1:
            raise ValueError(
                f"Blend needs two dim {dimension} values and a dim 1 alpha node")
        super().__init__(ctx, dimension, (a, b, alpha))
        self.a = a
        self.b = b
        self.alpha = alpha

    def body(self):
        return (f"return mix({self.a.reference}(p), {self.b.reference}(p), "
                f"{self.alpha.reference}(p));")

    def evaluate(self, points):
        alpha = expand_weight(self.alpha.evaluate(points), self.dimension)
        return self.a.evaluate(points) * (1.0 - alpha) + self.b.evaluate(points) * alpha

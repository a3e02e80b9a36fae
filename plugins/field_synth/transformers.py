"""
Point Transformers

Unary wrappers that remap the input point and delegate to the wrapped
node. The remapped point is always passed through the mirror fold so
that long chains of shifts/scales/rotations keep sampling inside the
unit square.
"""

import math
from abc import abstractmethod
import numpy as np
from .field_node import FieldNode, mirror
from .generator import format_float, format_literal, random_values, round_literal, truncate_literal


class Transformer(FieldNode):
    """Base for (dimension, node) -> node wrappers."""

    def __init__(self, ctx, dimension, node):
        if node.dimension != dimension:
            raise ValueError(
                f"{type(self).__name__} expects a dim {dimension} node, got {node.dimension}")
        super().__init__(ctx, dimension, (node,))
        self.node = node

    @abstractmethod
    def remap(self, points):
        """Unfolded point mapping, numpy side."""

    def evaluate(self, points):
        return self.node.evaluate(mirror(self.remap(np.asarray(points, dtype=np.float64))))


class Shift(Transformer):
    """Translate by a random fixed offset."""

    prefix = "shift"

    def __init__(self, ctx, dimension, node):
        super().__init__(ctx, dimension, node)
        self.offset = random_values(ctx, 2)

    def body(self):
        return f"return {self.node.reference}(mirror(p + {format_literal(self.offset)}));"

    def remap(self, points):
        return points + np.array(self.offset)


class Rotate(Transformer):
    """Rotate around the origin by a random angle in [0, pi)."""

    prefix = "rotate"

    def __init__(self, ctx, dimension, node):
        super().__init__(ctx, dimension, node)
        self.angle = truncate_literal(ctx.random() * math.pi)
        self.cos = round_literal(math.cos(self.angle))
        self.sin = round_literal(math.sin(self.angle))

    def body(self):
        c, s = format_float(self.cos), format_float(self.sin)
        # mat2 is column major: columns (c, s) and (-s, c)
        return f"return {self.node.reference}(mirror(mat2({c}, {s}, -{s}, {c}) * p));"

    def remap(self, points):
        x, y = points[..., 0], points[..., 1]
        return np.stack([self.cos * x - self.sin * y,
                         self.sin * x + self.cos * y], axis=-1)


class Scale(Transformer):
    """Zoom by 2; the fold tiles the quadrants."""

    prefix = "scale"

    def body(self):
        return f"return {self.node.reference}(mirror(p * 2.0));"

    def remap(self, points):
        return points * 2.0


TRANSFORMERS = (Shift, Rotate, Scale)

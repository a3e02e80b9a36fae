"""
Abstract Base Class for Field Nodes

A field node is a named, pure function of a 2D point returning a scalar
or a 2/3-vector. Every node (constants, transformers, combinators,
composers) implements this interface so the builder and the renderers
can treat them interchangeably.

Each node knows two renditions of itself:
- GLSL source text (``definition``), self-contained: the definitions of
  every child are emitted before the node's own function
- a numpy evaluation (``evaluate``) of the very same function, used by
  the CPU renderer and the tests
"""

from abc import ABC, abstractmethod
import numpy as np


def mirror(v):
    """Mirror-fold: triangle wave of period 2 mapping any real into [0, 1].

    mod(|v|, 2) lands in [0, 2); values past 1 are reflected back.
    Works on python floats and numpy arrays alike.
    """
    c = np.mod(np.abs(v), 2.0)
    return np.where(c <= 1.0, c, 2.0 - c)


def expand_weight(weight, dimension):
    """Broadcast a per-point scalar weight against a (..., d) value."""
    weight = np.asarray(weight)
    if dimension == 1:
        return weight
    return weight[..., None]


class FieldNode(ABC):
    """Base class for field nodes."""

    prefix = ""   # e.g. "constant", "shift"

    def __init__(self, ctx, dimension, children=()):
        if dimension not in (1, 2, 3):
            raise ValueError(f"Unsupported field dimension: {dimension}")
        self.id = ctx.next_id()
        self.dimension = dimension
        self.reference = f"{self.prefix}_{self.id}"
        self.children = tuple(children)
        self._definition = None

    @abstractmethod
    def body(self):
        """Return the GLSL statements of the function body (point is ``p``)."""

    @abstractmethod
    def evaluate(self, points):
        """Evaluate the field on an array of points of shape (..., 2)."""

    @property
    def glsl_type(self):
        return "float" if self.dimension == 1 else f"vec{self.dimension}"

    @property
    def signature(self):
        return f"{self.glsl_type} {self.reference}(vec2 p)"

    @property
    def definition(self):
        """Full GLSL source for this node, dependencies first.

        Nodes are immutable once built, so the text is assembled once.
        """
        if self._definition is None:
            parts = [child.definition for child in self.children]
            lines = "\n".join("    " + line for line in self.body().splitlines())
            parts.append(f"{self.signature} {{\n{lines}\n}}\n")
            self._definition = "".join(parts)
        return self._definition

    def walk(self):
        """Yield this node and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def count(self):
        return sum(1 for _ in self.walk())

    def depth(self):
        if not self.children:
            return 1
        return 1 + max(child.depth() for child in self.children)

    def __repr__(self):
        return f"<{type(self).__name__} {self.reference} dim={self.dimension}>"

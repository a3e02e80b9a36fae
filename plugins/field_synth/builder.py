"""
Tree Builder

Recursive, budget-driven grammar producing one finished field node per
call. The complexity budget halves on structural and combinator
productions and drops by one on transformer productions, which biases
trees toward long transform chains wrapped around shallow cores.
"""

import logging
from .combinators import COMBINATORS, DEFAULT_COMBINATORS
from .composers import Blend, Displace
from .generator import BuildContext, random_constant
from .transformers import TRANSFORMERS

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Stochastic field tree grammar.

    Band thresholds are cumulative: r < structural_band picks a
    structural composer, r < structural_band + transform_band a
    transformer, anything else a combinator. Each band is additionally
    gated by a minimum complexity.
    """

    def __init__(self, ctx=None, combinators=DEFAULT_COMBINATORS,
                 structural_band=0.4, structural_min=10,
                 transform_band=0.3, transform_min=3):
        """
        Args:
            ctx: BuildContext (random source + id counter); a fresh
                unseeded one is created when omitted
            combinators: Names of the active combinators (see COMBINATORS)
            structural_band: Probability mass of Displace/Blend
            structural_min: Budget above which structural composers apply
            transform_band: Probability mass of Shift/Rotate/Scale
            transform_min: Budget above which transformers apply
        """
        unknown = [name for name in combinators if name not in COMBINATORS]
        if unknown:
            raise ValueError(f"Unknown combinators: {', '.join(unknown)}")
        if not combinators:
            raise ValueError("At least one combinator must be active")

        self.ctx = ctx if ctx is not None else BuildContext()
        self.combinators = tuple(COMBINATORS[name] for name in combinators)
        self.structural_band = structural_band
        self.structural_min = structural_min
        self.transform_band = transform_band
        self.transform_min = transform_min

    @classmethod
    def from_preset(cls, preset, ctx=None):
        return cls(
            ctx,
            combinators=preset.get("combinators", DEFAULT_COMBINATORS),
            structural_band=preset.get("structural_band", 0.4),
            structural_min=preset.get("structural_min", 10),
            transform_band=preset.get("transform_band", 0.3),
            transform_min=preset.get("transform_min", 3),
        )

    def random_texture(self, dimension, complexity):
        """Build a field tree of the given output dimension."""
        tree = self._build(dimension, complexity)
        logger.debug("Built %s: %d nodes, depth %d", tree.reference, tree.count(), tree.depth())
        return tree

    def _build(self, dimension, complexity):
        ctx = self.ctx
        if complexity < 1:
            return random_constant(ctx, dimension)

        r = ctx.random()
        if r < self.structural_band and complexity > self.structural_min:
            half = complexity / 2
            if ctx.random() < 0.5:
                value = self._build(dimension, half)
                point = self._build(2, half)
                return Displace(ctx, dimension, value, point)
            a = self._build(dimension, half)
            b = self._build(dimension, half)
            alpha = self._build(1, half)
            return Blend(ctx, dimension, a, b, alpha)

        if r < self.structural_band + self.transform_band and complexity > self.transform_min:
            transformer = ctx.choice(TRANSFORMERS)
            return transformer(ctx, dimension, self._build(dimension, complexity - 1))

        half = complexity / 2
        a = self._build(dimension, half)
        b = self._build(dimension, half)
        combinator = ctx.choice(self.combinators)
        return combinator(ctx, dimension, a, b)


# Shared by helper calls that pass no context, so ids keep counting up
_default_ctx = None


def default_context():
    global _default_ctx
    if _default_ctx is None:
        _default_ctx = BuildContext()
    return _default_ctx


def random_texture(dimension, complexity, ctx=None, **options):
    """One-shot helper: ``TreeBuilder(ctx, **options).random_texture(...)``.

    Without ``ctx`` every call draws from the process-wide default
    context, so trees from separate calls never share reference names.
    """
    if ctx is None:
        ctx = default_context()
    return TreeBuilder(ctx, **options).random_texture(dimension, complexity)

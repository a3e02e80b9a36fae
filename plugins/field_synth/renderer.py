"""
Renderer Collaborators

The generation loop talks to a renderer through three calls: ``load`` a
ShaderProgram, ``draw`` one frame with FrameUniforms, ``release`` the
loaded program. A GPU backend compiles the GLSL texts; the numpy
renderer here validates the texts with the dependency-extraction pass
and evaluates the embedded field trees on the CPU instead.
"""

import logging
from abc import ABC, abstractmethod
import numpy as np
from scipy.ndimage import zoom

from .field_node import mirror
from .glsl import (
    SEED_TINT, DefinitionAssemblyError, SeedCursor, check_source, seed_ring_count,
    seed_ring_frequency,
)

logger = logging.getLogger(__name__)


class Renderer(ABC):
    """Base class for render backends."""

    def __init__(self, width=512, height=512):
        self.width = width
        self.height = height

    def resize(self, width, height):
        self.width = max(1, int(width))
        self.height = max(1, int(height))

    @property
    def ratio(self):
        return self.width / self.height

    @property
    def pixel_size(self):
        """Size of one device pixel in field units (antialiasing scale)."""
        return 1.0 / (min(self.width, self.height) * 0.75)

    @abstractmethod
    def load(self, program):
        """Compile/bind a ShaderProgram. Raise DefinitionAssemblyError on failure."""

    @abstractmethod
    def draw(self, uniforms):
        """Render one frame with the given FrameUniforms."""

    @abstractmethod
    def release(self):
        """Drop the loaded program and anything compiled from it."""


def vertex_points(width, height, ratio):
    """numpy rendition of the vertex stage: pixel centers -> v_point."""
    xs = (np.arange(width, dtype=np.float64) + 0.5) / width * 2.0 - 1.0
    ys = 1.0 - (np.arange(height, dtype=np.float64) + 0.5) / height * 2.0
    X, Y = np.meshgrid(xs, ys)
    if ratio > 1.0:
        X = X * ratio
    else:
        Y = Y / ratio
    return np.stack([X, Y], axis=-1) * 0.5 + 0.5


def seed_layer(points, seed):
    """numpy rendition of glsl.seed_layer_source, reading seeds in the same order."""
    seed = np.asarray(seed, dtype=np.float64)
    cursor = SeedCursor(len(seed))
    rings = seed_ring_count(len(seed))
    total = 0.0
    for k in range(rings):
        scale = seed[cursor.take(3)]
        center = seed[cursor.take(2)] * 2.0 - 1.0
        phase = seed[cursor.take(3)]
        distance = np.linalg.norm(points - center, axis=-1)[..., None]
        total = total + mirror(scale * distance * seed_ring_frequency(k) + phase)
    return total / rings


def to_color(values, dimension):
    """Same promotion as glsl.color_expression."""
    if dimension == 1:
        return np.repeat(values[..., None], 3, axis=-1)
    if dimension == 2:
        return np.concatenate([values, np.full(values.shape[:-1] + (1,), 0.5)], axis=-1)
    return values


class NumpyRenderer(Renderer):
    """CPU reference renderer.

    Fields are evaluated on a grid ``factor`` times coarser than the
    frame and bilinearly upsampled, matching the GPU output up to
    interpolation.
    """

    def __init__(self, width=512, height=512, factor=4):
        super().__init__(width, height)
        self.factor = max(1, int(factor))
        self.program = None
        self.frame = None
        self.frames_drawn = 0
        self._cache_key = None
        self._cache = None
        self._points = None

    def load(self, program):
        if self.program is not None:
            raise RuntimeError("Previous program must be released before loading another")
        try:
            check_source(program.vertex_source + "\n" + program.fragment_source)
        except DefinitionAssemblyError:
            logger.error("Shader validation failed for %s", ", ".join(program.entry_points))
            raise
        self.program = program
        self._cache_key = None
        self._cache = None

    def release(self):
        self.program = None
        self._cache_key = None
        self._cache = None

    def _evaluate_fields(self, ratio):
        """Both generations on the coarse grid; cached per program and size."""
        h = max(1, self.height // self.factor)
        w = max(1, self.width // self.factor)
        key = (w, h, ratio)
        if key != self._cache_key:
            points = vertex_points(w, h, ratio)
            prev = self.program.previous
            cur = self.program.current
            self._cache = (to_color(prev.evaluate(points), prev.dimension),
                           to_color(cur.evaluate(points), cur.dimension))
            self._cache_key = key
            self._points = points
        return self._cache

    def draw(self, uniforms):
        if self.program is None:
            raise RuntimeError("No program loaded")
        prev, cur = self._evaluate_fields(uniforms.ratio)
        color = prev * (1.0 - uniforms.fade) + cur * uniforms.fade
        if uniforms.seed is not None and len(uniforms.seed):
            layer = seed_layer(self._points, uniforms.seed)
            color = color * ((1.0 - SEED_TINT) + SEED_TINT * layer)

        if self.factor > 1:
            h, w = color.shape[:2]
            color = zoom(color, (self.height / h, self.width / w, 1), order=1)
            color = color[:self.height, :self.width]
        self.frame = (np.clip(color, 0.0, 1.0) * 255).astype(np.uint8)
        self.frames_drawn += 1
        return self.frame

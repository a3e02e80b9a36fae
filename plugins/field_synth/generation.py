"""
Generation Loop

Alternates "build a new field tree" with "run a stage cross-fading from
the previous tree to the new one", forever. The loop is a state machine
advanced by explicit frame ticks (``tick``); ``run`` drives it from an
asyncio frame pump until stopped.

Ownership: the loop holds at most two generations (previous, current).
When a stage is exhausted the renderer program embedding both is
released before the next program is loaded, and the previous tree is
dropped.
"""

import asyncio
import logging
import time
from collections import namedtuple
import numpy as np

from .builder import TreeBuilder
from .glsl import ShaderProgram
from .stage import STAGE_DURATION, SWITCH_TIME, Stage, easing

logger = logging.getLogger(__name__)

SEED_COUNT = 64

FrameUniforms = namedtuple("FrameUniforms", ["ratio", "pixel_size", "time", "fade", "seed"])


def random_seed(rng, count=SEED_COUNT):
    """Seed vector of ``count`` uniform values in [0, 1)."""
    return rng.random(count)


def mix_seeds(a, b, v):
    """Linear interpolation a*(1-v) + b*v."""
    return np.asarray(a) * (1.0 - v) + np.asarray(b) * v


class GenerationLoop:

    def __init__(self, renderer, builder=None, dimension=3, complexity=20,
                 stage_duration=STAGE_DURATION, easing_switch=SWITCH_TIME, seed_count=0):
        """
        Args:
            renderer: Renderer collaborator (load/draw/release)
            builder: TreeBuilder; its BuildContext is shared by every
                generation so reference names never collide
            dimension: Output dimension of the trees (3 for color)
            complexity: Complexity budget per tree
            stage_duration: Seconds per cross-fade stage
            easing_switch: Progress at which the eased fade reaches 1
            seed_count: Length of the interpolated seed array (0 = none)
        """
        self.renderer = renderer
        self.builder = builder if builder is not None else TreeBuilder()
        self.dimension = dimension
        self.complexity = complexity
        self.stage_duration = stage_duration
        self.easing_switch = easing_switch
        self.seed_count = seed_count

        self.previous = None
        self.current = None
        self.program = None
        self.stage = None
        self.seed_from = None
        self.seed_to = None
        self.uniforms = None

        self.generation = 0
        self.start = None
        self.running = True
        self._pump = None

    @classmethod
    def from_preset(cls, renderer, preset, ctx=None):
        return cls(
            renderer,
            builder=TreeBuilder.from_preset(preset, ctx),
            dimension=preset.get("dimension", 3),
            complexity=preset.get("complexity", 20),
            stage_duration=preset.get("stage_duration", STAGE_DURATION),
            easing_switch=preset.get("easing_switch", SWITCH_TIME),
            seed_count=preset.get("seed_count", 0),
        )

    @property
    def live_generations(self):
        return sum(1 for tree in (self.previous, self.current) if tree is not None)

    def _build(self):
        return self.builder.random_texture(self.dimension, self.complexity)

    def _begin(self, timestamp):
        """Build the next generation and load the program fading into it.

        State is only assigned once the trees are complete and the
        renderer accepted the program.
        """
        previous = self.current if self.current is not None else self._build()
        current = self._build()
        program = ShaderProgram(previous, current, self.seed_count)
        self.renderer.load(program)

        self.previous = previous
        self.current = current
        self.program = program
        self.stage = Stage(timestamp, self.stage_duration)
        if self.seed_count:
            rng = self.builder.ctx.rng
            self.seed_from = self.seed_to if self.seed_to is not None else random_seed(rng, self.seed_count)
            self.seed_to = random_seed(rng, self.seed_count)
        self.generation += 1
        logger.info("Generation %d: %s -> %s (%d nodes)", self.generation,
                    previous.reference, current.reference, current.count())

    def _retire(self):
        """Release the exhausted stage's program and the faded-out tree."""
        if self.program is not None:
            self.renderer.release()
            logger.debug("Released program %s", ", ".join(self.program.entry_points))
        self.program = None
        self.previous = None
        self.stage = None

    def tick(self, timestamp):
        """Advance by one frame. Returns the FrameUniforms drawn, or None if stopped."""
        if not self.running:
            return None
        if self.start is None:
            self.start = timestamp
        if self.stage is None:
            self._begin(timestamp)

        step = self.stage.tick(timestamp)
        if step.exhausted:
            self._retire()
            self._begin(timestamp)
            step = self.stage.tick(timestamp)

        fade = easing(step.progress, self.easing_switch)
        seed = None
        if self.seed_count:
            seed = mix_seeds(self.seed_from, self.seed_to, fade)
        self.uniforms = FrameUniforms(
            ratio=self.renderer.ratio,
            pixel_size=self.renderer.pixel_size,
            time=timestamp - self.start,
            fade=fade,
            seed=seed,
        )
        self.renderer.draw(self.uniforms)
        return self.uniforms

    async def run(self, pump):
        """Tick once per frame delivered by ``pump`` until stopped or the pump closes."""
        self._pump = pump
        try:
            while self.running:
                timestamp = await pump.next_frame()
                if timestamp is None or not self.running:
                    break
                self.tick(timestamp)
        finally:
            self._pump = None
            self.close()

    def stop(self):
        """Stop regenerating; interrupts a pending frame wait in ``run``."""
        self.running = False
        if self._pump is not None:
            self._pump.close()

    def close(self):
        """Stop and release everything still live."""
        self.running = False
        if self.program is not None:
            self.renderer.release()
        self.program = None
        self.previous = None
        self.current = None
        self.stage = None


class IntervalFramePump:
    """asyncio frame pump delivering a timestamp every 1/fps seconds.

    ``close`` (from the event loop thread) wakes a pending wait, which
    then returns None.
    """

    def __init__(self, fps=60, clock=time.monotonic):
        self.interval = 1.0 / fps
        self.clock = clock
        self._closed = asyncio.Event()

    @property
    def closed(self):
        return self._closed.is_set()

    async def next_frame(self):
        if self.closed:
            return None
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            return self.clock()
        return None

    def close(self):
        self._closed.set()

"""
Interactive Pygame Viewer for Field Synthesis

Acts as the frame pump: every display frame it ticks the generation
loop with a timestamp and blits the numpy renderer's frame.

Controls:
  SPACE       Pause / Resume
  S           Save screenshot
  H           Toggle HUD overlay
  D           Dump current shader sources to stdout
  Q / ESC     Quit
"""

import os
import time
import pygame

from .generation import GenerationLoop
from .generator import BuildContext
from .presets import get_preset
from .renderer import NumpyRenderer


class Viewer:
    def __init__(self, width=900, height=900, preset="classic", seed=None, factor=4):
        self.width = width
        self.height = height
        self.preset_key = preset
        self.preset = get_preset(preset)
        if self.preset is None:
            raise ValueError(f"Unknown preset: {preset}")

        self.renderer = NumpyRenderer(width, height, factor=factor)
        self.loop = GenerationLoop.from_preset(
            self.renderer, self.preset, BuildContext.from_seed(seed))

        self.running = True
        self.paused = False
        self.show_hud = True
        # Only advances while not paused, so stages do not jump on resume
        self.clock_time = 0.0

    def _draw_hud(self, screen, fps):
        uniforms = self.loop.uniforms
        fade = uniforms.fade if uniforms else 0.0
        lines = [
            f"{self.preset['name']}  gen {self.loop.generation}",
            f"fade {fade:.2f}  fps {fps:.0f}",
        ]
        if self.loop.current is not None:
            lines.append(f"{self.loop.current.reference}  {self.loop.current.count()} nodes")
        if self.paused:
            lines.append("PAUSED")
        y = 8
        for line in lines:
            text = self.hud_font.render(line, True, (230, 230, 230))
            screen.blit(text, (10, y))
            y += 16

    def _save_screenshot(self, screen):
        screenshots_dir = os.path.join(os.getcwd(), "screenshots")
        os.makedirs(screenshots_dir, exist_ok=True)
        path = os.path.join(screenshots_dir, f"field_{self.preset_key}_{self.loop.generation}.png")
        pygame.image.save(screen, path)
        print(f"Saved screenshot: {path}")

    def _dump_sources(self):
        program = self.loop.program
        if program is None:
            return
        print(program.vertex_source)
        print(program.fragment_source)

    def _handle_keydown(self, event, screen):
        if event.key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False
        elif event.key == pygame.K_SPACE:
            self.paused = not self.paused
        elif event.key == pygame.K_s:
            self._save_screenshot(screen)
        elif event.key == pygame.K_h:
            self.show_hud = not self.show_hud
        elif event.key == pygame.K_d:
            self._dump_sources()

    def run(self):
        """Main viewer loop."""
        pygame.init()

        screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        pygame.display.set_caption("Field Synthesis")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        last_time = time.time()

        try:
            while self.running:
                now = time.time()
                dt = min(now - last_time, 0.1)  # cap dt to avoid jumps
                last_time = now

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    elif event.type == pygame.KEYDOWN:
                        self._handle_keydown(event, screen)
                    elif event.type == pygame.VIDEORESIZE:
                        self.width, self.height = event.w, event.h
                        self.renderer.resize(event.w, event.h)

                if not self.paused:
                    self.clock_time += dt
                    self.loop.tick(self.clock_time)

                frame = self.renderer.frame
                if frame is not None:
                    surface = pygame.surfarray.make_surface(frame.swapaxes(0, 1))
                    if surface.get_size() != screen.get_size():
                        surface = pygame.transform.smoothscale(surface, screen.get_size())
                    screen.blit(surface, (0, 0))

                if self.show_hud:
                    self._draw_hud(screen, clock.get_fps())

                pygame.display.flip()
                clock.tick(60)
        finally:
            self.loop.close()
            pygame.quit()

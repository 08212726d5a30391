#!/usr/bin/env python3
from os import environ

environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Dict, Optional, Sequence, Tuple, Type, TypeVar

import numpy as np
import pygame
from numpy.typing import NDArray
from returns.result import Failure, Result, Success
from rich.traceback import install

from __version__ import __version_string__ as __version__
from chip8.display import DISPLAY_HEIGHT, DISPLAY_WIDTH
from chip8.emulator import Emulator, StepState
from chip8.exception import Chip8Error
from chip8.logger import console, setup_logging
from chip8.logger import log as _log
from chip8.rom import Rom
from resources import log_path
from util.config import Config, load_config
from util.timer import Cadence

E = TypeVar("E", bound=BaseException)


def _extract_exc_info(e: E) -> Tuple[Type[E], E, Optional[TracebackType]]:
    return (type(e), e, e.__traceback__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chip8", description=f"CHIP-8 emulator {__version__}")
    parser.add_argument("rom", type=Path, help="path to a CHIP-8 program image")
    parser.add_argument("--legacy", action="store_true", default=None, help="original COSMAC VIP instruction semantics")
    parser.add_argument("--modern", dest="legacy", action="store_false", help="CHIP-48 instruction semantics")
    parser.add_argument("--ips", type=int, help="instructions per second")
    parser.add_argument("--scale", type=int, help="window pixels per CHIP-8 pixel")
    parser.add_argument("--seed", type=int, help="seed for the CXNN random source")
    parser.add_argument("--debug", action="store_true", help="debug logging and instruction trace")
    return parser.parse_args(argv)


def build_keymap(bindings: Dict[str, str]) -> Dict[int, int]:
    """pygame key code -> CHIP-8 hex key."""
    keymap: Dict[int, int] = {}
    for hex_key, key_name in bindings.items():
        try:
            keymap[pygame.key.key_code(key_name)] = int(hex_key, 16)
        except ValueError:
            _log.warning(f"Unknown key name {key_name!r} for CHIP-8 key {hex_key}")
    return keymap


def frame_to_rgb(frame: NDArray[np.bool_], on: Sequence[int], off: Sequence[int]) -> NDArray[np.uint8]:
    """Convert the [y, x] bitmap into the [x, y, rgb] layout pygame.surfarray expects."""
    lit = frame.T[..., np.newaxis]
    return np.where(lit, np.asarray(on, dtype=np.uint8), np.asarray(off, dtype=np.uint8)).astype(np.uint8)


def render(screen: pygame.Surface, emulator: Emulator, cfg: Config) -> None:
    rgb = frame_to_rgb(emulator.display.frame, cfg["colors"]["on"], cfg["colors"]["off"])
    surf = pygame.surfarray.make_surface(rgb)
    screen.blit(pygame.transform.scale(surf, screen.get_size()), (0, 0))
    pygame.display.flip()
    emulator.display.clear_dirty()


@dataclass
class Session:
    """Front-end state that outlives a single emulator step."""

    paused: bool = False
    exit_code: int = 0

    def toggle_pause(self) -> None:
        self.paused = not self.paused
        _log.info("Paused" if self.paused else "Resumed")

    def halt(self) -> None:
        self.exit_code = 2
        self.paused = True

    def reset(self, emulator: Emulator) -> None:
        _log.info("Resetting emulator...")
        emulator.Reset()
        self.exit_code = 0
        self.paused = False


def run_steps(emulator: Emulator, count: int) -> Result[StepState, Chip8Error]:
    """Run up to `count` instructions; stop early on a key wait or a halt."""
    result: Result[StepState, Chip8Error] = Success(StepState.Advanced)
    for _ in range(count):
        result = emulator.step()
        if isinstance(result, Failure) or result.unwrap() is StepState.Blocked:
            break
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(args.debug, log_path)
    install(console=console)
    _log.info(f"Starting CHIP-8 emulator {__version__}")

    general = cfg["general"]
    legacy_mode: bool = general["legacy_mode"] if args.legacy is None else args.legacy
    ips: int = args.ips or general["ips"]
    scale: int = args.scale or general["scale"]
    seed: Optional[int] = args.seed if args.seed is not None else (None if general["seed"] < 0 else general["seed"])

    result = Rom.from_file(args.rom)
    if isinstance(result, Failure):
        _log.error(result.failure())
        return 1
    rom: Rom = result.unwrap()

    emulator = Emulator(legacy_mode=legacy_mode, seed=seed)
    emulator.debug.Logging = args.debug
    try:
        emulator.Load(rom)
    except Chip8Error as e:
        _log.error(f"Emulator error: {e}", exc_info=_extract_exc_info(e))
        return 1

    @emulator.on("tone_off")
    def _() -> None:
        _log.debug("Sound timer expired")

    @emulator.on("halted")
    def _(error: Chip8Error) -> None:
        if emulator.debug.Logging:
            for line in emulator.tracelog:
                _log.debug(line)

    _log.info(f"Starting pygame community edition {pygame.__version__}")
    pygame.init()
    screen = pygame.display.set_mode((DISPLAY_WIDTH * scale, DISPLAY_HEIGHT * scale))
    keymap = build_keymap(cfg["keyboard"])

    cpu = Cadence(ips, max_burst=max(1, ips // 10))
    timers = Cadence(general["timer_hz"], max_burst=max(1, general["timer_hz"] // 10))
    clock = pygame.time.Clock()
    cpu.start()
    timers.start()

    session = Session()
    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in keymap:
                    emulator.Input(keymap[event.key], True)
                elif event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_p:
                    session.toggle_pause()
                elif event.key == pygame.K_F5:
                    session.reset(emulator)
            elif event.type == pygame.KEYUP:
                if event.key in keymap:
                    emulator.Input(keymap[event.key], False)

        if not session.paused and not emulator.halted:
            for _ in range(timers.due()):
                emulator.tick_timers()

            step = run_steps(emulator, cpu.due())
            if isinstance(step, Failure):
                console.print(f"[bold red]Emulation halted:[/bold red] {step.failure()}")
                session.halt()
        else:
            # keep the cadences from banking time while nothing runs
            cpu.due()
            timers.due()

        if emulator.display.dirty:
            render(screen, emulator, cfg)

        title = f"CHIP-8 - {rom.name}"
        if emulator.halted:
            title += " [HALTED]"
        elif session.paused:
            title += " [PAUSED]"
        pygame.display.set_caption(title)

        clock.tick(60)

    pygame.quit()
    console.print(f"\n[bold cyan]Emulator closed.[/bold cyan] Ran [green]{emulator.cycles}[/green] instructions.")
    return session.exit_code


if __name__ == "__main__":
    sys.exit(main())

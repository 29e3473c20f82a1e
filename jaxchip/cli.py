"""Headless command line runner.

Examples:
    python -m jaxchip "Brix [Andreas Gustafsson, 1990].ch8" --frames 600
    python -m jaxchip game.ch8 --preset chip8 --invalid skip
    python -m jaxchip game.ch8 --disassemble
"""

import argparse
import sys

import numpy as np
from tqdm import tqdm

from jaxchip.config import from_preset, INVALID_INSTRUCTION_POLICIES
from jaxchip.constants import DEFAULT_CYCLES_PER_FRAME, PROGRAM_START, TIMER_FREQUENCY
from jaxchip.decode import disassemble_rom
from jaxchip.emulator import read_rom
from jaxchip.errors import Chip8Error
from jaxchip.logging import ConsoleLogger, format_registers
from jaxchip.machine import Chip8
from jaxchip.quirks import PRESETS, DEFAULT_PRESET, get_quirks


def render_text(display: np.ndarray, on: str = "#", off: str = ".") -> str:
    """Render a ``[x, y]`` indexed display as rows of text."""
    return "\n".join("".join(on if pixel else off for pixel in row) for row in display.T)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jaxchip",
        description="Run a CHIP-8 ROM headless and print the final screen",
    )
    parser.add_argument("rom", type=str, help="Path to the ROM file")
    parser.add_argument(
        "--preset",
        type=str,
        default=DEFAULT_PRESET,
        choices=sorted(PRESETS),
        help=f"Quirk preset (default: {DEFAULT_PRESET})",
    )
    parser.add_argument(
        "--cycles-per-frame",
        type=int,
        default=DEFAULT_CYCLES_PER_FRAME,
        help=f"Instructions per 60 Hz frame (default: {DEFAULT_CYCLES_PER_FRAME})",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=TIMER_FREQUENCY * 10,
        help=f"Number of frames to run (default: {TIMER_FREQUENCY * 10})",
    )
    parser.add_argument(
        "--invalid",
        type=str,
        default="halt",
        choices=INVALID_INSTRUCTION_POLICIES,
        help="What to do on an invalid instruction (default: halt)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        help="Print a disassembly listing instead of running the ROM",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = ConsoleLogger(log_level=args.log_level, stream=sys.stderr)

    try:
        rom = read_rom(args.rom)
    except OSError as e:
        logger.error(f"Cannot read ROM '{args.rom}': {e}")
        return 1

    if args.disassemble:
        for address, word, text in disassemble_rom(rom, PROGRAM_START, get_quirks(args.preset)):
            print(f"{address:03X}: {word:04X}  {text}")
        return 0

    try:
        config = from_preset(
            args.preset,
            cycles_per_frame=args.cycles_per_frame,
            invalid_instruction=args.invalid,
        )
    except ValueError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Preset '{args.preset}', {args.cycles_per_frame} cycles per frame")
    machine = Chip8(config, seed=args.seed, logger=logger)

    status = 0
    try:
        machine.load_program(rom)
        for _ in tqdm(range(args.frames), desc="Frames", unit="frame", disable=args.no_progress):
            machine.run_frame()
    except Chip8Error as e:
        logger.error(str(e))
        status = 1

    print(render_text(machine.get_display_snapshot()))
    print(format_registers(machine.state))
    return status

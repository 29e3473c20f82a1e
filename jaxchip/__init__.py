"""JAX CHIP-8 emulator core."""

from jaxchip.constants import *
from jaxchip.quirks import Quirks, PRESETS, get_quirks
from jaxchip.config import EmulatorConfig, from_preset
from jaxchip.state import EmulatorState, StackState, create_state
from jaxchip.decode import Op, DecodedInstruction, decode, disassemble
from jaxchip.errors import (
    Chip8Error, RomTooLarge, InvalidInstruction, StackOverflow, StackUnderflow, EmulatorHalted,
)
from jaxchip.timers import tick_timers, is_sound_active
from jaxchip.keypad import set_key, DEFAULT_KEY_MAP
from jaxchip.emulator import execute, fetch, step, load_rom, run_n_instruction, run_frame
from jaxchip.machine import Chip8, StepResult

__all__ = [
    "Quirks",
    "PRESETS",
    "get_quirks",
    "EmulatorConfig",
    "from_preset",
    "EmulatorState",
    "StackState",
    "create_state",
    "Op",
    "DecodedInstruction",
    "decode",
    "disassemble",
    "Chip8Error",
    "RomTooLarge",
    "InvalidInstruction",
    "StackOverflow",
    "StackUnderflow",
    "EmulatorHalted",
    "tick_timers",
    "is_sound_active",
    "set_key",
    "DEFAULT_KEY_MAP",
    "fetch",
    "execute",
    "step",
    "load_rom",
    "run_n_instruction",
    "run_frame",
    "Chip8",
    "StepResult",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
]

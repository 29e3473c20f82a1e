"""Main CHIP-8 emulator execution engine."""

import os
from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from jaxchip.state import EmulatorState, normalize
from jaxchip.decode import Op, decode
from jaxchip.constants import PROGRAM_START, MAX_ROM_SIZE, ADDRESS_MASK
from jaxchip.errors import RomTooLarge
from jaxchip.timers import tick_timers
from jaxchip.instructions.system import execute_invalid, execute_clear_screen, execute_return
from jaxchip.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from jaxchip.instructions.alu import (
    execute_set_register, execute_or, execute_and, execute_xor, execute_add_register,
    execute_subtract, execute_shift_right, execute_subtract_reversed, execute_shift_left
)
from jaxchip.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from jaxchip.instructions.display import execute_display
from jaxchip.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)


HANDLERS = {
    Op.INVALID: execute_invalid,
    Op.CLEAR_SCREEN: execute_clear_screen,
    Op.RETURN: execute_return,
    Op.JUMP: execute_jump,
    Op.CALL: execute_call,
    Op.SKIP_EQ_IMM: execute_skip_if_equal_immediate,
    Op.SKIP_NE_IMM: execute_skip_if_not_equal_immediate,
    Op.SKIP_EQ_REG: execute_skip_if_equal_register,
    Op.SET_IMM: execute_set,
    Op.ADD_IMM: execute_add,
    Op.SET_REG: execute_set_register,
    Op.OR: execute_or,
    Op.AND: execute_and,
    Op.XOR: execute_xor,
    Op.ADD_REG: execute_add_register,
    Op.SUB: execute_subtract,
    Op.SHIFT_RIGHT: execute_shift_right,
    Op.SUBN: execute_subtract_reversed,
    Op.SHIFT_LEFT: execute_shift_left,
    Op.SKIP_NE_REG: execute_skip_if_not_equal_register,
    Op.SET_INDEX: execute_set_index,
    Op.JUMP_OFFSET: execute_jump_with_offset,
    Op.RANDOM: execute_random,
    Op.DRAW: execute_display,
    Op.SKIP_KEY: execute_skip_if_key,
    Op.SKIP_NOT_KEY: execute_skip_if_not_key,
    Op.GET_DELAY: execute_get_delay_timer,
    Op.WAIT_KEY: execute_wait_for_key,
    Op.SET_DELAY: execute_set_delay_timer,
    Op.SET_SOUND: execute_set_sound_timer,
    Op.ADD_INDEX: execute_add_to_index,
    Op.FONT_CHARACTER: execute_font_character,
    Op.BCD: execute_bcd_conversion,
    Op.STORE_REGISTERS: execute_store_registers,
    Op.LOAD_REGISTERS: execute_load_registers,
}


def _typed(handler):
    def typed_handler(state, instruction):
        return normalize(handler(state, instruction))
    typed_handler.__name__ = handler.__name__
    return typed_handler


# Branch functions must be stable objects so traced branches are cached
DISPATCH_TABLE = [_typed(HANDLERS[op]) for op in Op]


def execute(state: EmulatorState, instruction) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    PC is expected to already point past the instruction, as left by ``fetch``.
    """
    decoded_instruction = decode(instruction)
    return jax.lax.switch(decoded_instruction.op, DISPATCH_TABLE, state, decoded_instruction)


def _pack_u16(high: jnp.ndarray, low: jnp.ndarray) -> jnp.ndarray:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.ndarray]:
    """Fetch next instruction from memory and advance PC past it."""
    pc = state.pc & ADDRESS_MASK
    instruction = _pack_u16(state.memory[pc], state.memory[(pc + 1) & ADDRESS_MASK])
    return state.replace(pc=(pc + 2) & ADDRESS_MASK), instruction


def _fetch_and_execute(state: EmulatorState) -> EmulatorState:
    state, instruction = fetch(state)
    return execute(state, instruction)


def _idle(state: EmulatorState) -> EmulatorState:
    return normalize(state)


def step(state: EmulatorState) -> EmulatorState:
    """Run one engine step.

    A halted machine or one awaiting a key is left unchanged; otherwise the
    next instruction is fetched and executed.
    """
    return jax.lax.cond(state.halted | state.waiting, _idle, _fetch_and_execute, state)


def run_instruction(state, _):
    state = step(state)
    return state, None


@partial(jax.jit, static_argnums=1)
def run_n_instruction(state: EmulatorState, n: int) -> EmulatorState:
    """Run ``n`` engine steps without touching the timers."""
    state, _ = jax.lax.scan(run_instruction, state, length=n)
    return state


@jax.jit
def run_frame(state: EmulatorState) -> EmulatorState:
    """Run one 60 Hz frame: ``cycles_per_frame`` steps followed by a timer tick."""
    state, _ = jax.lax.scan(run_instruction, state, length=state.config.cycles_per_frame)
    return tick_timers(state)


def read_rom(filename) -> bytes:
    with open(filename, 'rb') as f:
        return f.read()


def load_rom(state: EmulatorState, rom) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200.

    Args:
        state: Emulator state to load into
        rom: Raw program bytes, or a path to a ROM file

    Raises:
        RomTooLarge: If the program does not fit between 0x200 and the end of memory
    """
    if isinstance(rom, (str, os.PathLike)):
        rom = read_rom(rom)
    rom_data = bytes(rom)
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom_data), MAX_ROM_SIZE)
    if not rom_data:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)

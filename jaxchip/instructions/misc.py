"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.decode import DecodedInstruction
from jaxchip.constants import FONT_START, FONT_GLYPH_SIZE, ADDRESS_MASK, NUM_REGISTERS


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register. VF is not affected."""
    return state.replace(I=state.I + state.V[instruction.x].astype(jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for a key and store it in VX.

    Only enters the waiting state; the key is delivered by ``set_key``. PC
    already points past this instruction, so execution resumes there.
    """
    return state.replace(
        waiting=jnp.ones((), dtype=jnp.bool_),
        wait_register=instruction.x.astype(jnp.uint8),
        wait_armed=jnp.zeros_like(state.wait_armed),
    )


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for the low nibble of VX."""
    digit = (state.V[instruction.x] & 0xF).astype(jnp.uint16)
    return state.replace(I=FONT_START + digit * FONT_GLYPH_SIZE)


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.stack([
        value // 100,
        (value // 10) % 10,
        value % 10
    ]).astype(jnp.uint8)

    indices = (state.I.astype(jnp.int32) + jnp.arange(3)) & ADDRESS_MASK
    return state.replace(memory=state.memory.at[indices].set(digits))


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    if not state.quirks.memory_increment_by_x:
        return state.I
    count = instruction.x if state.quirks.memory_increment_off_by_one else instruction.x + 1
    return state.I + count.astype(jnp.uint16)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = (state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values)
    return state.replace(memory=new_memory, I=_advance_index(state, instruction))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = (state.I.astype(jnp.int32) + jnp.arange(NUM_REGISTERS)) & ADDRESS_MASK
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V, I=_advance_index(state, instruction))

"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function maps ``(vx, vy)`` to ``(result, flag)``. VX is written
first and VF second, so an operation targeting VF keeps only the flag.
"""

import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.decode import DecodedInstruction
from jaxchip.constants import FLAG_REGISTER


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, VF = carry."""
    result = vx.astype(jnp.int32) + vy.astype(jnp.int32)
    return result.astype(jnp.uint8), (result > 0xFF).astype(jnp.uint8)


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = not borrow."""
    return vx - vy, (vx >= vy).astype(jnp.uint8)


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = not borrow."""
    return vy - vx, (vy >= vx).astype(jnp.uint8)


def alu_shift_right(value):
    """8XY6 - Shift right, VF = bit shifted out."""
    return value >> 1, value & 1


def alu_shift_left(value):
    """8XYE - Shift left, VF = bit shifted out."""
    return value << 1, (value >> 7) & 1


def _write(state: EmulatorState, instruction: DecodedInstruction, result, flag) -> EmulatorState:
    new_V = state.V.at[instruction.x].set(jnp.asarray(result, dtype=jnp.uint8))
    if flag is not None:
        new_V = new_V.at[FLAG_REGISTER].set(jnp.asarray(flag, dtype=jnp.uint8))
    return state.replace(V=new_V)


def make_alu_instruction(operation):
    """Factory for register-register arithmetic instructions."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, flag = operation(state.V[instruction.x], state.V[instruction.y])
        return _write(state, instruction, result, flag)
    return alu_instruction


def make_logic_instruction(operation):
    """Factory for OR/AND/XOR, which clear VF under the vf_reset quirk."""
    def logic_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, _ = operation(state.V[instruction.x], state.V[instruction.y])
        flag = jnp.zeros((), dtype=jnp.uint8) if state.quirks.vf_reset else None
        return _write(state, instruction, result, flag)
    return logic_instruction


def make_shift_instruction(operation):
    """Factory for shifts, whose operand depends on the shifting quirk."""
    def shift_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        source = instruction.x if state.quirks.shifting else instruction.y
        result, flag = operation(state.V[source])
        return _write(state, instruction, result, flag)
    return shift_instruction


execute_set_register = make_alu_instruction(alu_set)
execute_or = make_logic_instruction(alu_or)
execute_and = make_logic_instruction(alu_and)
execute_xor = make_logic_instruction(alu_xor)
execute_add_register = make_alu_instruction(alu_add)
execute_subtract = make_alu_instruction(alu_sub_xy)
execute_subtract_reversed = make_alu_instruction(alu_sub_yx)
execute_shift_right = make_shift_instruction(alu_shift_right)
execute_shift_left = make_shift_instruction(alu_shift_left)

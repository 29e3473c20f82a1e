"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.decode import DecodedInstruction
from jaxchip.constants import ADDRESS_MASK
from jaxchip.errors import ErrorCode, record_error
from jaxchip.stack import push, is_full


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=instruction.nnn)


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    def _call(state):
        state = state.replace(stack=push(state.stack, state.pc))
        return execute_jump(state, instruction)

    return jax.lax.cond(
        is_full(state.stack),
        lambda s: record_error(s, ErrorCode.STACK_OVERFLOW, instruction.raw),
        _call,
        state
    )


def skip_next(state: EmulatorState, condition: jnp.ndarray) -> EmulatorState:
    """Advance PC over the next instruction when ``condition`` holds."""
    return state.replace(pc=jnp.where(condition, (state.pc + 2) & ADDRESS_MASK, state.pc))


def make_skip_instruction(condition_fn):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        return skip_next(state, condition_fn(state, instruction))
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key = make_skip_instruction(
    lambda state, inst: state.keypad[state.V[inst.x] & 0xF]
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst: ~state.keypad[state.V[inst.x] & 0xF]
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to NNN + V0, or BXNN - jump to XNN + VX with the jumping quirk."""
    register = instruction.x if state.quirks.jumping else 0
    offset = state.V[register].astype(jnp.uint16)
    return state.replace(pc=(instruction.nnn + offset) & ADDRESS_MASK)

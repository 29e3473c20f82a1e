"""CHIP-8 system instructions (0x0xxx) and the invalid-opcode handler."""

import jax
import jax.lax
import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.decode import DecodedInstruction
from jaxchip.errors import ErrorCode, record_error
from jaxchip.stack import pop, is_empty


def execute_invalid(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unknown or reserved opcode (including 0NNN machine-code calls)."""
    return record_error(
        state, ErrorCode.INVALID_INSTRUCTION, instruction.raw, halt=state.config.halt_on_invalid
    )


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(
        is_empty(state.stack),
        lambda s: record_error(s, ErrorCode.STACK_UNDERFLOW, instruction.raw),
        _return,
        state
    )

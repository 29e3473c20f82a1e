"""Emulator faults.

Traced code cannot raise, so the instruction handlers record faults in the
state with :func:`record_error` and the host turns them into exceptions with
:func:`error_from_state`.
"""

from enum import IntEnum

import jax.numpy as jnp

from jaxchip.constants import ADDRESS_MASK
from jaxchip.state import EmulatorState


class ErrorCode(IntEnum):
    NONE = 0
    INVALID_INSTRUCTION = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3


class Chip8Error(Exception):
    """Base class for emulator errors."""


class RomTooLarge(Chip8Error):
    """Program does not fit in memory from the load address."""

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"ROM is {size} bytes but only {capacity} bytes are available")


class ExecutionError(Chip8Error):
    """Fault raised while executing the instruction at ``address``."""

    code = ErrorCode.NONE
    reason = "execution error"

    def __init__(self, address: int, opcode: int):
        self.address = address
        self.opcode = opcode
        super().__init__(f"{self.reason}: 0x{opcode:04X} at 0x{address:03X}")


class InvalidInstruction(ExecutionError):
    code = ErrorCode.INVALID_INSTRUCTION
    reason = "invalid instruction"


class StackOverflow(ExecutionError):
    code = ErrorCode.STACK_OVERFLOW
    reason = "stack overflow"


class StackUnderflow(ExecutionError):
    code = ErrorCode.STACK_UNDERFLOW
    reason = "stack underflow"


class EmulatorHalted(Chip8Error):
    """Execution was requested on a machine stopped by an earlier fault."""

    def __init__(self, cause: Chip8Error = None):
        self.cause = cause
        super().__init__(f"emulator is halted ({cause}); reset to continue")


_ERROR_TYPES = {
    ErrorCode.INVALID_INSTRUCTION: InvalidInstruction,
    ErrorCode.STACK_OVERFLOW: StackOverflow,
    ErrorCode.STACK_UNDERFLOW: StackUnderflow,
}


def record_error(state: EmulatorState, code: ErrorCode, opcode: jnp.ndarray, halt: bool = True) -> EmulatorState:
    """Record a fault of the instruction just fetched.

    A halting fault rewinds PC onto the faulting instruction so the machine is
    left exactly as it was before the instruction ran.
    """
    address = (state.pc - 2) & ADDRESS_MASK
    state = state.replace(
        error=jnp.asarray(int(code), dtype=jnp.uint8),
        error_address=jnp.asarray(address, dtype=jnp.uint16),
        error_opcode=jnp.asarray(opcode, dtype=jnp.uint16),
    )
    if halt:
        state = state.replace(pc=address, halted=jnp.ones((), dtype=jnp.bool_))
    return state


def clear_error(state: EmulatorState) -> EmulatorState:
    return state.replace(error=jnp.zeros((), dtype=jnp.uint8))


def error_from_state(state: EmulatorState):
    """Build the exception for the fault recorded in ``state``, if any."""
    code = ErrorCode(int(state.error))
    if code == ErrorCode.NONE:
        return None
    return _ERROR_TYPES[code](int(state.error_address), int(state.error_opcode))

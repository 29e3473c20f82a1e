"""Host-facing CHIP-8 machine.

:class:`Chip8` wraps the pure, jit-compiled core in the imperative interface a
frontend drives: execute instructions at any rate, tick the timers at 60 Hz,
report key transitions and read back the screen and buzzer state. Faults
recorded by the core are raised here as :mod:`jaxchip.errors` exceptions.
"""

import os
from enum import Enum
from typing import Optional

import jax
import numpy as np

from jaxchip.config import EmulatorConfig
from jaxchip.constants import NUM_KEYS
from jaxchip.decode import disassemble
from jaxchip.emulator import step, load_rom, read_rom, run_frame
from jaxchip.errors import Chip8Error, EmulatorHalted, error_from_state, clear_error
from jaxchip.keypad import set_key
from jaxchip.logging import ConsoleLogger
from jaxchip.state import EmulatorState, create_state
from jaxchip.timers import tick_timers, is_sound_active


class StepResult(Enum):
    EXECUTED = "executed"
    AWAITING_KEY = "awaiting_key"


_step = jax.jit(step)
_tick_timers = jax.jit(tick_timers)
_set_key = jax.jit(set_key)


class Chip8:
    """A single CHIP-8 session.

    Args:
        config: Quirks and session settings, fixed for the lifetime of the machine
        seed: Seed of the CXNN random number generator
        logger: Logger for host-level events; a default console logger if None
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        seed: int = 0,
        logger: Optional[ConsoleLogger] = None,
    ):
        self._config = (config if config is not None else EmulatorConfig()).validate()
        self.seed = seed
        self.logger = logger or ConsoleLogger(log_level="WARNING")
        self._program: Optional[bytes] = None
        self._last_error: Optional[Chip8Error] = None
        self._state = self._power_on_state()
        self.logger.debug(f"Initialized with {self._config}")

    @property
    def config(self) -> EmulatorConfig:
        return self._config

    @property
    def state(self) -> EmulatorState:
        return self._state

    @property
    def pc(self) -> int:
        return int(self._state.pc)

    @property
    def registers(self) -> np.ndarray:
        return np.array(self._state.V)

    @property
    def halted(self) -> bool:
        return bool(self._state.halted)

    @property
    def awaiting_key(self) -> bool:
        return bool(self._state.waiting)

    def load_program(self, rom) -> None:
        """Load a program (bytes or file path) at 0x200 into a power-on machine.

        Raises:
            RomTooLarge: The program does not fit in memory; the machine is unchanged.
        """
        if isinstance(rom, (str, os.PathLike)):
            rom = read_rom(rom)
        program = bytes(rom)
        self._state = load_rom(self._power_on_state(), program)
        self._program = program
        self._last_error = None
        self.logger.info(f"Loaded program ({len(self._program)} bytes)")

    def reset(self) -> None:
        """Return to power-on state and reload the last program, if any."""
        self._state = self._power_on_state()
        self._last_error = None
        if self._program is not None:
            self._state = load_rom(self._state, self._program)
        self.logger.info("Reset")

    def execute_instruction(self) -> StepResult:
        """Execute one instruction, or idle while FX0A waits for a key.

        Raises:
            InvalidInstruction, StackOverflow, StackUnderflow: The instruction
                faulted; the machine halts with PC on the faulting instruction.
            EmulatorHalted: The machine halted earlier and has not been reset.
        """
        if self.halted:
            raise EmulatorHalted(self._last_error)
        if self.awaiting_key:
            return StepResult.AWAITING_KEY

        self._state = _step(self._state)
        self._check_fault()
        return StepResult.AWAITING_KEY if self.awaiting_key else StepResult.EXECUTED

    def tick_timers(self) -> None:
        """Advance the delay and sound timers by one 60 Hz tick."""
        self._state = _tick_timers(self._state)

    def run_frame(self) -> None:
        """Run ``cycles_per_frame`` instructions and one timer tick.

        Raises the same errors as :meth:`execute_instruction`.
        """
        if self.halted:
            raise EmulatorHalted(self._last_error)
        if self._config.invalid_instruction == "halt":
            # Faults halt the machine, so the compiled frame stops on the first one
            self._state = run_frame(self._state)
            self._check_fault()
            return
        for _ in range(self._config.cycles_per_frame):
            if self.execute_instruction() is StepResult.AWAITING_KEY:
                break
        self.tick_timers()

    def set_key(self, index: int, pressed: bool) -> None:
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be in [0, {NUM_KEYS}), got {index}")
        self._state = _set_key(self._state, index, bool(pressed))

    def get_display_snapshot(self) -> np.ndarray:
        """Copy of the display as a bool array indexed ``[x, y]``."""
        return np.array(self._state.display, dtype=np.bool_)

    def is_sound_active(self) -> bool:
        return bool(is_sound_active(self._state))

    def get_last_error(self) -> Optional[Chip8Error]:
        """The last fault raised or skipped since initialisation or reset."""
        return self._last_error

    def _power_on_state(self) -> EmulatorState:
        return create_state(self._config, jax.random.PRNGKey(self.seed))

    def _check_fault(self) -> None:
        """Raise a halting fault recorded by the core; log and clear a skipped one."""
        error = error_from_state(self._state)
        if error is None:
            return
        self._last_error = error
        if self.halted:
            self.logger.error(f"Halted: {error} ({disassemble(error.opcode, self._config.quirks)})")
            self.logger.log_state(self._state, level="ERROR")
            raise error
        self.logger.warning(f"Skipped {error} ({disassemble(error.opcode, self._config.quirks)})")
        self._state = clear_error(self._state)

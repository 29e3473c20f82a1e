"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from jaxchip.config import EmulatorConfig
from jaxchip.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS,
)
from jaxchip.quirks import Quirks


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))

    @property
    def capacity(self) -> int:
        return self.data.shape[-1]


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is indexed ``display[x, y]``. ``waiting``/``wait_register``/
    ``wait_armed`` hold the FX0A key-wait state machine, ``vblank_ready`` is
    the once-per-tick draw slot used by the display wait quirk and the
    ``error*``/``halted`` fields record the last fault for post-mortem
    inspection.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    waiting: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    wait_register: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    wait_armed: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    vblank_ready: jnp.ndarray = field(default_factory=lambda: jnp.ones((), dtype=jnp.bool_))
    halted: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    error: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    error_address: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    error_opcode: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    config: EmulatorConfig = field(pytree_node=False, default=EmulatorConfig())

    @property
    def quirks(self) -> Quirks:
        return self.config.quirks


def normalize(state: EmulatorState) -> EmulatorState:
    """Cast every field back to its canonical dtype.

    Branches of ``jax.lax.switch``/``jax.lax.cond`` must agree on output
    types, so handler results go through here.
    """
    return state.replace(
        memory=jnp.asarray(state.memory, dtype=jnp.uint8),
        pc=jnp.asarray(state.pc, dtype=jnp.uint16),
        display=jnp.asarray(state.display, dtype=jnp.bool_),
        stack=state.stack.replace(
            data=jnp.asarray(state.stack.data, dtype=jnp.uint16),
            pointer=jnp.asarray(state.stack.pointer, dtype=jnp.uint8),
        ),
        delay_timer=jnp.asarray(state.delay_timer, dtype=jnp.uint8),
        sound_timer=jnp.asarray(state.sound_timer, dtype=jnp.uint8),
        keypad=jnp.asarray(state.keypad, dtype=jnp.bool_),
        V=jnp.asarray(state.V, dtype=jnp.uint8),
        I=jnp.asarray(state.I, dtype=jnp.uint16),
        waiting=jnp.asarray(state.waiting, dtype=jnp.bool_),
        wait_register=jnp.asarray(state.wait_register, dtype=jnp.uint8),
        wait_armed=jnp.asarray(state.wait_armed, dtype=jnp.bool_),
        vblank_ready=jnp.asarray(state.vblank_ready, dtype=jnp.bool_),
        halted=jnp.asarray(state.halted, dtype=jnp.bool_),
        error=jnp.asarray(state.error, dtype=jnp.uint8),
        error_address=jnp.asarray(state.error_address, dtype=jnp.uint16),
        error_opcode=jnp.asarray(state.error_opcode, dtype=jnp.uint16),
    )


def create_state(
    config: EmulatorConfig = EmulatorConfig(),
    rng: jax.random.PRNGKey = None,
) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    config = config.validate()
    if rng is None:
        rng = jax.random.PRNGKey(0)
    state = EmulatorState(
        rng,
        stack=StackState(
            data=jnp.zeros(config.stack_size, dtype=jnp.uint16),
            pointer=jnp.zeros((), dtype=jnp.uint8),
        ),
        config=config,
    )
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))

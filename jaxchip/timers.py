"""CHIP-8 delay and sound timers.

The host calls :func:`tick_timers` at a fixed 60 Hz, independently of how many
instructions it runs per frame.
"""

import jax.numpy as jnp
from jaxchip.state import EmulatorState


def _countdown(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, timer)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers, floored at zero, and open the next draw slot.

    Timers keep running on a halted machine so the buzzer stops on its own.
    """
    return state.replace(
        delay_timer=_countdown(state.delay_timer),
        sound_timer=_countdown(state.sound_timer),
        vblank_ready=jnp.ones((), dtype=jnp.bool_),
    )


def is_sound_active(state: EmulatorState) -> jnp.ndarray:
    """Whether the host should be emitting the buzzer tone."""
    return state.sound_timer > 0

"""CHIP-8 hexadecimal keypad and the FX0A key-wait state machine.

While FX0A is pending the engine idles; key transitions reported through
:func:`set_key` are what complete the wait. A key held down when the wait
began never completes it. With the ``key_wait_on_release`` quirk a key must
be pressed and then released during the wait, otherwise the fresh press is
enough.
"""

import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.constants import NUM_KEYS

# Conventional QWERTY layout of the COSMAC VIP keypad:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  <-  Q W E R
#   7 8 9 E      A S D F
#   A 0 B F      Z X C V
DEFAULT_KEY_MAP = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}


def set_key(state: EmulatorState, key, pressed) -> EmulatorState:
    """Record a key transition and complete a pending key wait if it qualifies."""
    key = jnp.asarray(key, dtype=jnp.int32) & (NUM_KEYS - 1)
    pressed = jnp.asarray(pressed, dtype=jnp.bool_)

    was_pressed = state.keypad[key]
    newly_pressed = pressed & ~was_pressed
    released = ~pressed & was_pressed

    is_key = jnp.arange(NUM_KEYS) == key
    armed = state.wait_armed | (is_key & newly_pressed & state.waiting)

    if state.quirks.key_wait_on_release:
        qualifies = state.waiting & released & state.wait_armed[key]
    else:
        qualifies = state.waiting & newly_pressed

    completed_V = state.V.at[state.wait_register].set(key.astype(jnp.uint8))
    return state.replace(
        keypad=state.keypad.at[key].set(pressed),
        V=jnp.where(qualifies, completed_V, state.V),
        waiting=state.waiting & ~qualifies,
        wait_armed=jnp.where(qualifies, jnp.zeros_like(armed), armed),
    )


def release_all(state: EmulatorState) -> EmulatorState:
    """Release every key, e.g. when the host window loses focus."""
    for key in range(NUM_KEYS):
        state = set_key(state, key, False)
    return state

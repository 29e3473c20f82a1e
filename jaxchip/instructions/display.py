"""CHIP-8 display operations."""

import jax
import jax.lax
import jax.numpy as jnp
from jaxchip.state import EmulatorState
from jaxchip.decode import DecodedInstruction
from jaxchip.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, ADDRESS_MASK, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(
    memory: jnp.ndarray,
    index: jnp.ndarray,
    x: jnp.ndarray,
    y: jnp.ndarray,
    height: jnp.ndarray,
    clipping: bool,
) -> jnp.ndarray:
    """Rasterise an 8 x ``height`` sprite at (x, y) onto a screen-sized mask.

    The start coordinates wrap onto the screen. Pixels running past the edge
    are dropped when ``clipping`` is set and wrap around otherwise.
    """
    sprite_x = x.astype(jnp.int32) % SCREEN_WIDTH
    sprite_y = y.astype(jnp.int32) % SCREEN_HEIGHT

    if clipping:
        col_offset = xx - sprite_x
        row_offset = yy - sprite_y
    else:
        col_offset = (xx - sprite_x) % SCREEN_WIDTH
        row_offset = (yy - sprite_y) % SCREEN_HEIGHT

    in_sprite = (
        (col_offset >= 0) & (col_offset < SPRITE_WIDTH)
        & (row_offset >= 0) & (row_offset < height)
    )
    col_offset = jnp.where(in_sprite, col_offset, 0)
    row_offset = jnp.where(in_sprite, row_offset, 0)

    addresses = (index.astype(jnp.int32) + row_offset) & ADDRESS_MASK
    sprite_bytes = memory[addresses].astype(jnp.int32)
    bits = (sprite_bytes >> (7 - col_offset)) & 1
    return (bits == 1) & in_sprite


def draw_sprite(state: EmulatorState, x: jnp.ndarray, y: jnp.ndarray, height: jnp.ndarray) -> EmulatorState:
    """XOR a sprite read from I onto the display; VF = 1 if any pixel was erased."""
    sprite = sprite_mask(state.memory, state.I, x, y, height, state.quirks.clipping)
    collision = jnp.any(state.display & sprite)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(collision.astype(jnp.uint8))
    )


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N."""
    def _draw(state):
        state = draw_sprite(state, state.V[instruction.x], state.V[instruction.y], instruction.n)
        return state.replace(vblank_ready=jnp.zeros((), dtype=jnp.bool_))

    if not state.quirks.display_wait:
        return draw_sprite(state, state.V[instruction.x], state.V[instruction.y], instruction.n)

    # Retry the instruction until the next timer tick frees the draw slot
    return jax.lax.cond(
        state.vblank_ready,
        _draw,
        lambda s: s.replace(pc=(s.pc - 2) & ADDRESS_MASK),
        state
    )

"""Tests for display operations (00E0, DXYN)."""

import jax.numpy as jnp
from jaxchip import execute, tick_timers, FONT_START
from conftest import make_state, setup_sprite_in_memory


def _prepare(state, address, sprite, x, y):
    state = setup_sprite_in_memory(state, address, sprite)
    state = execute(state, 0x6000 | x)  # V0 = x
    state = execute(state, 0x6100 | y)  # V1 = y
    return execute(state, 0xA000 | address)


class TestBasicSprites:
    """Test basic sprite drawing."""

    def test_basic_sprite_draw(self, fresh_state):
        """2x2 box sprite without collision."""
        state = _prepare(fresh_state, 0x300, [0xC0, 0xC0], 10, 5)
        state = execute(state, 0xD012)

        assert state.display[10, 5]
        assert state.display[11, 5]
        assert state.display[10, 6]
        assert state.display[11, 6]
        assert not state.display[12, 5]
        assert int(jnp.sum(state.display)) == 4
        assert state.V[15] == 0

    def test_collision_detection(self, fresh_state):
        """Drawing over a lit pixel erases it and sets VF."""
        state = _prepare(fresh_state, 0x400, [0x80], 20, 10)

        state = execute(state, 0xD011)
        assert state.display[20, 10]
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert not state.display[20, 10]
        assert state.V[15] == 1

    def test_xor_behavior(self, fresh_state):
        """Drawing the same sprite twice restores the screen."""
        state = _prepare(fresh_state, 0x500, [0xF0], 8, 15)

        state = execute(state, 0xD011)
        for x in range(8, 12):
            assert state.display[x, 15]
        assert state.V[15] == 0

        state = execute(state, 0xD011)
        assert not jnp.any(state.display)
        assert state.V[15] == 1

    def test_zero_sprite_never_collides(self, fresh_state):
        """A blank sprite leaves the screen alone and clears VF."""
        state = _prepare(fresh_state, 0x300, [0xFF], 0, 0)
        state = execute(state, 0xD011)
        state = setup_sprite_in_memory(state, 0x300, [0x00])
        before = state.display

        state = execute(state, 0xD011)
        assert jnp.array_equal(state.display, before)
        assert state.V[15] == 0

    def test_zero_height_draws_nothing(self, fresh_state):
        state = _prepare(fresh_state, 0x300, [0xFF], 3, 3)
        state = execute(state, 0xD010)
        assert not jnp.any(state.display)
        assert state.V[15] == 0

    def test_font_glyph(self, fresh_state):
        """Glyph 0 (F0 90 90 90 F0) drawn at the origin."""
        state = execute(fresh_state, 0xA000 | FONT_START)
        state = execute(state, 0xD005)
        assert [bool(state.display[x, 0]) for x in range(4)] == [True] * 4
        assert [bool(state.display[x, 1]) for x in range(4)] == [True, False, False, True]
        assert int(jnp.sum(state.display)) == 14

    def test_vf_register_preservation(self, fresh_state):
        """VF is cleared when nothing collides."""
        state = execute(fresh_state, 0x6F01)  # VF = 1
        state = _prepare(state, 0xB00, [0x80], 5, 5)
        state = execute(state, 0xD011)
        assert state.V[15] == 0

    def test_coordinates_from_vf(self, fresh_state):
        """VF can supply a coordinate; it is overwritten by the collision flag."""
        state = setup_sprite_in_memory(fresh_state, 0x300, [0x80])
        state = execute(state, 0x6F07)  # VF = 7
        state = execute(state, 0x6102)  # V1 = 2
        state = execute(state, 0xA300)
        state = execute(state, 0xDF11)
        assert state.display[7, 2]
        assert state.V[15] == 0


class TestScreenBoundaries:
    """Test sprite clipping and wrapping."""

    def test_right_edge_clipping(self):
        state = _prepare(make_state(clipping=True), 0x600, [0xFF], 60, 0)
        state = execute(state, 0xD011)

        for x in range(60, 64):
            assert state.display[x, 0]
        for x in range(0, 4):
            assert not state.display[x, 0]

    def test_bottom_edge_clipping(self):
        state = _prepare(make_state(clipping=True), 0x700, [0x80, 0x80, 0x80], 0, 30)
        state = execute(state, 0xD013)

        assert state.display[0, 30]
        assert state.display[0, 31]
        assert not state.display[0, 0]

    def test_right_edge_wrapping(self):
        state = _prepare(make_state(clipping=False), 0x600, [0xFF], 60, 0)
        state = execute(state, 0xD011)

        for x in list(range(60, 64)) + list(range(0, 4)):
            assert state.display[x, 0]
        assert int(jnp.sum(state.display)) == 8

    def test_bottom_edge_wrapping(self):
        state = _prepare(make_state(clipping=False), 0x700, [0x80, 0x80, 0x80], 0, 30)
        state = execute(state, 0xD013)

        assert state.display[0, 30]
        assert state.display[0, 31]
        assert state.display[0, 0]

    def test_coordinate_wrapping(self, fresh_state):
        """Start coordinates wrap even when clipping."""
        state = _prepare(fresh_state, 0x800, [0x80], 70, 37)
        state = execute(state, 0xD011)
        assert state.display[6, 5]

    def test_collision_in_clipped_area_ignored(self):
        """Pixels dropped by clipping cannot collide."""
        state = make_state(clipping=True)
        state = state.replace(display=state.display.at[0, 0].set(True))
        state = _prepare(state, 0x600, [0xFF], 60, 0)
        state = execute(state, 0xD011)
        assert state.display[0, 0]
        assert state.V[15] == 0


class TestSpriteVariations:
    """Test different sprite configurations."""

    def test_different_sprite_heights(self, fresh_state):
        sprite = [0x80, 0x40, 0x20, 0x10, 0x08]
        state = _prepare(fresh_state, 0x900, sprite, 10, 8)
        state = execute(state, 0xD013)

        assert state.display[10, 8]
        assert state.display[11, 9]
        assert state.display[12, 10]
        assert not state.display[13, 11]

    def test_sprite_read_wraps_memory(self, fresh_state):
        """Sprite rows past 0xFFF come from the start of memory."""
        state = setup_sprite_in_memory(fresh_state, 0xFFF, [0x80])
        state = setup_sprite_in_memory(state, 0x000, [0x40])
        state = execute(state, 0x6000)
        state = execute(state, 0x6100)
        state = execute(state, 0xAFFF)
        state = execute(state, 0xD012)
        assert state.display[0, 0]
        assert state.display[1, 1]


class TestDisplayWait:
    """DXYN draws at most once per timer tick when display_wait is set."""

    def test_second_draw_waits_for_tick(self):
        state = _prepare(make_state(display_wait=True), 0x300, [0x80], 0, 0)
        state = state.replace(pc=jnp.asarray(0x202, dtype=jnp.uint16))

        state = execute(state, 0xD011)
        assert state.display[0, 0]
        assert state.pc == 0x202

        state = execute(state, 0xD011)
        assert state.display[0, 0]
        assert state.pc == 0x200  # rewound to retry

        state = tick_timers(state)
        state = state.replace(pc=jnp.asarray(0x202, dtype=jnp.uint16))
        state = execute(state, 0xD011)
        assert not state.display[0, 0]

    def test_without_quirk_draws_every_time(self):
        state = _prepare(make_state(display_wait=False), 0x300, [0x80], 0, 0)
        state = execute(state, 0xD011)
        state = execute(state, 0xD011)
        assert not state.display[0, 0]
        assert state.V[15] == 1

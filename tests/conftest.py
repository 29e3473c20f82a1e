"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from jaxchip import create_state, from_preset, load_rom


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def modern_state():
    """Provide a fresh state with the modern quirks."""
    return create_state(from_preset("modern"))


@pytest.fixture
def legacy_state():
    """Provide a fresh state with the COSMAC VIP quirks."""
    return create_state(from_preset("chip8"))


def make_state(preset="modern", **overrides):
    """Fresh state for a preset with quirk or config overrides."""
    return create_state(from_preset(preset, **overrides))


def load_words(state, words):
    """Load 16-bit instruction words as a program at 0x200."""
    rom = b"".join(word.to_bytes(2, "big") for word in words)
    return load_rom(state, rom)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )

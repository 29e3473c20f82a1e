"""Quirk toggles reconciling the historical CHIP-8 interpreters.

Each quirk changes what an instruction does, never how it is encoded. A
``Quirks`` value is static metadata of the emulator state: it is read while
the instruction handlers are traced, so branches on it cost nothing at run
time and two machines with different quirks compile independently.
"""

import dataclasses

from flax.struct import dataclass


@dataclass
class Quirks:
    """Semantic toggles consulted by the instruction handlers.

    Attributes:
        vf_reset: 8XY1/8XY2/8XY3 reset VF to 0.
        memory_increment_by_x: FX55/FX65 advance I past the registers touched.
        memory_increment_off_by_one: with ``memory_increment_by_x``, advance I
            by X instead of X + 1 (CHIP-48).
        display_wait: DXYN runs at most once per timer tick.
        clipping: sprites are clipped at the screen edge instead of wrapping.
        shifting: 8XY6/8XYE shift VX in place instead of loading VY first.
        jumping: BXNN jumps to XNN + VX instead of NNN + V0.
        key_wait_on_release: FX0A completes when a key pressed during the wait
            is released, instead of on the press itself.
    """
    vf_reset: bool = False
    memory_increment_by_x: bool = False
    memory_increment_off_by_one: bool = False
    display_wait: bool = False
    clipping: bool = True
    shifting: bool = True
    jumping: bool = False
    key_wait_on_release: bool = True


PRESETS = {
    # COSMAC VIP interpreter
    "chip8": Quirks(
        vf_reset=True,
        memory_increment_by_x=True,
        display_wait=True,
        clipping=True,
        shifting=False,
        jumping=False,
    ),
    "modern": Quirks(),
    "chip48": Quirks(
        memory_increment_by_x=True,
        memory_increment_off_by_one=True,
        clipping=True,
        shifting=True,
        jumping=True,
    ),
    "schip": Quirks(
        clipping=True,
        shifting=True,
        jumping=True,
    ),
    "xochip": Quirks(
        memory_increment_by_x=True,
        clipping=False,
        shifting=False,
        jumping=False,
        key_wait_on_release=False,
    ),
}

DEFAULT_PRESET = "modern"


def get_quirks(name: str = DEFAULT_PRESET, **overrides) -> Quirks:
    """Return the quirks of a named preset with optional field overrides."""
    if name not in PRESETS:
        raise ValueError(
            f"Unknown quirk preset '{name}'. Available: {list(PRESETS.keys())}"
        )
    names = [f.name for f in dataclasses.fields(Quirks)]
    unknown = sorted(set(overrides) - set(names))
    if unknown:
        raise ValueError(f"Unknown quirks {unknown}. Available: {names}")
    return PRESETS[name].replace(**overrides)

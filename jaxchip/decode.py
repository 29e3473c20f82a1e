"""CHIP-8 instruction decoding.

Every 16-bit word decodes to exactly one member of the closed :class:`Op`
set. The mapping is precomputed into a 64K lookup table so that decoding is a
single gather, usable both eagerly and inside traced code.
"""

from enum import IntEnum

import jax.numpy as jnp
import numpy as np
from chex import dataclass


class Op(IntEnum):
    """Instruction variants, in dispatch order."""
    INVALID = 0
    CLEAR_SCREEN = 1        # 00E0
    RETURN = 2              # 00EE
    JUMP = 3                # 1NNN
    CALL = 4                # 2NNN
    SKIP_EQ_IMM = 5         # 3XNN
    SKIP_NE_IMM = 6         # 4XNN
    SKIP_EQ_REG = 7         # 5XY0
    SET_IMM = 8             # 6XNN
    ADD_IMM = 9             # 7XNN
    SET_REG = 10            # 8XY0
    OR = 11                 # 8XY1
    AND = 12                # 8XY2
    XOR = 13                # 8XY3
    ADD_REG = 14            # 8XY4
    SUB = 15                # 8XY5
    SHIFT_RIGHT = 16        # 8XY6
    SUBN = 17               # 8XY7
    SHIFT_LEFT = 18         # 8XYE
    SKIP_NE_REG = 19        # 9XY0
    SET_INDEX = 20          # ANNN
    JUMP_OFFSET = 21        # BNNN / BXNN
    RANDOM = 22             # CXNN
    DRAW = 23               # DXYN
    SKIP_KEY = 24           # EX9E
    SKIP_NOT_KEY = 25       # EXA1
    GET_DELAY = 26          # FX07
    WAIT_KEY = 27           # FX0A
    SET_DELAY = 28          # FX15
    SET_SOUND = 29          # FX18
    ADD_INDEX = 30          # FX1E
    FONT_CHARACTER = 31     # FX29
    BCD = 32                # FX33
    STORE_REGISTERS = 33    # FX55
    LOAD_REGISTERS = 34     # FX65


# (mask, pattern, op); patterns are disjoint
_ENCODINGS = [
    (0xFFFF, 0x00E0, Op.CLEAR_SCREEN),
    (0xFFFF, 0x00EE, Op.RETURN),
    (0xF000, 0x1000, Op.JUMP),
    (0xF000, 0x2000, Op.CALL),
    (0xF000, 0x3000, Op.SKIP_EQ_IMM),
    (0xF000, 0x4000, Op.SKIP_NE_IMM),
    (0xF00F, 0x5000, Op.SKIP_EQ_REG),
    (0xF000, 0x6000, Op.SET_IMM),
    (0xF000, 0x7000, Op.ADD_IMM),
    (0xF00F, 0x8000, Op.SET_REG),
    (0xF00F, 0x8001, Op.OR),
    (0xF00F, 0x8002, Op.AND),
    (0xF00F, 0x8003, Op.XOR),
    (0xF00F, 0x8004, Op.ADD_REG),
    (0xF00F, 0x8005, Op.SUB),
    (0xF00F, 0x8006, Op.SHIFT_RIGHT),
    (0xF00F, 0x8007, Op.SUBN),
    (0xF00F, 0x800E, Op.SHIFT_LEFT),
    (0xF00F, 0x9000, Op.SKIP_NE_REG),
    (0xF000, 0xA000, Op.SET_INDEX),
    (0xF000, 0xB000, Op.JUMP_OFFSET),
    (0xF000, 0xC000, Op.RANDOM),
    (0xF000, 0xD000, Op.DRAW),
    (0xF0FF, 0xE09E, Op.SKIP_KEY),
    (0xF0FF, 0xE0A1, Op.SKIP_NOT_KEY),
    (0xF0FF, 0xF007, Op.GET_DELAY),
    (0xF0FF, 0xF00A, Op.WAIT_KEY),
    (0xF0FF, 0xF015, Op.SET_DELAY),
    (0xF0FF, 0xF018, Op.SET_SOUND),
    (0xF0FF, 0xF01E, Op.ADD_INDEX),
    (0xF0FF, 0xF029, Op.FONT_CHARACTER),
    (0xF0FF, 0xF033, Op.BCD),
    (0xF0FF, 0xF055, Op.STORE_REGISTERS),
    (0xF0FF, 0xF065, Op.LOAD_REGISTERS),
]


def build_opcode_table() -> np.ndarray:
    """Map every 16-bit word to its ``Op``; unmatched words stay INVALID."""
    words = np.arange(0x10000, dtype=np.uint32)
    table = np.full(0x10000, int(Op.INVALID), dtype=np.uint8)
    for mask, pattern, op in _ENCODINGS:
        table[(words & mask) == pattern] = int(op)
    return table


OPCODE_TABLE = jnp.asarray(build_opcode_table())


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: jnp.ndarray
    op: jnp.ndarray  # Op variant
    x: jnp.ndarray   # Second nibble (VX register)
    y: jnp.ndarray   # Third nibble (VY register)
    n: jnp.ndarray   # Fourth nibble (4-bit immediate)
    nn: jnp.ndarray  # Last byte (8-bit immediate)
    nnn: jnp.ndarray # Last 12 bits (12-bit address)


def decode(instruction) -> DecodedInstruction:
    """Decode 16-bit instruction into its variant and operands."""
    raw = jnp.asarray(instruction, dtype=jnp.uint16)
    return DecodedInstruction(
        raw=raw,
        op=OPCODE_TABLE[raw].astype(jnp.int32),
        x=((raw & 0x0F00) >> 8).astype(jnp.int32),
        y=((raw & 0x00F0) >> 4).astype(jnp.int32),
        n=(raw & 0x000F).astype(jnp.int32),
        nn=(raw & 0x00FF).astype(jnp.uint8),
        nnn=(raw & 0x0FFF).astype(jnp.uint16),
    )


def op_of(instruction: int) -> Op:
    return Op(int(OPCODE_TABLE[instruction & 0xFFFF]))


_FORMATS = {
    Op.INVALID: "DW   0x{raw:04X}",
    Op.CLEAR_SCREEN: "CLS",
    Op.RETURN: "RET",
    Op.JUMP: "JP   0x{nnn:03X}",
    Op.CALL: "CALL 0x{nnn:03X}",
    Op.SKIP_EQ_IMM: "SE   V{x:X}, 0x{nn:02X}",
    Op.SKIP_NE_IMM: "SNE  V{x:X}, 0x{nn:02X}",
    Op.SKIP_EQ_REG: "SE   V{x:X}, V{y:X}",
    Op.SET_IMM: "LD   V{x:X}, 0x{nn:02X}",
    Op.ADD_IMM: "ADD  V{x:X}, 0x{nn:02X}",
    Op.SET_REG: "LD   V{x:X}, V{y:X}",
    Op.OR: "OR   V{x:X}, V{y:X}",
    Op.AND: "AND  V{x:X}, V{y:X}",
    Op.XOR: "XOR  V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD  V{x:X}, V{y:X}",
    Op.SUB: "SUB  V{x:X}, V{y:X}",
    Op.SHIFT_RIGHT: "SHR  V{x:X}, V{y:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHIFT_LEFT: "SHL  V{x:X}, V{y:X}",
    Op.SKIP_NE_REG: "SNE  V{x:X}, V{y:X}",
    Op.SET_INDEX: "LD   I, 0x{nnn:03X}",
    Op.JUMP_OFFSET: "JP   V0, 0x{nnn:03X}",
    Op.RANDOM: "RND  V{x:X}, 0x{nn:02X}",
    Op.DRAW: "DRW  V{x:X}, V{y:X}, {n}",
    Op.SKIP_KEY: "SKP  V{x:X}",
    Op.SKIP_NOT_KEY: "SKNP V{x:X}",
    Op.GET_DELAY: "LD   V{x:X}, DT",
    Op.WAIT_KEY: "LD   V{x:X}, K",
    Op.SET_DELAY: "LD   DT, V{x:X}",
    Op.SET_SOUND: "LD   ST, V{x:X}",
    Op.ADD_INDEX: "ADD  I, V{x:X}",
    Op.FONT_CHARACTER: "LD   F, V{x:X}",
    Op.BCD: "LD   B, V{x:X}",
    Op.STORE_REGISTERS: "LD   [I], V{x:X}",
    Op.LOAD_REGISTERS: "LD   V{x:X}, [I]",
}


def disassemble(instruction: int, quirks=None) -> str:
    """Render a word as assembler text, e.g. ``0x6A05`` -> ``LD   VA, 0x05``.

    B-prefixed jumps are listed in BNNN form unless ``quirks`` enables
    ``jumping``, in which case the BXNN form is used.
    """
    instruction &= 0xFFFF
    op = op_of(instruction)
    template = _FORMATS[op]
    if op is Op.JUMP_OFFSET and quirks is not None and quirks.jumping:
        template = "JP   V{x:X}, 0x{nnn:03X}"
    return template.format(
        raw=instruction,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )


def disassemble_rom(rom: bytes, origin: int, quirks=None):
    """Yield ``(address, word, text)`` for each big-endian word of ``rom``."""
    for offset in range(0, len(rom) - 1, 2):
        word = (rom[offset] << 8) | rom[offset + 1]
        yield origin + offset, word, disassemble(word, quirks)

"""Per-session emulator configuration."""

from flax.struct import dataclass

from jaxchip.constants import DEFAULT_CYCLES_PER_FRAME, STACK_SIZE
from jaxchip.quirks import Quirks, get_quirks, DEFAULT_PRESET

INVALID_INSTRUCTION_POLICIES = ("halt", "skip")


@dataclass
class EmulatorConfig:
    """Settings fixed for the lifetime of an emulator session.

    Attributes:
        quirks: Semantic toggles for the instruction handlers
        cycles_per_frame: Instructions executed per 60 Hz frame by ``run_frame``
        stack_size: Maximum call depth before CALL faults
        invalid_instruction: "halt" to stop on an unknown opcode, "skip" to
            record it and continue with the next instruction
    """
    quirks: Quirks = Quirks()
    cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME
    stack_size: int = STACK_SIZE
    invalid_instruction: str = "halt"

    def validate(self) -> "EmulatorConfig":
        if self.invalid_instruction not in INVALID_INSTRUCTION_POLICIES:
            raise ValueError(
                f"Unsupported invalid_instruction policy '{self.invalid_instruction}'. "
                f"Supported: {list(INVALID_INSTRUCTION_POLICIES)}"
            )
        if self.cycles_per_frame < 1:
            raise ValueError(f"cycles_per_frame must be positive, got {self.cycles_per_frame}")
        if not 1 <= self.stack_size <= 255:
            raise ValueError(f"stack_size must be in [1, 255], got {self.stack_size}")
        return self

    @property
    def halt_on_invalid(self) -> bool:
        return self.invalid_instruction == "halt"


def from_preset(name: str = DEFAULT_PRESET, **kwargs) -> EmulatorConfig:
    """Build a validated config from a quirk preset.

    Keyword arguments naming ``EmulatorConfig`` fields configure the session;
    any other keyword overrides a quirk of the preset.
    """
    config_fields = {"cycles_per_frame", "stack_size", "invalid_instruction"}
    config_kwargs = {k: v for k, v in kwargs.items() if k in config_fields}
    quirk_overrides = {k: v for k, v in kwargs.items() if k not in config_fields}
    return EmulatorConfig(quirks=get_quirks(name, **quirk_overrides), **config_kwargs).validate()

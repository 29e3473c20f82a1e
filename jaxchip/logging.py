"""Console logging utilities for the jaxchip host.

The pure emulator core never logs; the host-facing ``Chip8`` object and the
command line runner report through a :class:`ConsoleLogger`.
"""

import time
import sys
from typing import Optional

from jaxchip.state import EmulatorState


class ConsoleLogger:
    """Levelled console logger with optional colours and timestamps."""

    def __init__(
        self,
        name: str = "jaxchip",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

        self.colors = (
            {
                "DEBUG": "\033[36m",
                "INFO": "\033[32m",
                "WARNING": "\033[33m",
                "ERROR": "\033[31m",
                "CRITICAL": "\033[35m",
                "RESET": "\033[0m"
            }
            if self.use_colors
            else {
                k: ""
                for k in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "RESET"]
            }
        )

        self.level_order = {
            "DEBUG": 0,
            "INFO": 1,
            "WARNING": 2,
            "ERROR": 3,
            "CRITICAL": 4,
        }
        if self.log_level not in self.level_order:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(self.level_order.keys())}"
            )

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.level_order.get(level.upper(), 1) >= self.level_order.get(
            self.log_level, 1
        )

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            color = self.colors.get(level.upper(), "")
            reset = self.colors["RESET"]
            level_str = f"{color}{level_str}{reset}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            formatted = self._format_message(level, message)
            print(formatted, file=self.stream, flush=True)

    def debug(self, message: str):
        """Log debug message."""
        self.log("DEBUG", message)

    def info(self, message: str):
        """Log info message."""
        self.log("INFO", message)

    def warning(self, message: str):
        """Log warning message."""
        self.log("WARNING", message)

    def error(self, message: str):
        """Log error message."""
        self.log("ERROR", message)

    def critical(self, message: str):
        """Log critical message."""
        self.log("CRITICAL", message)

    def log_state(self, state: EmulatorState, level: str = "DEBUG", title: Optional[str] = None):
        """Log a register dump of ``state``."""
        if not self._should_log(level):
            return
        if title:
            self.log(level, title)
        for line in format_registers(state).splitlines():
            self.log(level, f"  {line}")


def format_registers(state: EmulatorState) -> str:
    """Render PC, I, timers, stack depth and V0-VF as text."""
    registers = [int(v) for v in state.V]
    lines = [
        f"PC: 0x{int(state.pc):03X}  I: 0x{int(state.I):03X}  "
        f"DT: {int(state.delay_timer)}  ST: {int(state.sound_timer)}  "
        f"SP: {int(state.stack.pointer)}/{state.stack.capacity}"
    ]
    for row in range(0, 16, 4):
        lines.append(" ".join(f"V{i:X}:{registers[i]:02X}" for i in range(row, row + 4)))
    return "\n".join(lines)

"""Tests for the host-facing Chip8 machine."""

import io

import numpy as np
import pytest
from jaxchip import (
    Chip8, StepResult, from_preset, RomTooLarge, InvalidInstruction, StackUnderflow,
    EmulatorHalted, SCREEN_WIDTH, SCREEN_HEIGHT,
)
from jaxchip.logging import ConsoleLogger


def _program(*words):
    return b"".join(word.to_bytes(2, "big") for word in words)


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def machine(log_stream):
    return Chip8(logger=ConsoleLogger(log_level="DEBUG", stream=log_stream))


class TestExecution:

    def test_clear_screen(self, machine):
        machine.load_program(_program(0x00E0))
        assert machine.execute_instruction() is StepResult.EXECUTED
        assert not machine.get_display_snapshot().any()
        assert machine.pc == 0x202

    def test_set_then_add(self, machine):
        machine.load_program(_program(0x6A05, 0x7A03))
        machine.execute_instruction()
        machine.execute_instruction()
        assert machine.registers[0xA] == 8

    def test_call_and_return(self, machine):
        machine.load_program(_program(0x2204, 0x0000, 0x00EE))
        machine.execute_instruction()
        machine.execute_instruction()
        assert machine.pc == 0x202

    def test_display_snapshot(self, machine):
        machine.load_program(_program(0xA050, 0xD005))
        machine.execute_instruction()
        machine.execute_instruction()
        snapshot = machine.get_display_snapshot()

        assert snapshot.shape == (SCREEN_WIDTH, SCREEN_HEIGHT)
        assert snapshot.dtype == np.bool_
        assert snapshot[0, 0]
        snapshot[:] = False
        assert machine.get_display_snapshot()[0, 0]

    def test_sound(self, machine):
        machine.load_program(_program(0x6002, 0xF018))
        machine.execute_instruction()
        machine.execute_instruction()
        assert machine.is_sound_active()
        machine.tick_timers()
        machine.tick_timers()
        assert not machine.is_sound_active()

    def test_run_frame(self, log_stream):
        machine = Chip8(from_preset(cycles_per_frame=5), logger=ConsoleLogger(stream=log_stream))
        machine.load_program(_program(0x7001, 0x1200))
        machine.run_frame()
        assert machine.registers[0] == 3


class TestKeyWait:

    def test_awaiting_key(self, machine):
        machine.load_program(_program(0xF30A, 0x6E01))
        assert machine.execute_instruction() is StepResult.AWAITING_KEY
        assert machine.awaiting_key
        assert machine.execute_instruction() is StepResult.AWAITING_KEY
        assert machine.pc == 0x202

        machine.set_key(0xD, True)
        machine.set_key(0xD, False)
        assert not machine.awaiting_key
        assert machine.registers[3] == 0xD
        assert machine.execute_instruction() is StepResult.EXECUTED
        assert machine.registers[0xE] == 1

    @pytest.mark.parametrize("index", [-1, 16, 99])
    def test_set_key_rejects_bad_index(self, machine, index):
        with pytest.raises(ValueError):
            machine.set_key(index, True)


class TestFaults:

    def test_rom_too_large_leaves_machine_unchanged(self, machine):
        machine.load_program(_program(0x6A05))
        with pytest.raises(RomTooLarge):
            machine.load_program(bytes(4096))
        machine.execute_instruction()
        assert machine.registers[0xA] == 5

    def test_invalid_instruction_halts(self, machine, log_stream):
        machine.load_program(_program(0x6A05, 0x0123))
        machine.execute_instruction()
        with pytest.raises(InvalidInstruction) as excinfo:
            machine.execute_instruction()

        assert excinfo.value.address == 0x202
        assert excinfo.value.opcode == 0x0123
        assert machine.halted
        assert machine.pc == 0x202
        assert machine.get_last_error() is excinfo.value
        assert "Halted" in log_stream.getvalue()

    def test_halted_machine_refuses_to_run(self, machine):
        machine.load_program(_program(0x00EE))
        with pytest.raises(StackUnderflow):
            machine.execute_instruction()
        with pytest.raises(EmulatorHalted):
            machine.execute_instruction()
        with pytest.raises(EmulatorHalted):
            machine.run_frame()

    def test_run_frame_raises_fault(self, machine):
        machine.load_program(_program(0x7001, 0x00EE))
        with pytest.raises(StackUnderflow):
            machine.run_frame()
        assert machine.registers[0] == 1

    def test_reset_reloads_program(self, machine):
        machine.load_program(_program(0x6A05, 0x00EE))
        machine.execute_instruction()
        with pytest.raises(StackUnderflow):
            machine.execute_instruction()

        machine.reset()
        assert not machine.halted
        assert machine.get_last_error() is None
        assert machine.pc == 0x200
        assert machine.registers[0xA] == 0
        machine.execute_instruction()
        assert machine.registers[0xA] == 5

    def test_buzzer_stops_after_halt(self, machine):
        machine.load_program(_program(0x6010, 0xF018, 0x00EE))
        machine.execute_instruction()
        machine.execute_instruction()
        with pytest.raises(StackUnderflow):
            machine.execute_instruction()
        assert machine.is_sound_active()

        for _ in range(100):
            machine.tick_timers()
        assert not machine.is_sound_active()

    def test_skip_policy(self, log_stream):
        machine = Chip8(
            from_preset(invalid_instruction="skip", cycles_per_frame=3),
            logger=ConsoleLogger(stream=log_stream),
        )
        machine.load_program(_program(0x0123, 0x6A05, 0x1204))
        machine.run_frame()

        assert not machine.halted
        assert machine.registers[0xA] == 5
        assert isinstance(machine.get_last_error(), InvalidInstruction)
        assert "Skipped" in log_stream.getvalue()


class TestLoading:

    def test_second_load_starts_from_power_on(self, machine):
        machine.load_program(_program(0x6001, 0x6102, 0x6203))
        machine.execute_instruction()
        machine.execute_instruction()

        machine.load_program(_program(0x00E0))
        assert machine.pc == 0x200
        assert not machine.registers.any()
        memory = np.array(machine.state.memory)
        assert list(memory[0x200:0x202]) == [0x00, 0xE0]
        assert not memory[0x202:0x206].any()

    def test_load_clears_halt(self, machine):
        machine.load_program(_program(0x00EE))
        with pytest.raises(StackUnderflow):
            machine.execute_instruction()

        machine.load_program(_program(0x6A05))
        assert not machine.halted
        assert machine.get_last_error() is None
        machine.execute_instruction()
        assert machine.registers[0xA] == 5

    def test_reset_reloads_latest_program(self, machine):
        machine.load_program(_program(0x6A05))
        machine.load_program(_program(0x6B07))
        machine.reset()
        machine.execute_instruction()
        assert machine.registers[0xA] == 0
        assert machine.registers[0xB] == 7


    def test_load_from_path(self, machine, tmp_path):
        rom = tmp_path / "prog.ch8"
        rom.write_bytes(_program(0x6B07))
        machine.load_program(str(rom))
        machine.execute_instruction()
        assert machine.registers[0xB] == 7

    def test_seed_reproducible(self):
        values = []
        for _ in range(2):
            machine = Chip8(seed=123, logger=ConsoleLogger(stream=io.StringIO()))
            machine.load_program(_program(0xC0FF))
            machine.execute_instruction()
            values.append(int(machine.registers[0]))
        assert values[0] == values[1]

"""Tests for the headless command line runner."""

from jaxchip.cli import main, render_text
import numpy as np


def _write_rom(tmp_path, *words):
    rom = tmp_path / "prog.ch8"
    rom.write_bytes(b"".join(word.to_bytes(2, "big") for word in words))
    return rom


def test_render_text():
    display = np.zeros((3, 2), dtype=bool)
    display[1, 0] = True
    assert render_text(display) == ".#.\n..."


def test_disassemble(tmp_path, capsys):
    rom = _write_rom(tmp_path, 0x6A05, 0x00E0)
    assert main([str(rom), "--disassemble"]) == 0
    out = capsys.readouterr().out
    assert "200: 6A05  LD   VA, 0x05" in out
    assert "202: 00E0  CLS" in out


def test_run_rom(tmp_path, capsys):
    rom = _write_rom(tmp_path, 0xA050, 0xD005, 0x1204)
    assert main([str(rom), "--frames", "2", "--no-progress", "--log-level", "ERROR"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("####.")
    assert out[1].startswith("#..#.")
    assert any(line.startswith("PC: 0x204") for line in out)


def test_fault_sets_exit_status(tmp_path, capsys):
    rom = _write_rom(tmp_path, 0x00EE)
    assert main([str(rom), "--frames", "1", "--no-progress", "--log-level", "CRITICAL"]) == 1


def test_missing_rom(tmp_path):
    assert main([str(tmp_path / "missing.ch8"), "--no-progress"]) == 1


def test_disassemble_uses_preset_jump_form(tmp_path, capsys):
    rom = _write_rom(tmp_path, 0xB250)
    assert main([str(rom), "--disassemble", "--preset", "schip"]) == 0
    assert "200: B250  JP   V2, 0x250" in capsys.readouterr().out

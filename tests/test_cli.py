"""
Tests for the command line helpers in main.py.

Usage:
    pytest tests/test_cli.py
"""

import random

import pytest

import main
from bingo_scanner.plates import Plate, PlateStore, generate_plates
from bingo_scanner.scanner import CellResult, ScanResult
from bingo_scanner.settings import DEFAULT_SETTINGS


def _settings(tmp_path):
    return dict(DEFAULT_SETTINGS, plates_file=str(tmp_path / "plates.json"))


def test_format_grid_marks_empty_and_unresolved():
    grid = [[5, None, None]]
    cells = [
        CellResult(row=0, col=0, value=5, empty=False, ink_ratio=0.2),
        CellResult(row=0, col=1, value=None, empty=True, ink_ratio=0.0),
        CellResult(row=0, col=2, value=None, empty=False, ink_ratio=0.1),
    ]
    result = ScanResult(grid=grid, cell_results=cells, quad_found=True, processing_time_ms=1.0)

    assert main.format_grid(result) == " 5  .  ?"


def test_parse_scan_args():
    args = main.parse_args(["scan", "a.jpg", "b.jpg", "--rows", "5", "--save"])
    assert args.command == "scan"
    assert args.images == ["a.jpg", "b.jpg"]
    assert (args.rows, args.cols) == (5, None)
    assert args.save
    assert args.func is main.cmd_scan


def test_command_required():
    with pytest.raises(SystemExit):
        main.parse_args([])


def test_generate_then_score(tmp_path, capsys):
    settings = _settings(tmp_path)

    assert main.cmd_generate(main.parse_args(["generate", "--count", "3"]), settings) == 0
    plates = PlateStore(settings["plates_file"]).load()
    assert len(plates) == 3

    called = [str(n) for n in plates[0].numbers()]
    capsys.readouterr()
    assert main.cmd_score(main.parse_args(["score"] + called), settings) == 0

    first = capsys.readouterr().out.splitlines()[0]
    assert first.split()[0] == "15/15"


def test_plates_listing(tmp_path, capsys):
    settings = _settings(tmp_path)
    assert main.cmd_plates(main.parse_args(["plates"]), settings) == 0
    assert "No plates stored" in capsys.readouterr().out

    plate = generate_plates(1, rng=random.Random(3))[0]
    PlateStore(settings["plates_file"]).save([plate])
    main.cmd_plates(main.parse_args(["plates"]), settings)
    out = capsys.readouterr().out
    assert str(plate.id) in out
    assert plate.format() in out


def test_store_records_scanned_grid(tmp_path):
    store = PlateStore(tmp_path / "plates.json")
    grid = [[None] * 9 for _ in range(3)]
    grid[1][4] = 45

    stored = store.add([Plate.from_grid(grid)])
    assert stored[0].numbers() == [45]


def test_logging_configured_before_settings_load(tmp_path, monkeypatch):
    """Warnings about a broken config.json must reach the configured handlers."""
    config = tmp_path / "config.json"
    config.write_text("{broken", encoding="utf-8")
    order = []

    def fake_setup_logging(debug):
        order.append("logging")

    def recording_load_settings(path):
        order.append("settings")
        return _settings(tmp_path)

    monkeypatch.setattr(main, "setup_logging", fake_setup_logging)
    monkeypatch.setattr(main, "load_settings", recording_load_settings)

    with pytest.raises(SystemExit) as exit_info:
        main.main(["--config", str(config), "plates"])

    assert exit_info.value.code == 0
    assert order == ["logging", "settings"]

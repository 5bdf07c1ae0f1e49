"""
Tests for the full scan pipeline and batch scanning.

Recognition is scripted so these run without a tesseract install.

Usage:
    pytest tests/test_pipeline.py
"""

import numpy as np
import pytest
from PIL import Image

from bingo_scanner.scanner import (
    RecognizerLoadError,
    ScanStage,
    SegmentationMode,
    TicketScanner,
    load_image,
)

from conftest import ScriptedRecognizer, draw_grid_ticket

FILLED = [(0, 0), (1, 4), (2, 8)]


def _photo():
    """3x9 ticket with three filled cells, lying on a dark table."""
    return draw_grid_ticket(filled=FILLED, paper=6, margin=40)


def _blank():
    return np.full((50, 100, 3), 255, dtype=np.uint8)


class RecordingListener:
    def __init__(self):
        self.events = []

    def on_progress(self, index, total, label):
        self.events.append((index, total, label))


class BrokenListener:
    def on_progress(self, index, total, label):
        raise RuntimeError("listener gone")


def test_scan_ticket_end_to_end():
    recognizer = ScriptedRecognizer([
        "", "7",      # (0,0): second variant reads 7
        "12", "445",  # (1,4): 12 is out of range, 445 -> 45
    ])                # (2,8): nothing readable
    scanner = TicketScanner(recognizer)

    result = scanner.scan(_photo(), rows=3, cols=9)

    assert result.quad_found
    assert result.grid == [
        [7] + [None] * 8,
        [None] * 4 + [45] + [None] * 4,
        [None] * 9,
    ]
    assert result.empty_count == 24
    assert result.filled_count == 2
    assert result.unresolved_count == 1

    by_cell = {(c.row, c.col): c for c in result.cell_results}
    assert by_cell[(0, 0)].attempts == 2
    assert by_cell[(1, 4)].attempts == 2
    assert by_cell[(1, 4)].raw_text == "445"
    # Bottom row: 4 masks x (base, wide, tall)
    assert by_cell[(2, 8)].attempts == 12
    assert by_cell[(0, 1)].attempts == 0
    assert len(recognizer.calls) == 16


def test_segmentation_mode_per_column():
    recognizer = ScriptedRecognizer(["", "7", "12", "445"])
    TicketScanner(recognizer).scan(_photo())

    modes = [call["mode"] for call in recognizer.calls]
    assert modes[:2] == [SegmentationMode.SINGLE_CHAR] * 2
    assert set(modes[2:]) == {SegmentationMode.SINGLE_LINE}


def test_variants_are_upscaled_crops():
    recognizer = ScriptedRecognizer(["5"])
    TicketScanner(recognizer).scan(_photo())
    assert recognizer.calls[0]["shape"][1] == 160


def test_stages_advance_to_done():
    recognizer = ScriptedRecognizer()
    scanner = TicketScanner(recognizer)
    seen = []
    recognizer.observer = lambda: seen.append(scanner.stage)

    scanner.scan(_photo())

    assert set(seen) == {ScanStage.RECOGNIZING}
    assert scanner.stage is ScanStage.DONE


def test_blank_image_falls_back_and_skips_recognition():
    recognizer = ScriptedRecognizer()
    result = TicketScanner(recognizer).scan(_blank(), rows=3, cols=9)

    assert not result.quad_found
    assert result.grid == [[None] * 9 for _ in range(3)]
    assert result.empty_count == 27
    assert recognizer.calls == []


def test_pil_input():
    recognizer = ScriptedRecognizer()
    result = TicketScanner(recognizer).scan(Image.new("RGB", (100, 50), "white"), rows=2, cols=5)
    assert (result.rows, result.cols) == (2, 5)


def test_scan_releases_recognizer():
    recognizer = ScriptedRecognizer()
    scanner = TicketScanner(recognizer)
    scanner.scan(_blank())

    assert recognizer.load_calls == 1
    assert recognizer.terminate_calls == 1
    assert not scanner.is_open


def test_session_loads_once():
    recognizer = ScriptedRecognizer()
    with TicketScanner(recognizer) as scanner:
        scanner.scan(_blank())
        scanner.scan(_blank())
        assert scanner.is_open

    assert recognizer.load_calls == 1
    assert recognizer.terminate_calls == 1


def test_load_failure_is_fatal():
    scanner = TicketScanner(ScriptedRecognizer(fail_load=True))
    with pytest.raises(RecognizerLoadError):
        scanner.scan(_blank())
    with pytest.raises(RecognizerLoadError):
        scanner.scan_batch([_blank()])


def test_termination_failure_is_swallowed():
    recognizer = ScriptedRecognizer(fail_terminate=True)
    TicketScanner(recognizer).scan(_blank())
    assert recognizer.terminate_calls == 1
    assert not recognizer.is_loaded


def test_invalid_grid_rejected():
    scanner = TicketScanner(ScriptedRecognizer())
    with pytest.raises(ValueError):
        scanner.scan(_blank(), rows=0, cols=9)
    with pytest.raises(ValueError):
        scanner.scan_batch([_blank()], rows=3, cols=-1)


def test_batch_skips_failed_item(tmp_path):
    """Image 2 cannot be loaded; images 1 and 3 still produce grids."""
    recognizer = ScriptedRecognizer()
    listener = RecordingListener()
    missing = tmp_path / "missing.png"

    results = TicketScanner(recognizer).scan_batch(
        [_blank(), missing, _blank()], rows=3, cols=9, listener=listener
    )

    assert [r.label for r in results] == ["image 1", "image 3"]
    assert listener.events == [
        (1, 3, "image 1"),
        (2, 3, "missing.png"),
        (3, 3, "image 3"),
    ]
    assert recognizer.load_calls == 1
    assert recognizer.terminate_calls == 1


def test_batch_from_files(tmp_path):
    path = tmp_path / "ticket.png"
    Image.new("RGB", (90, 30), "white").save(path)

    results = TicketScanner(ScriptedRecognizer()).scan_batch([str(path)])
    assert len(results) == 1
    assert results[0].label == "ticket.png"


def test_listener_failure_does_not_abort_batch():
    results = TicketScanner(ScriptedRecognizer()).scan_batch(
        [_blank(), _blank()], listener=BrokenListener()
    )
    assert len(results) == 2


def test_load_image(tmp_path):
    path = tmp_path / "red.png"
    Image.new("RGB", (3, 2), (255, 0, 0)).save(path)

    image = load_image(path)
    assert image.shape == (2, 3, 3)
    assert image[0, 0].tolist() == [0, 0, 255]

    with pytest.raises(OSError):
        load_image(tmp_path / "nope.png")


def test_sixteen_bit_photo_scans_like_eight_bit():
    """A 16-bit array (e.g. cv2.imread with IMREAD_UNCHANGED) is scanned, not rejected."""
    texts = ["", "7", "12", "445"]
    expected = TicketScanner(ScriptedRecognizer(texts)).scan(_photo())

    deep = _photo().astype(np.uint16) * 257
    result = TicketScanner(ScriptedRecognizer(texts)).scan(deep)

    assert result.quad_found
    assert result.grid == expected.grid

"""Tests for the Tesseract recognizer with pytesseract calls patched out."""

from unittest.mock import patch

import pytesseract
import pytest
from PIL import Image

from alttext.ocr.recognizer import TesseractRecognizer
from tests.conftest import png_data_url

pytestmark = [pytest.mark.fast]


def _data(rows):
    """Build an image_to_data DICT from (text, conf, block, par, line, left) rows."""
    return {
        "text": [r[0] for r in rows],
        "conf": [r[1] for r in rows],
        "block_num": [r[2] for r in rows],
        "par_num": [r[3] for r in rows],
        "line_num": [r[4] for r in rows],
        "left": [r[5] for r in rows],
        "top": [10 for _ in rows],
        "width": [30 for _ in rows],
        "height": [12 for _ in rows],
    }


def test_recognize_parses_words_and_confidence():
    """Empty and negative-confidence entries are dropped and confidences scaled to [0, 1]."""
    rows = [
        ("", "-1", 1, 1, 1, 0),
        ("Total:", "90", 1, 1, 1, 5),
        ("$42.50", "80.5", 1, 1, 1, 40),
        ("x", -1, 1, 1, 1, 80),
    ]
    image = Image.new("RGB", (100, 40), "white")
    with patch("pytesseract.image_to_data", return_value=_data(rows)) as image_to_data:
        result = TesseractRecognizer(language="deu").recognize(image)

    assert result.text == "Total: $42.50"
    assert result.confidence == pytest.approx(0.8525)
    assert [w.text for w in result.words] == ["Total:", "$42.50"]
    assert result.words[1].bbox.x0 == 40
    assert result.words[1].bbox.x1 == 70
    assert result.words[1].bbox.y1 == 22
    args, kwargs = image_to_data.call_args
    assert args[0] is image
    assert kwargs["lang"] == "deu"
    assert kwargs["output_type"] == pytesseract.Output.DICT


def test_recognize_groups_lines_by_block_paragraph_and_line():
    """Words on different (block, par, line) keys land on separate lines."""
    rows = [
        ("Quarterly", "95", 1, 1, 1, 0),
        ("Revenue", "93", 1, 1, 1, 60),
        ("Q1", "88", 1, 1, 2, 0),
        ("Footnote", "70", 2, 1, 1, 0),
    ]
    with patch("pytesseract.image_to_data", return_value=_data(rows)):
        result = TesseractRecognizer().recognize(Image.new("RGB", (10, 10)))
    assert result.text == "Quarterly Revenue\nQ1\nFootnote"


def test_recognize_no_words():
    """No usable entries gives empty text with zero confidence."""
    with patch("pytesseract.image_to_data", return_value=_data([("  ", "-1", 1, 1, 1, 0)])):
        result = TesseractRecognizer().recognize(Image.new("RGB", (10, 10)))
    assert result.text == ""
    assert result.confidence == 0.0
    assert result.words == []


def test_recognize_loads_locators():
    """A locator is decoded into an image before it is handed to Tesseract."""
    with patch("pytesseract.image_to_data", return_value=_data([("Hi", "50", 1, 1, 1, 0)])) as image_to_data:
        result = TesseractRecognizer().recognize(png_data_url())
    assert isinstance(image_to_data.call_args.args[0], Image.Image)
    assert result.text == "Hi"


def test_initialize_sets_command_and_reads_version():
    """initialize() applies a custom binary path and checks the engine version."""
    with (
        patch.object(pytesseract.pytesseract, "tesseract_cmd", "tesseract"),
        patch("pytesseract.get_tesseract_version", return_value="5.3.0") as version,
    ):
        TesseractRecognizer(tesseract_cmd="/opt/tesseract/bin/tesseract").initialize()
        assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"
    version.assert_called_once()

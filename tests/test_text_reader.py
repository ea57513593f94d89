"""Tests for the EasyOCR-backed sign reader (no model download)."""

import numpy as np
import pytest

from metroguide.ocr import TextReader
from metroguide.ocr import text_reader


class _StubEasyOcr:
    """Stands in for easyocr.Reader inside a test; returns scripted fragments."""

    def __init__(self, languages, gpu=False):
        self.languages = languages
        self.gpu = gpu
        self.fragments = []
        self.error = None
        self.seen_shapes = []

    def readtext(self, image, detail=1, paragraph=False):
        self.seen_shapes.append(image.shape)
        if self.error is not None:
            raise self.error
        return self.fragments


@pytest.fixture
def reader(monkeypatch) -> TextReader:
    monkeypatch.setattr(text_reader.easyocr, "Reader", _StubEasyOcr)
    return TextReader(use_gpu=False)


class TestTextReader:
    """Test fragment filtering and failure handling."""

    def test_languages(self, reader):
        """Test Spanish and English are loaded on CPU."""
        assert reader.reader.languages == ["es", "en"]
        assert reader.reader.gpu is False

    def test_joins_confident_fragments(self, reader):
        """Test low-confidence and blank fragments are dropped."""
        reader.reader.fragments = [
            (None, "Dirección a", 0.9),
            (None, "Los Leones", 0.7),
            (None, "xx", 0.1),
            (None, "  ", 0.95),
        ]

        text, conf = reader.extract_text(np.zeros((80, 200, 3), dtype=np.uint8))

        assert text == "Dirección a Los Leones"
        assert conf == pytest.approx(0.8)

    def test_small_crops_upscaled(self, reader):
        """Test crops under 64 px are enlarged before recognition."""
        reader.read_text(np.zeros((32, 100, 3), dtype=np.uint8))

        assert reader.reader.seen_shapes == [(64, 200, 3)]

    def test_tiny_and_empty_crops_skipped(self, reader):
        """Test crops below the minimum size never reach the model."""
        assert reader.extract_text(np.zeros((10, 200, 3), dtype=np.uint8)) == ("", 0.0)
        assert reader.extract_text(None) == ("", 0.0)
        assert reader.reader.seen_shapes == []

    def test_read_text_never_raises(self, reader):
        """Test recognition errors become empty text."""
        reader.reader.error = RuntimeError("CUDA out of memory")

        assert reader(np.zeros((80, 200, 3), dtype=np.uint8)) == ""

    def test_grayscale_input(self, reader):
        """Test single-channel crops are converted before enhancement."""
        reader.reader.fragments = [(None, "Salida", 0.8)]

        assert reader.read_text(np.zeros((80, 200), dtype=np.uint8)) == "Salida"

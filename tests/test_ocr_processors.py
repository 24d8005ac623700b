"""
Tests for OCR processor helpers, the Tesseract engine and the engine factory.
"""

import io

import pytest
import pytesseract
from PIL import Image

from docintel.config import Settings
from docintel.exceptions import EngineNotAvailableError, OCREngineError
from docintel.models import BoundingBox, OCROptions, OCRWord
from docintel.ocr_processors import (
    ENGINE_PREFERENCE,
    AzureReadProcessor,
    ImagePreprocessor,
    TesseractProcessor,
    create_default_processors,
    create_ocr_processor,
    detect_languages,
    group_words_into_lines,
    probe_tesseract,
    read_image_metadata,
)
from docintel.ocr_processors import tesseract_processor
from docintel.ocr_processors.tesseract_processor import build_tesseract_config
from docintel.orchestrator import MultiEngineOCRProcessor

TESSERACT_DATA = {
    "text": ["", "مرحبا", "بكم", "Total", " ", "100"],
    "conf": [-1, 96, 88.5, 90, -1, 75],
    "block_num": [1, 1, 1, 2, 2, 2],
    "par_num": [0, 1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 1, 1, 1],
    "left": [0, 120, 10, 10, 70, 90],
    "top": [0, 10, 12, 200, 200, 200],
    "width": [300, 80, 90, 60, 5, 40],
    "height": [100, 30, 28, 30, 30, 30],
}


def _png(width, height, dpi=None):
    buffer = io.BytesIO()
    image = Image.new("RGB", (width, height), "white")
    if dpi:
        image.save(buffer, format="PNG", dpi=(dpi, dpi))
    else:
        image.save(buffer, format="PNG")
    return buffer.getvalue()


def _word(text, x0, y0):
    return OCRWord(text=text, confidence=0.9, bbox=BoundingBox(x0=x0, y0=y0, x1=x0 + 50, y1=y0 + 20))


class TestLineGrouping:
    def test_words_within_threshold_share_a_line(self):
        lines = group_words_into_lines([
            _word("world", 70, 104),
            _word("hello", 10, 100),
            _word("next", 10, 140),
        ])

        assert [line.text for line in lines] == ["hello world", "next"]
        assert sum(len(line.words) for line in lines) == 3

    def test_arabic_lines_read_right_to_left(self):
        lines = group_words_into_lines([_word("بكم", 10, 100), _word("مرحبا", 120, 102)])
        assert lines[0].text == "مرحبا بكم"

    def test_threshold_is_configurable(self):
        words = [_word("a", 10, 100), _word("b", 70, 115)]
        assert len(group_words_into_lines(words, threshold=10.0)) == 2
        assert len(group_words_into_lines(words, threshold=20.0)) == 1

    def test_no_words(self):
        assert group_words_into_lines([]) == []


class TestImageHelpers:
    def test_read_image_metadata(self):
        metadata = read_image_metadata(_png(320, 200, dpi=300))

        assert (metadata.width, metadata.height) == (320, 200)
        assert metadata.format == "png"
        assert metadata.dpi == 300

    def test_read_image_metadata_of_garbage(self):
        metadata = read_image_metadata(b"not an image")
        assert (metadata.width, metadata.height, metadata.format) == (0, 0, "unknown")

    def test_preprocessor_upscales_small_images(self):
        enhanced = ImagePreprocessor().enhance(_png(200, 100))
        metadata = read_image_metadata(enhanced)
        assert (metadata.width, metadata.height) == (1500, 750)

    def test_preprocessor_returns_original_on_undecodable_input(self):
        assert ImagePreprocessor().enhance(b"not an image") == b"not an image"

    def test_unknown_step_is_skipped(self):
        enhanced = ImagePreprocessor(steps=["grayscale", "despeckle"]).enhance(_png(50, 40))
        assert read_image_metadata(enhanced).width == 50

    def test_detect_languages(self):
        languages = detect_languages("مرحبا hi")
        assert [lang.language for lang in languages] == ["ara", "eng"]
        assert detect_languages("12345") == []


class TestTesseractProcessor:
    def test_default_config(self):
        assert build_tesseract_config(OCROptions()) == "--oem 1 --psm 1 -c preserve_interword_spaces=1 --dpi 300"

    def test_custom_config(self):
        options = OCROptions(page_segmentation_mode=6, preserve_layout=False, dpi=150)
        assert build_tesseract_config(options) == "--oem 1 --psm 6 -c preserve_interword_spaces=0 --dpi 150"

    def test_blocks_from_data(self):
        blocks = TesseractProcessor(settings=Settings())._blocks_from_data(TESSERACT_DATA)

        assert [block.text for block in blocks] == ["مرحبا بكم", "Total 100"]
        assert blocks[0].confidence == pytest.approx((0.96 + 0.885) / 2)
        assert blocks[1].lines[0].words[1].bbox.x1 == 130

    def test_probe_without_binary(self, monkeypatch):
        def missing():
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(tesseract_processor.pytesseract, "get_tesseract_version", missing)
        assert probe_tesseract() is False

    @pytest.mark.asyncio
    async def test_process(self, monkeypatch):
        calls = {}

        def image_to_data(image, lang, config, output_type):
            calls.update(lang=lang, config=config)
            return TESSERACT_DATA

        monkeypatch.setattr(tesseract_processor.pytesseract, "image_to_data", image_to_data)

        result = await TesseractProcessor(settings=Settings()).process(
            _png(320, 200), OCROptions(enhance_image=False)
        )

        assert calls["lang"] == "ara+eng"
        assert calls["config"].startswith("--oem 1 --psm 1")
        assert result.engine == "tesseract"
        assert result.text == "مرحبا بكم\n\nTotal 100"
        assert len(result.words) == 4
        assert result.metadata.image_metadata.width == 320

    @pytest.mark.asyncio
    async def test_recognition_errors_are_wrapped(self, monkeypatch):
        def image_to_data(*args, **kwargs):
            raise RuntimeError("traineddata not found")

        monkeypatch.setattr(tesseract_processor.pytesseract, "image_to_data", image_to_data)

        with pytest.raises(OCREngineError, match="Tesseract OCR failed: traineddata not found"):
            await TesseractProcessor(settings=Settings()).process(_png(10, 10), OCROptions(enhance_image=False))

    @pytest.mark.asyncio
    async def test_missing_binary_during_recognition(self, monkeypatch):
        def image_to_data(*args, **kwargs):
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(tesseract_processor.pytesseract, "image_to_data", image_to_data)

        with pytest.raises(EngineNotAvailableError):
            await TesseractProcessor(settings=Settings()).process(_png(10, 10), OCROptions(enhance_image=False))

    def test_binary_path_is_set_once_at_init(self, monkeypatch):
        monkeypatch.setattr(tesseract_processor.pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        monkeypatch.setattr(tesseract_processor.pytesseract, "get_tesseract_version", lambda: "5.3.0")

        processor = TesseractProcessor(settings=Settings(tesseract_cmd="/opt/tesseract/bin/tesseract"))
        assert tesseract_processor.pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

        tesseract_processor.pytesseract.pytesseract.tesseract_cmd = "tesseract"
        assert processor.is_available()
        assert tesseract_processor.pytesseract.pytesseract.tesseract_cmd == "tesseract"

    @pytest.mark.asyncio
    async def test_version_checked_once_per_orchestration_call(self, monkeypatch):
        version_checks = []

        def get_tesseract_version():
            version_checks.append(1)
            return "5.3.0"

        monkeypatch.setattr(tesseract_processor.pytesseract, "get_tesseract_version", get_tesseract_version)
        monkeypatch.setattr(tesseract_processor.pytesseract, "image_to_data", lambda *args, **kwargs: TESSERACT_DATA)
        orchestrator = MultiEngineOCRProcessor([TesseractProcessor(settings=Settings())], settings=Settings())

        multi = await orchestrator.process_with_multiple_engines(_png(320, 200), OCROptions(enhance_image=False))
        assert multi.best_engine == "tesseract"
        assert len(version_checks) == 1

        await orchestrator.process_with_best_engine(_png(320, 200), OCROptions(enhance_image=False))
        assert len(version_checks) == 2


class TestFactory:
    def test_create_by_name(self, settings):
        processor = create_ocr_processor(" Azure ", settings)
        assert isinstance(processor, AzureReadProcessor)
        assert processor.name == "azure"

    def test_unknown_engine(self, settings):
        with pytest.raises(ValueError, match="Unsupported OCR engine: paddle"):
            create_ocr_processor("paddle", settings)

    def test_default_processors_in_preference_order(self, settings):
        processors = create_default_processors(settings)
        assert tuple(p.name for p in processors) == ENGINE_PREFERENCE == ("azure", "google_vision", "tesseract")

"""
Tests for the Azure Read and Google Vision engines against mocked HTTP transports.
"""

import base64
import json

import httpx
import pytest

from docintel.config import Settings
from docintel.exceptions import EngineNotAvailableError, OCREngineError, PollingTimeoutError
from docintel.ocr_processors import AzureReadProcessor, GoogleVisionProcessor, create_ocr_processor

OPERATION_URL = "https://azure.test/vision/v3.2/read/analyzeResults/op-1"

AZURE_RESULT = {
    "status": "succeeded",
    "analyzeResult": {
        "readResults": [{
            "page": 1,
            "lines": [{
                "text": "مرحبا بكم",
                "boundingBox": [10, 10, 200, 10, 200, 40, 10, 40],
                "words": [
                    {"text": "مرحبا", "boundingBox": [120, 10, 200, 10, 200, 40, 120, 40], "confidence": 0.98},
                    {"text": "بكم", "boundingBox": [10, 10, 100, 10, 100, 40, 10, 40]},
                ],
            }],
        }],
    },
}


def _google_word(text, x0, y0, x1, y1, confidence):
    return {
        "symbols": [{"text": ch} for ch in text],
        "confidence": confidence,
        "boundingBox": {"vertices": [{"x": x0, "y": y0}, {"x": x1, "y": y0}, {"x": x1, "y": y1}, {"x": x0, "y": y1}]},
    }


GOOGLE_RESPONSE = {
    "responses": [{
        "fullTextAnnotation": {
            "text": "مرحبا بكم\nHello\n",
            "pages": [{
                "property": {"detectedLanguages": [
                    {"languageCode": "ar", "confidence": 0.8},
                    {"languageCode": "en", "confidence": 0.2},
                ]},
                "blocks": [{
                    "boundingBox": {"vertices": [{"x": 10, "y": 10}, {"x": 300, "y": 10},
                                                 {"x": 300, "y": 80}, {"x": 10, "y": 80}]},
                    "paragraphs": [{"words": [
                        _google_word("بكم", 10, 12, 100, 40, 0.85),
                        _google_word("مرحبا", 120, 10, 200, 40, 0.95),
                        _google_word("Hello", 10, 50, 90, 80, 0.9),
                    ]}],
                }],
            }],
        },
    }],
}


class _Recorder:
    """Collects requests and the delays the poller asked for."""

    def __init__(self):
        self.requests = []
        self.sleeps = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)


def _azure(settings, recorder, statuses, submit_status=202, headers=None):
    pending = list(statuses)

    def handler(request):
        recorder.requests.append(request)
        if request.method == "POST":
            return httpx.Response(
                submit_status,
                headers={"Operation-Location": OPERATION_URL} if headers is None else headers,
            )
        body = pending.pop(0)
        return httpx.Response(200, json=body if isinstance(body, dict) else {"status": body})

    return AzureReadProcessor(settings=settings, transport=httpx.MockTransport(handler), sleep=recorder.sleep)


def _google(settings, recorder, status_code=200, body=None):
    def handler(request):
        recorder.requests.append(request)
        return httpx.Response(status_code, json=GOOGLE_RESPONSE if body is None else body)

    return GoogleVisionProcessor(settings=settings, transport=httpx.MockTransport(handler))


class TestAzureReadProcessor:
    @pytest.mark.asyncio
    async def test_submit_then_poll_until_succeeded(self, settings):
        recorder = _Recorder()
        engine = _azure(settings, recorder, ["running", AZURE_RESULT])

        result = await engine.process(b"image")

        submit, first_poll, second_poll = recorder.requests
        assert submit.method == "POST"
        assert str(submit.url) == "https://azure.test/vision/v3.2/read/analyze"
        assert submit.headers["Ocp-Apim-Subscription-Key"] == "azure-key"
        assert submit.headers["Content-Type"] == "application/octet-stream"
        assert submit.content == b"image"
        assert str(first_poll.url) == OPERATION_URL
        assert recorder.sleeps == [1.0, 1.0]

        assert result.engine == "azure"
        assert result.text == "مرحبا بكم"
        assert result.confidence == pytest.approx((0.98 + 0.9) / 2)
        assert [w.text for w in result.words] == ["مرحبا", "بكم"]
        assert result.lines[0].bbox.x1 == 200
        assert len(result.blocks) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, settings):
        recorder = _Recorder()
        engine = _azure(settings, recorder, ["notStarted", "running", "running"])

        with pytest.raises(PollingTimeoutError) as exc_info:
            await engine.process(b"image")

        assert exc_info.value.attempts == 3
        assert len(recorder.requests) == 4
        assert recorder.sleeps == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_provider_failure(self, settings):
        engine = _azure(settings, _Recorder(), ["running", "failed"])

        with pytest.raises(OCREngineError, match="Azure OCR processing failed"):
            await engine.process(b"image")

    @pytest.mark.asyncio
    async def test_rejected_submission(self, settings):
        recorder = _Recorder()
        engine = _azure(settings, recorder, [], submit_status=401)

        with pytest.raises(OCREngineError, match="Azure API error: 401 Unauthorized"):
            await engine.process(b"image")
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_operation_location(self, settings):
        engine = _azure(settings, _Recorder(), [], headers={})

        with pytest.raises(OCREngineError, match="No operation location returned from Azure"):
            await engine.process(b"image")

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        engine = AzureReadProcessor(settings=settings, transport=httpx.MockTransport(handler))

        with pytest.raises(OCREngineError, match="Azure request failed"):
            await engine.process(b"image")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        engine = AzureReadProcessor(settings=Settings(
            azure_computer_vision_endpoint=None, azure_computer_vision_api_key=None,
        ))

        assert not engine.is_available()
        with pytest.raises(EngineNotAvailableError):
            await engine.process(b"image")

    def test_endpoint_trailing_slash(self, settings):
        engine = AzureReadProcessor(settings=settings.model_copy(
            update={"azure_computer_vision_endpoint": "https://azure.test/"}
        ))
        assert engine.endpoint == "https://azure.test"


class TestGoogleVisionProcessor:
    @pytest.mark.asyncio
    async def test_request_shape(self, settings):
        recorder = _Recorder()
        await _google(settings, recorder).process(b"image")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.params["key"] == "google-key"
        body = json.loads(request.content)["requests"][0]
        assert body["image"]["content"] == base64.b64encode(b"image").decode("ascii")
        assert body["features"] == [{"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1}]
        assert body["imageContext"]["languageHints"] == ["ar", "en"]

    @pytest.mark.asyncio
    async def test_lines_rebuilt_from_words(self, settings):
        result = await _google(settings, _Recorder()).process(b"image")

        assert result.engine == "google_vision"
        assert result.text == "مرحبا بكم\nHello\n"
        assert [line.text for line in result.lines] == ["مرحبا بكم", "Hello"]
        assert result.confidence == pytest.approx(0.9)
        block = result.blocks[0]
        assert (block.bbox.x0, block.bbox.y0, block.bbox.x1, block.bbox.y1) == (10, 10, 300, 80)
        assert [lang.language for lang in result.metadata.detected_languages] == ["ar", "en"]

    @pytest.mark.asyncio
    async def test_languages_estimated_when_not_reported(self, settings):
        body = json.loads(json.dumps(GOOGLE_RESPONSE))
        del body["responses"][0]["fullTextAnnotation"]["pages"][0]["property"]

        result = await _google(settings, _Recorder(), body=body).process(b"image")

        assert result.metadata.detected_languages[0].language == "ara"

    @pytest.mark.asyncio
    async def test_no_text_found(self, settings):
        result = await _google(settings, _Recorder(), body={"responses": [{}]}).process(b"image")

        assert result.text == ""
        assert result.confidence == 0.0
        assert result.blocks == []

    @pytest.mark.asyncio
    async def test_error_in_response(self, settings):
        body = {"responses": [{"error": {"code": 3, "message": "Bad image data."}}]}

        with pytest.raises(OCREngineError, match="Bad image data."):
            await _google(settings, _Recorder(), body=body).process(b"image")

    @pytest.mark.asyncio
    async def test_http_error_status(self, settings):
        with pytest.raises(OCREngineError, match="Google Vision API error: 403 Forbidden"):
            await _google(settings, _Recorder(), status_code=403, body={}).process(b"image")

    def test_availability_follows_api_key(self, settings):
        assert create_ocr_processor("google_vision", settings).is_available()
        assert not create_ocr_processor(
            "google_vision", settings.model_copy(update={"google_vision_api_key": None})
        ).is_available()

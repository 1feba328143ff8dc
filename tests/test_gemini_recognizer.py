# tests/test_gemini_recognizer.py

import pytest
from unittest.mock import MagicMock

from src.domain.errors import PageRecognitionError
from src.domain.models import RasterImage
from src.infrastructure import gemini_recognizer
from src.infrastructure.gemini_recognizer import GeminiRecognizer


IMAGE = RasterImage(page_number=4, width=10, height=10, png=b"\x89PNG fake")


class _BlockedResponse:
    @property
    def text(self):
        raise ValueError("response has no valid parts")


@pytest.fixture
def genai(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(gemini_recognizer, "genai", fake)
    return fake


def test_missing_api_key_raises(genai):
    with pytest.raises(RuntimeError, match="API key"):
        GeminiRecognizer(api_key="")
    genai.configure.assert_not_called()


def test_configures_client_and_model(genai):
    recognizer = GeminiRecognizer(api_key="secret", model_name="gemini-test")

    genai.configure.assert_called_once_with(api_key="secret")
    genai.GenerativeModel.assert_called_once_with("gemini-test")
    assert recognizer.model_name == "gemini-test"


def test_recognize_sends_image_and_prompt(genai):
    model = genai.GenerativeModel.return_value
    model.generate_content.return_value = MagicMock(text="প্রথম লাইন\nsecond line")

    text = GeminiRecognizer(api_key="secret").recognize(IMAGE, language_hint="Bengali")

    assert text == "প্রথম লাইন\nsecond line"
    [parts] = model.generate_content.call_args.args
    assert parts[0] == {"mime_type": "image/png", "data": IMAGE.png}
    assert "The text might be in Bengali." in parts[1]
    assert parts[1].startswith("Extract all text from this image.")


def test_prompt_without_language_hint():
    prompt = GeminiRecognizer.build_prompt(None)
    assert "might be in" not in prompt
    assert prompt.endswith("maintaining line breaks.")


def test_blocked_response_counts_as_empty_page(genai):
    genai.GenerativeModel.return_value.generate_content.return_value = _BlockedResponse()
    assert GeminiRecognizer(api_key="secret").recognize(IMAGE) == ""


def test_request_failure_raises_page_error(genai):
    genai.GenerativeModel.return_value.generate_content.side_effect = ConnectionError("timeout")

    with pytest.raises(PageRecognitionError, match="page 4") as excinfo:
        GeminiRecognizer(api_key="secret").recognize(IMAGE)
    assert excinfo.value.page_number == 4

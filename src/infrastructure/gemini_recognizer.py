# src/infrastructure/gemini_recognizer.py

from typing import Optional

import google.generativeai as genai

from src.domain.errors import PageRecognitionError
from src.domain.interfaces import RecognitionPort
from src.domain.models import RasterImage


DEFAULT_MODEL_NAME = "gemini-2.5-flash"

PROMPT_HEADER = "Extract all text from this image."
PROMPT_FOOTER = "Respond with only the extracted text, maintaining line breaks."


class GeminiRecognizer(RecognitionPort):
    """
    Page text recognition through a Gemini vision model.

    One generate_content call per page image; no retry. A response without
    usable text counts as an empty page, a failed call raises
    PageRecognitionError.
    """

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL_NAME):
        if not api_key:
            raise RuntimeError(
                "Gemini API key is missing. Set GEMINI_API_KEY in the environment or .env file."
            )
        genai.configure(api_key=api_key)
        self._model_name = model_name
        self._model = genai.GenerativeModel(model_name)
        print(f"[GeminiRecognizer] Using model: {model_name}")

    @property
    def model_name(self) -> str:
        return self._model_name

    @staticmethod
    def build_prompt(language_hint: Optional[str] = None) -> str:
        if language_hint:
            return f"{PROMPT_HEADER} The text might be in {language_hint}. {PROMPT_FOOTER}"
        return f"{PROMPT_HEADER} {PROMPT_FOOTER}"

    def recognize(self, image: RasterImage, language_hint: Optional[str] = None) -> str:
        image_part = {"mime_type": "image/png", "data": image.png}
        prompt = self.build_prompt(language_hint)

        try:
            response = self._model.generate_content([image_part, prompt])
        except Exception as error:
            raise PageRecognitionError(
                image.page_number,
                f"Gemini request failed for page {image.page_number}: {error}",
            ) from error

        return self._response_text(response, image.page_number)

    @staticmethod
    def _response_text(response, page_number: int) -> str:
        # .text raises ValueError when the response carries no text parts
        # (blocked or empty candidate).
        try:
            text = response.text
        except ValueError as error:
            print(f"[GeminiRecognizer] ⚠ No text returned for page {page_number}: {error}")
            return ""
        return text or ""

# tests/test_main.py

import fitz
import pytest
from unittest.mock import MagicMock

import main
from src.domain.errors import PageLayoutError
from src.infrastructure.pdf_layout_provider import PyMuPdfLayoutProvider
from src.interface import cli


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def pdf_path(tmp_path):
    document = fitz.open()
    first = document.new_page(width=612, height=792)
    first.insert_text((72, 100), "Hello World", fontsize=12)
    second = document.new_page(width=612, height=792)
    second.insert_text((72, 400), "Goodbye", fontsize=12)
    path = tmp_path / "scan.pdf"
    document.save(str(path))
    document.close()
    return path


def _install_recognizer(monkeypatch, fail_on_page: int = None) -> MagicMock:
    recognizer = MagicMock()

    def recognize(image, language_hint=None):
        if image.page_number == fail_on_page:
            raise ConnectionError("service unreachable")
        return {1: "Hello World", 2: "Goodbye"}[image.page_number]

    recognizer.recognize.side_effect = recognize
    monkeypatch.setattr(main, "load_dotenv", lambda: None)
    monkeypatch.setattr(main, "GeminiRecognizer", MagicMock(return_value=recognizer))
    return recognizer


def _answer_prompts(monkeypatch, *answers) -> None:
    monkeypatch.setattr(cli.Prompt, "ask", MagicMock(side_effect=list(answers)))


# ── Argument handling ─────────────────────────────────────────────────────────

def test_rejects_non_pdf_path(tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")

    with pytest.raises(SystemExit) as excinfo:
        main.main([str(notes)])
    assert excinfo.value.code == 1


def test_rejects_missing_file(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main.main([str(tmp_path / "missing.pdf")])
    assert excinfo.value.code == 1


def test_parser_defaults():
    args = main._build_parser().parse_args(["scan.pdf"])
    assert args.lang == main.LANGUAGE_HINT
    assert args.export is None

    args = main._build_parser().parse_args(["scan.pdf", "--export"])
    assert args.export == main.EXPORT_DIRECTORY


def test_api_key_falls_back_to_api_key_variable(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("API_KEY", "fallback")
    assert main._read_api_key() == "fallback"

    monkeypatch.setenv("GEMINI_API_KEY", "primary")
    assert main._read_api_key() == "primary"


# ── Full flow ─────────────────────────────────────────────────────────────────

def test_search_and_export_matching_page(monkeypatch, pdf_path, tmp_path):
    recognizer = _install_recognizer(monkeypatch)
    _answer_prompts(monkeypatch, "hello", "n")
    export_dir = tmp_path / "out"

    main.main([str(pdf_path), "--export", str(export_dir)])

    assert recognizer.recognize.call_count == 2
    assert [p.name for p in export_dir.iterdir()] == ["page_001.png"]
    assert (export_dir / "page_001.png").read_bytes().startswith(b"\x89PNG")


def test_partial_failure_keeps_searching_recognized_pages(monkeypatch, pdf_path, tmp_path):
    _install_recognizer(monkeypatch, fail_on_page=2)
    _answer_prompts(monkeypatch, "hello", "n")
    display_error = MagicMock()
    monkeypatch.setattr(main, "display_error", display_error)
    export_dir = tmp_path / "out"

    main.main([str(pdf_path), "--export", str(export_dir)])

    assert "page 2" in display_error.call_args_list[0].args[0]
    assert (export_dir / "page_001.png").exists()


def test_failure_on_first_page_exits(monkeypatch, pdf_path):
    _install_recognizer(monkeypatch, fail_on_page=1)

    with pytest.raises(SystemExit) as excinfo:
        main.main([str(pdf_path)])
    assert excinfo.value.code == 1


def test_layout_failure_on_matching_page_is_reported(monkeypatch, pdf_path, tmp_path):
    _install_recognizer(monkeypatch)
    _answer_prompts(monkeypatch, "hello", "n")
    display_error = MagicMock()
    monkeypatch.setattr(main, "display_error", display_error)

    original_layout = PyMuPdfLayoutProvider.get_page_layout

    def failing_display_layout(self, page_number, scale):
        if scale == main.DISPLAY_SCALE:
            raise PageLayoutError(page_number, f"Text layout failed on page {page_number}")
        return original_layout(self, page_number, scale)

    monkeypatch.setattr(PyMuPdfLayoutProvider, "get_page_layout", failing_display_layout)
    export_dir = tmp_path / "out"

    main.main([str(pdf_path), "--export", str(export_dir)])

    display_error.assert_called_once_with("Text layout failed on page 1")
    assert not export_dir.exists()

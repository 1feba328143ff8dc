# main.py

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from src.application.workspace import DocumentWorkspace
from src.domain.errors import DocumentOpenError, PageLayoutError, PageRecognitionError, RenderError
from src.domain.models import HighlightRect, SearchResult
from src.infrastructure.gemini_recognizer import GeminiRecognizer
from src.infrastructure.highlight_painter import paint_highlights, write_png
from src.infrastructure.pdf_layout_provider import PyMuPdfLayoutProvider
from src.interface.cli import (
    display_welcome_banner,
    display_progress,
    display_processing_summary,
    prompt_for_query,
    display_search_result,
    display_exported,
    display_error,
    ask_continue,
)


GEMINI_MODEL_NAME = "gemini-2.5-flash"
LANGUAGE_HINT = "Bengali"
DISPLAY_SCALE = 1.5
# Recognition quality and display fidelity are tuned separately.
RECOGNITION_SCALE = 2.0
EXPORT_DIRECTORY = "highlighted_pages"


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    display_welcome_banner()

    pdf_path = Path(args.pdf)
    if pdf_path.suffix.lower() != ".pdf" or not pdf_path.is_file():
        display_error("Please select a valid PDF file.")
        sys.exit(1)

    # ── 1. Initialize infrastructure ─────────────────────────────────────────
    load_dotenv()
    try:
        recognizer = GeminiRecognizer(api_key=_read_api_key(), model_name=GEMINI_MODEL_NAME)
    except RuntimeError as error:
        display_error(str(error))
        sys.exit(1)

    workspace = DocumentWorkspace(
        layout_provider=PyMuPdfLayoutProvider(),
        recognizer=recognizer,
        display_scale=DISPLAY_SCALE,
        recognition_scale=RECOGNITION_SCALE,
        language_hint=args.lang or None,
        on_progress=display_progress,
    )

    # ── 2. Open and recognize every page ─────────────────────────────────────
    try:
        workspace.select_document(pdf_path.read_bytes(), pdf_path.name)
    except DocumentOpenError:
        display_error(workspace.error)
        sys.exit(1)

    try:
        workspace.process()
    except PageRecognitionError:
        display_error(workspace.error)
        if not workspace.recognized_pages:
            sys.exit(1)

    display_processing_summary(workspace.document)

    # ── 3. Interactive search loop ───────────────────────────────────────────
    while True:
        result = workspace.search(prompt_for_query())
        highlights = _render_matching_pages(workspace, result)
        display_search_result(result, highlights)

        if args.export and result.matching_pages:
            _export_pages(workspace, highlights, args.export)

        if not ask_continue():
            break


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-ocr-search",
        description="Recognize a PDF page by page and search the recognized text.",
    )
    parser.add_argument("pdf", help="Path to the PDF to process")
    parser.add_argument(
        "--lang",
        default=LANGUAGE_HINT,
        help=f"Language hint passed to the recognition model (default: {LANGUAGE_HINT})",
    )
    parser.add_argument(
        "--export",
        nargs="?",
        const=EXPORT_DIRECTORY,
        default=None,
        help=f"Write highlighted matching pages as PNG (default dir: {EXPORT_DIRECTORY})",
    )
    return parser


def _read_api_key() -> str:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", "")


def _render_matching_pages(
    workspace: DocumentWorkspace,
    result: SearchResult,
) -> Dict[int, List[HighlightRect]]:
    """Render each matching page first; highlights need its viewport."""
    for page_number in result.matching_pages:
        try:
            workspace.render_page(page_number)
        except (PageLayoutError, RenderError) as error:
            display_error(str(error))
    return workspace.highlights()


def _export_pages(
    workspace: DocumentWorkspace,
    highlights: Dict[int, List[HighlightRect]],
    output_directory: str,
) -> None:
    written = []
    for page_number in workspace.search_result.matching_pages:
        if page_number not in highlights:
            continue
        raster = paint_highlights(workspace.render_page(page_number), highlights[page_number])
        written.append(str(write_png(raster, output_directory)))
    display_exported(written)


if __name__ == "__main__":
    main()

import os
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import BackgroundTasks, Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel
import uvicorn

from src.application.workspace import DocumentWorkspace
from src.domain.errors import (
    DocumentOpenError,
    DocumentSupersededError,
    LayoutUnavailableError,
    OcrSearchError,
    PageLayoutError,
    PipelineBusyError,
    RenderError,
)
from src.domain.models import Document, PipelineState
from src.infrastructure.gemini_recognizer import GeminiRecognizer
from src.infrastructure.highlight_painter import paint_highlights
from src.infrastructure.pdf_layout_provider import PyMuPdfLayoutProvider

# ── Configuration ────────────────────────────────────────────────────────────
GEMINI_MODEL_NAME = "gemini-2.5-flash"
LANGUAGE_HINT = "Bengali"
DISPLAY_SCALE = 1.5
RECOGNITION_SCALE = 2.0
PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}

# ── API Models ───────────────────────────────────────────────────────────────
class SearchRequest(BaseModel):
    query: str

class SearchResponse(BaseModel):
    query: str
    matching_pages: List[int]
    message: str

class DocumentResponse(BaseModel):
    name: str
    total_pages: int
    generation: int

class StatusResponse(BaseModel):
    state: str
    document: Optional[str] = None
    current_page: int
    total_pages: int
    pages_recognized: int
    is_complete: bool
    message: str
    error: str

class HighlightSchema(BaseModel):
    x: float
    y: float
    width: float
    height: float

class PageHighlightsResponse(BaseModel):
    page_number: int
    query: str
    highlights: List[HighlightSchema]

# ── App Initialization ───────────────────────────────────────────────────────
app = FastAPI(
    title="PDF OCR Search API",
    description="Page-by-page OCR of PDFs with in-place search highlighting.",
    version="1.0.0"
)

# ── CORS Middleware ──────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:8080"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_workspace: Optional[DocumentWorkspace] = None


def get_workspace() -> DocumentWorkspace:
    """Single shared workspace, built on first use."""
    global _workspace
    if _workspace is None:
        load_dotenv()
        try:
            recognizer = GeminiRecognizer(
                api_key=os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY", ""),
                model_name=GEMINI_MODEL_NAME,
            )
        except RuntimeError as e:
            raise HTTPException(status_code=503, detail=str(e))
        _workspace = DocumentWorkspace(
            layout_provider=PyMuPdfLayoutProvider(),
            recognizer=recognizer,
            display_scale=DISPLAY_SCALE,
            recognition_scale=RECOGNITION_SCALE,
            language_hint=LANGUAGE_HINT,
        )
        print("[API] Workspace ready.")
    return _workspace

# ── Endpoints ────────────────────────────────────────────────────────────────
@app.get("/")
def read_root(workspace: DocumentWorkspace = Depends(get_workspace)):
    return {
        "message": "PDF OCR Search API is running.",
        "state": workspace.state.value,
    }

@app.get("/status", response_model=StatusResponse)
def get_status(workspace: DocumentWorkspace = Depends(get_workspace)):
    """Current pipeline state and progress of the open document."""
    document = workspace.document
    progress = workspace.progress
    return StatusResponse(
        state=workspace.state.value,
        document=document.name if document else None,
        current_page=progress.current_page,
        total_pages=progress.total_pages,
        pages_recognized=len(workspace.recognized_pages),
        is_complete=bool(document and document.is_complete),
        message=progress.message,
        error=workspace.error,
    )

@app.post("/documents", response_model=DocumentResponse)
async def upload_document(
    file: UploadFile = File(...),
    workspace: DocumentWorkspace = Depends(get_workspace),
):
    """Open a PDF. Replaces any document that was loaded or being processed."""
    filename = file.filename or "document.pdf"
    if file.content_type not in PDF_CONTENT_TYPES and not filename.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Please select a valid PDF file.")

    data = await file.read()
    try:
        document = workspace.select_document(data, filename)
    except DocumentOpenError:
        raise HTTPException(status_code=400, detail=workspace.error)

    return DocumentResponse(
        name=document.name,
        total_pages=document.total_pages,
        generation=document.generation,
    )

def _process_in_background(workspace: DocumentWorkspace, claimed: Document) -> None:
    try:
        workspace.process(claimed)
    except OcrSearchError as e:
        print(f"[API] Processing stopped: {e}")

@app.post("/process", status_code=202)
def start_processing(
    background_tasks: BackgroundTasks,
    workspace: DocumentWorkspace = Depends(get_workspace),
):
    """Start recognizing the open document's pages; poll /status for progress."""
    if workspace.document is None:
        raise HTTPException(status_code=409, detail="No document uploaded.")
    if workspace.state is not PipelineState.PROCESSING:
        raise HTTPException(
            status_code=409,
            detail=f"Document cannot be processed in state '{workspace.state.value}'.",
        )
    try:
        claimed = workspace.claim_processing()
    except PipelineBusyError:
        raise HTTPException(status_code=409, detail="Processing is already running.")
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(_process_in_background, workspace, claimed)
    return {"message": "Processing started.", "total_pages": claimed.total_pages}

@app.post("/search", response_model=SearchResponse)
def search(request: SearchRequest, workspace: DocumentWorkspace = Depends(get_workspace)):
    result = workspace.search(request.query)
    return SearchResponse(
        query=result.query,
        matching_pages=list(result.matching_pages),
        message=result.message,
    )

def _render_or_raise(workspace: DocumentWorkspace, page_number: int):
    if workspace.document is None:
        raise HTTPException(status_code=409, detail="No document uploaded.")
    try:
        return workspace.render_page(page_number)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DocumentSupersededError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (PageLayoutError, RenderError) as e:
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/pages/{page_number}/highlights", response_model=PageHighlightsResponse)
def get_page_highlights(page_number: int, workspace: DocumentWorkspace = Depends(get_workspace)):
    """Highlight rectangles, in display pixels, for the active query on one page."""
    _render_or_raise(workspace, page_number)
    try:
        rects = workspace.page_highlights(page_number)
    except LayoutUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return PageHighlightsResponse(
        page_number=page_number,
        query=workspace.search_result.query,
        highlights=[
            HighlightSchema(x=r.x, y=r.y, width=r.width, height=r.height)
            for r in rects
        ],
    )

@app.get("/pages/{page_number}/image")
def get_page_image(page_number: int, workspace: DocumentWorkspace = Depends(get_workspace)):
    """The rendered page as PNG with the active query's highlights painted on."""
    raster = _render_or_raise(workspace, page_number)
    try:
        rects = workspace.page_highlights(page_number)
    except LayoutUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(content=paint_highlights(raster, rects).png, media_type="image/png")

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

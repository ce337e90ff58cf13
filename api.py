# api.py
from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from fastapi import Body, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from cv_templates.cv_templates import list_templates
from cv_templates.sample_data import SAMPLE_CV
from functions.cv_generation import CVAssistant
from functions.document_export import PDF_MEDIA_TYPE, export_document, render_pdf
from functions.document_import import convert_document, extract_document
from functions.errors import CVMakerError, ValidationError
from functions.profile_store import ProfileStore, default_profile_path, json_file_profile_store
from functions.render_service import error_body, handle_render_request
from functions.utils.common import model_dump_compat
from schemas.api_schema import (
    ErrorResponse,
    ExportDocumentRequest,
    ExportRequest,
    GenerateRequest,
    ParseCVRequest,
    RenderResponse,
    StatusResponse,
    TemplateInfo,
    UploadedDocument,
)
from schemas.cv_schema import UserProfile

logger = structlog.get_logger().bind(module="api")

app = FastAPI(
    title="CV Maker Pro",
    version="1.0.0",
    description="CV template rendering, document export/import and AI-assisted CV writing.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Collaborator wiring (overridden in tests via app.dependency_overrides)
# ---------------------------------------------------------------------------


def get_cv_assistant() -> CVAssistant:
    return CVAssistant()


def get_profile_store() -> ProfileStore:
    return json_file_profile_store(default_profile_path())


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(CVMakerError)
async def cv_maker_error_handler(request: Request, exc: CVMakerError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log("api_request_failed", path=request.url.path, error_code=exc.error_code, error=exc.message)
    return JSONResponse(status_code=exc.http_status, content=error_body(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.warning("request_validation_error", path=request.url.path, errors=errors)
    body = ValidationError("Invalid request", details={"errors": errors})
    return JSONResponse(status_code=400, content=error_body(body))


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("api_internal_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "error_code": CVMakerError.error_code},
    )


def _download(data: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Templates & rendering
# ---------------------------------------------------------------------------


@app.get("/health", response_model=StatusResponse)
async def health() -> dict:
    return {"status": "ok"}


@app.get("/templates", response_model=list[TemplateInfo])
async def templates() -> list[TemplateInfo]:
    return list_templates()


@app.get("/sample")
async def sample() -> Dict[str, Any]:
    return SAMPLE_CV


@app.post("/render", response_model=RenderResponse, responses=_ERROR_RESPONSES)
def render(payload: Dict[str, Any] = Body(...)) -> JSONResponse:
    """
    Render a CV Record into a template.

    Body: {"templateName", "data", "fontFamily"?, "fontSize"?}
    """
    body, status = handle_render_request(payload)
    return JSONResponse(status_code=status, content=body)


# ---------------------------------------------------------------------------
# Export / import
# ---------------------------------------------------------------------------


@app.post("/export", responses=_ERROR_RESPONSES)
def export_pdf(request: ExportRequest) -> Response:
    pdf_bytes = render_pdf(request.html)
    logger.info("api_export_pdf_success", bytes=len(pdf_bytes))
    return _download(pdf_bytes, PDF_MEDIA_TYPE, "cv.pdf")


@app.post("/export_document", responses=_ERROR_RESPONSES)
def export_editor_document(request: ExportDocumentRequest) -> Response:
    data, media_type, filename = export_document(request.content, request.title, request.format)
    logger.info("api_export_document_success", format=request.format, filename=filename, bytes=len(data))
    return _download(data, media_type, filename)


@app.post("/upload_document", response_model=UploadedDocument, responses=_ERROR_RESPONSES)
def upload_document(file: UploadFile = File(...)) -> UploadedDocument:
    data = file.file.read()
    return extract_document(file.filename, file.content_type, data)


@app.post("/convert_document", responses=_ERROR_RESPONSES)
def convert_uploaded_document(
    file: UploadFile = File(...),
    targetFormat: Optional[str] = Form(None),
) -> Response:
    data = file.file.read()
    converted, media_type, filename = convert_document(file.filename, file.content_type, data, targetFormat)
    logger.info("api_convert_document_success", filename=filename, bytes=len(converted))
    return _download(converted, media_type, filename)


# ---------------------------------------------------------------------------
# AI assistant & profile
# ---------------------------------------------------------------------------


@app.post("/generate", responses=_ERROR_RESPONSES)
def generate(
    request: GenerateRequest,
    assistant: CVAssistant = Depends(get_cv_assistant),
    store: ProfileStore = Depends(get_profile_store),
) -> Dict[str, Any]:
    """
    Generate a CV Record for a job listing.

    The request's userProfile wins; without one (or one with no name) the
    stored profile is used.
    """
    profile = request.user_profile
    if profile is None or not profile.name:
        profile = store.get()

    record = assistant.generate_cv(request.job_listing, profile)
    return model_dump_compat(record)


@app.post("/parse_cv", responses=_ERROR_RESPONSES)
def parse_cv(
    request: ParseCVRequest,
    assistant: CVAssistant = Depends(get_cv_assistant),
) -> Dict[str, Any]:
    record = assistant.parse_cv(request.cv_text)
    return model_dump_compat(record)


@app.get("/profile")
def get_profile(store: ProfileStore = Depends(get_profile_store)) -> Dict[str, Any]:
    profile = store.get()
    return {"profile": model_dump_compat(profile) if profile is not None else None}


@app.put("/profile", response_model=UserProfile, responses=_ERROR_RESPONSES)
def put_profile(
    payload: Dict[str, Any] = Body(...),
    store: ProfileStore = Depends(get_profile_store),
) -> UserProfile:
    return store.save(payload)


@app.delete("/profile", response_model=StatusResponse)
def delete_profile(store: ProfileStore = Depends(get_profile_store)) -> dict:
    store.clear()
    return {"status": "cleared"}

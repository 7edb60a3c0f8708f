# portal/main.py
# --------------
# Local download service: sample datasets, upload validation and
# spreadsheet / archive exports, usable outside the Streamlit UI.

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .catalog import get_model, list_models
from .config import configure_logging, settings
from .data_preparation import build_file_preview
from .errors import PortalError
from .exporters import EXPORTERS, default_archive_name
from .samples import sample_csv, sample_filename
from .schemas import ArimaExportInput, ArimaxExportInput, XgbExportInput

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Sample datasets, upload validation and forecast exports for the demand forecasting portal",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _attachment(content: bytes, media_type: str, file_name: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


def _lookup_model(slug: str):
    try:
        return get_model(slug)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))


@app.get("/")
async def root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "message": "Download service is running",
    }


@app.get("/health")
async def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "backend_url": settings.api_base_url,
        "exporters": sorted(EXPORTERS),
        "sheet_name_max_length": settings.sheet_name_max_length,
    }


@app.get("/models")
async def models(category: Optional[str] = None):
    return [
        {
            "slug": m.slug,
            "name": m.name,
            "description": m.description,
            "category": m.category,
            "required_columns": list(m.required_columns),
            "exporter": m.exporter,
        }
        for m in list_models(category=category)
    ]


@app.get("/samples/{slug}")
async def download_sample(slug: str):
    _lookup_model(slug)
    try:
        content = sample_csv(slug)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]))
    return _attachment(content, "text/csv; charset=utf-8", sample_filename(slug))


@app.post("/validate-data")
async def validate_data(file: UploadFile, model: str = Form(...)):
    """
    Parse an uploaded CSV and check it against the model's template.
    """
    selected = _lookup_model(model)
    contents = await file.read()
    preview = build_file_preview(file.filename or "upload.csv", contents, selected)
    return {
        "status": "error" if preview.has_errors else "success",
        "model": selected.slug,
        **preview.to_dict(),
    }


def _run_export(kind: str, data) -> Response:
    exporter, _, media_type, extension = EXPORTERS[kind]
    try:
        content = exporter(data)
    except PortalError as e:
        logger.error("%s export failed: %s", kind, e.message)
        raise HTTPException(status_code=400, detail=e.message)
    except Exception:
        logger.exception("%s export crashed", kind)
        raise HTTPException(
            status_code=500,
            detail="Export failed. Ensure required packages are installed and try again.",
        )
    return _attachment(content, media_type, default_archive_name(f"{kind}_forecast", extension))


@app.post("/export/arima")
async def export_arima(data: ArimaExportInput):
    return _run_export("arima", data)


@app.post("/export/arimax")
async def export_arimax(data: ArimaxExportInput):
    return _run_export("arimax", data)


@app.post("/export/xgboost")
async def export_xgboost(data: XgbExportInput):
    return _run_export("xgboost", data)


def run():
    uvicorn.run("portal.main:app", host=settings.service_host, port=settings.service_port, reload=settings.debug)


if __name__ == "__main__":
    run()

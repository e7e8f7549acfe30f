"""
lsbframe — FastAPI backend

Endpoints:
    POST /api/capacity      — upload image, report how many bytes it can hide
    POST /api/embed         — embed a text message or payload file into an image
    POST /api/decode        — extract a hidden payload from an image
    GET  /api/health        — health check

All processing happens in memory; uploads never touch the disk.
"""

import base64
import logging
from pathlib import Path
from urllib.parse import quote

from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware

from lsbframe.decoder import extract_bytes
from lsbframe.embedder import embed_bytes
from lsbframe.errors import CapacityExceeded, UnsupportedImageError
from lsbframe.format_handler import classify_bytes
from lsbframe.image_io import decode_image_file, output_name
from lsbframe.utils import calculate_capacity
from web.config import settings, configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title       = settings.app_title,
    description = "Hides and recovers byte payloads in image pixel LSBs.",
    version     = settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins     = settings.cors_origins,
    allow_credentials = True,
    allow_methods     = ["*"],
    allow_headers     = ["*"],
)

MEDIA_TYPES = {
    "PNG" : "image/png",
    "BMP" : "image/bmp",
    "TIFF": "image/tiff",
    "WEBP": "image/webp",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def read_upload(upload: UploadFile) -> bytes:
    """Read an upload fully, enforcing the configured size limit."""
    data = upload.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code = 413,
            detail      = f"Upload exceeds {settings.max_upload_mb} MB limit.",
        )
    return data


def capacity_detail(err: CapacityExceeded) -> dict:
    return {
        "error"           : str(err),
        "needed_bits"     : err.needed,
        "available_bits"  : err.available,
        "requested_bytes" : err.requested_bytes,
        "capacity_bytes"  : err.capacity_bytes,
    }


# ---------------------------------------------------------------------------
# API Routes
# ---------------------------------------------------------------------------

@app.get("/api/health")
def health():
    return {"status": "ok", "version": settings.app_version}


@app.post("/api/capacity")
async def capacity(file: UploadFile = File(...)):
    data = read_upload(file)
    info = classify_bytes(data, filename=file.filename)

    try:
        pixels, width, height = decode_image_file(data)
    except UnsupportedImageError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return JSONResponse(content={
        "format"        : info.actual_format.value,
        "compression"   : info.compression.value,
        "preserves_lsb" : info.preserves_lsb,
        "width"         : width,
        "height"        : height,
        "capacity"      : calculate_capacity(len(pixels)),
    })


@app.post("/api/embed")
async def embed(
    request       : Request,
    file          : UploadFile        = File(...),
    message       : str | None        = Form(None),
    payload       : UploadFile | None = File(None),
    output_format : str | None        = Form(None),
):
    # An empty form field arrives as None; the raw form still lists it.
    if message is None and "message" in await request.form():
        message = ""

    if (message is None) == (payload is None):
        raise HTTPException(
            status_code = 400,
            detail      = "Provide exactly one of 'message' or 'payload'.",
        )

    data   = read_upload(file)
    secret = message if message is not None else read_upload(payload)
    fmt    = output_format or settings.output_format

    try:
        image, report = embed_bytes(data, secret, fmt)
    except CapacityExceeded as e:
        logger.warning("[EMBED] Rejected: %s", e)
        raise HTTPException(status_code=413, detail=capacity_detail(e))
    except ValueError as e:
        # LossyFormatError, UnsupportedImageError, unknown format names
        raise HTTPException(status_code=400, detail=str(e))

    stem          = Path(file.filename or "image").stem
    download_name = output_name(stem, report["format"])

    return Response(
        content    = image,
        media_type = MEDIA_TYPES.get(report["format"], "application/octet-stream"),
        headers    = {
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(download_name)}",
            "X-Payload-Bits"     : str(report["bits_used"]),
            "X-Capacity-Bytes"   : str(report["capacity"]["usable_bytes"]),
        },
    )


@app.post("/api/decode")
async def decode_endpoint(file: UploadFile = File(...)):
    data   = read_upload(file)
    result = extract_bytes(data, filename=file.filename)

    return JSONResponse(content={
        "success"         : result.success,
        "size"            : len(result.payload),
        "payload_base64"  : base64.b64encode(result.payload).decode("ascii"),
        "message"         : result.message if result.success else None,
        "format_detected" : result.format_detected,
        "error"           : result.error,
        "warnings"        : result.warnings,
    })

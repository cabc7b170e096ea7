"""Redaction API router: inspect uploads and return redacted images."""

from __future__ import annotations

import io
import logging

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ValidationError

from mosaiceditor.config import EditorConfig
from mosaiceditor.core.constants import DEFAULT_BLUR_RADIUS, DEFAULT_MOSAIC_BLOCK_SIZE
from mosaiceditor.core.models import EffectConfig, ExportOptions, parse_selections
from mosaiceditor.pipeline.export import ExportPipeline, build_export_filename
from mosaiceditor.utils.image import ImageDecodeError, ImageEncodeError, ImageUtils

logger = logging.getLogger(__name__)

editor_config = EditorConfig()

router = APIRouter()


class ImageInfoResponse(BaseModel):
    """Response model for upload inspection."""

    width: int
    height: int
    format: str
    file_size: int
    warnings: list[str]


def _status_for(error_code: str | None) -> int:
    return 413 if error_code == "too_large" else 400


async def _read_upload(file: UploadFile) -> bytes:
    """Read an upload, rejecting it early when the declared size is too large."""
    max_bytes = editor_config.max_upload_bytes
    if file.size is not None and file.size > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
        )
    return await file.read()


@router.post("/images/inspect", response_model=ImageInfoResponse)
async def inspect_image(file: UploadFile = File(...)) -> ImageInfoResponse:
    """Validate an upload and report its dimensions and format."""
    data = await _read_upload(file)
    result = ImageUtils.validate_image_bytes(
        data, editor_config.max_upload_bytes, editor_config.allowed_formats
    )
    if not result.is_valid:
        raise HTTPException(
            status_code=_status_for(str(result.context.get("error_code"))),
            detail="; ".join(result.errors),
        )

    return ImageInfoResponse(
        width=int(result.context["width"]),
        height=int(result.context["height"]),
        format=str(result.context["format"]),
        file_size=len(data),
        warnings=result.warnings,
    )


@router.post("/redact")
async def redact_image(
    file: UploadFile = File(...),
    selections: str = Form("[]"),
    effect: str = Form("mosaic"),
    mosaic_block_size: int = Form(DEFAULT_MOSAIC_BLOCK_SIZE),
    blur_radius: int = Form(DEFAULT_BLUR_RADIUS),
    output_format: str = Form("png", alias="format"),
    quality: float = Form(0.9),
) -> StreamingResponse:
    """Apply the effect to every selection and return the encoded result."""
    try:
        selection_set = parse_selections(selections)
        effect_config = EffectConfig(
            kind=effect, mosaic_block_size=mosaic_block_size, blur_radius=blur_radius
        )
        options = ExportOptions(format=output_format, quality=quality)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    data = await _read_upload(file)
    try:
        source = ImageUtils.decode_image(
            data, editor_config.max_upload_bytes, editor_config.allowed_formats
        )
    except ImageDecodeError as e:
        raise HTTPException(status_code=_status_for(e.error_code), detail=str(e)) from e

    try:
        encoded = await run_in_threadpool(
            ExportPipeline(options).export, source, selection_set, effect_config
        )
    except ImageEncodeError as e:
        logger.exception("Export failed for %s", file.filename)
        raise HTTPException(status_code=500, detail=str(e)) from e

    filename = build_export_filename(file.filename, options.format)
    logger.info(
        "Redacted %s: %d selections, %s -> %s",
        file.filename,
        len(selection_set),
        effect_config.kind,
        filename,
    )
    return StreamingResponse(
        io.BytesIO(encoded),
        media_type=options.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

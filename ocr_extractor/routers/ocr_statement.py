from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile
from pydantic import BaseModel, Field

from parsers.statements.ocr_transaction_history import parse_ocr_statement as parse_ocr_statement_text

from ocr_extractor.services.duplicates import flag_duplicates
from ocr_extractor.services.fixtures import fixtures_enabled, write_text_fixture
from ocr_extractor.services.ocr_text import clean_ocr_text, decode_ocr_text, looks_like_text, text_debug_stats


router = APIRouter()
logger = logging.getLogger("ocr-extractor")

_TEXT_CONTENT_TYPES = {"text/plain", "application/octet-stream"}


class OcrTextPayload(BaseModel):
    text: str
    referenceYear: int | None = None
    existing: list[dict[str, Any]] = Field(default_factory=list)


def _parse(raw_text: str, reference_year: int | None) -> dict[str, Any]:
    result, warnings, debug = parse_ocr_statement_text(clean_ocr_text(raw_text), reference_year=reference_year)

    line_count, avg_chars, _sample = text_debug_stats(raw_text)
    debug.update({"rawLineCount": line_count, "avgCharsPerLine": avg_chars})

    if warnings:
        result["warnings"] = warnings
    if debug:
        result["debug"] = debug

    logger.info(
        "[parse/ocr-statement] transactions=%d rejected=%d year=%s",
        len(result.get("transactions", [])),
        len(result.get("rejected", [])),
        result.get("year"),
    )
    return result


@router.post("/parse/ocr-statement")
async def parse_ocr_statement(
    response: Response,
    file: UploadFile = File(...),
    reference_year: int | None = Query(default=None, alias="referenceYear"),
) -> dict[str, Any]:
    """Recebe o texto reconhecido por OCR (histórico de transações) e retorna dados estruturados."""

    response.headers["X-Parser-Version"] = os.getenv("VERSION", "dev")
    content_type = (file.content_type or "").split(";")[0].strip()
    if content_type not in _TEXT_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid content-type. Expected text/plain")

    raw = await file.read()
    logger.info(
        "[parse/ocr-statement] filename=%s content_type=%s bytes=%d",
        file.filename,
        file.content_type,
        len(raw) if raw else 0,
    )
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file")
    if not looks_like_text(raw):
        raise HTTPException(status_code=400, detail="File is not plain text")

    try:
        raw_text = decode_ocr_text(raw)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File is not valid UTF-8 text")

    if fixtures_enabled():
        base_dir = Path(__file__).resolve().parents[2]
        write_text_fixture(filename="ocr_statement_reference.txt", raw_text=raw_text, base_dir=base_dir)

    result = _parse(raw_text, reference_year)
    result["filename"] = file.filename
    return result


@router.post("/parse/ocr-statement/text")
def parse_ocr_statement_json(payload: OcrTextPayload, response: Response) -> dict[str, Any]:
    response.headers["X-Parser-Version"] = os.getenv("VERSION", "dev")
    logger.info("[parse/ocr-statement/text] chars=%d existing=%d", len(payload.text), len(payload.existing))
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="Empty text")

    result = _parse(payload.text, payload.referenceYear)
    result["duplicateCount"] = flag_duplicates(result["transactions"], payload.existing)
    return result

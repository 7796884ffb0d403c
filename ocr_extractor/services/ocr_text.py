from __future__ import annotations

import re


def looks_like_text(raw: bytes) -> bool:
    if not raw:
        return False
    # Cheap heuristic: OCR engines emit plain text, never NUL bytes.
    head = raw[:4096]
    return b"\x00" not in head


def decode_ocr_text(raw: bytes) -> str:
    """Decode uploaded OCR output. Raises UnicodeDecodeError on non UTF-8 input."""

    return raw.decode("utf-8-sig")


def clean_ocr_text(text: str) -> str:
    """Clean recognized text without breaking line layout.

    - Normalizes spaces/tabs inside lines
    - Drops form feeds some OCR engines put between pages
    - Preserves newlines
    """
    if not text:
        return ""

    text = text.replace("\u00a0", " ").replace("\xa0", " ").replace("\f", "\n")
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    cleaned_lines: list[str] = []
    for line in text.split("\n"):
        line = re.sub(r"[ \t]+", " ", line)
        cleaned_lines.append(line.strip())

    return "\n".join(cleaned_lines)


def text_debug_stats(text: str) -> tuple[int, float, list[str]]:
    lines = text.split("\n") if text else []
    line_count = len(lines)
    non_empty = [ln for ln in lines if ln.strip()]
    avg = (sum(len(ln) for ln in non_empty) / len(non_empty)) if non_empty else 0.0
    sample = [ln for ln in lines[:20]]
    return line_count, float(avg), sample

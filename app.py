from __future__ import annotations

# Local entrypoint: `uvicorn app:app --reload`.
# The application itself is built in `ocr_extractor.main`.

from ocr_extractor.main import app  # noqa: F401

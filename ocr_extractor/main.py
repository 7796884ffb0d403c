from __future__ import annotations

import os

from fastapi import FastAPI

from ocr_extractor.routers.ocr_statement import router as ocr_statement_router


def create_app() -> FastAPI:
    app = FastAPI(title="OCR Statement Extractor")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    def version() -> dict[str, str]:
        return {
            "name": "ocr-extractor",
            "version": os.getenv("VERSION", "dev"),
            "gitSha": os.getenv("GIT_SHA", "unknown"),
            "buildTime": os.getenv("BUILD_TIME", "unknown"),
        }

    app.include_router(ocr_statement_router)

    return app


app = create_app()

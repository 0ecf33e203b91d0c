"""FastAPI application for the pricing engine."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricebook import __version__
from pricebook.config import Settings, get_settings
from pricebook.errors import ValidationError
from pricebook.logging_setup import configure_logging
from pricebook.services.exchange_rates import ExchangeRateTable
from pricebook.services.numbering import DocumentNumberSequence

from . import currency, pricing

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Pricebook API", version=__version__)
    app.state.settings = settings
    app.state.rate_table = ExchangeRateTable(settings.exchange_rates)
    app.state.numbers = DocumentNumberSequence()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    app.include_router(pricing.router, prefix=settings.api_base_path)
    app.include_router(currency.router, prefix=settings.api_base_path)

    @app.get("/healthz", tags=["health"])
    async def healthcheck() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    return app


app = create_app()

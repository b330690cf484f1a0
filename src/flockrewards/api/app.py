from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flockrewards.api.errors import ApiError
from flockrewards.api.routes_public import public_router
from flockrewards.api.security import RequestSizeLimitMiddleware
from flockrewards.api.structured_logging import RequestLogMiddleware, annotate_request, configure_structured_logging
from flockrewards.config import CalculatorConfig, load_calculator_config
from flockrewards.ledger.errors import RewardInputError

logger = logging.getLogger("flockrewards.api")


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        annotate_request(request, error_code=exc.code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    @app.exception_handler(RewardInputError)
    async def _reward_input_error(request: Request, exc: RewardInputError) -> JSONResponse:
        annotate_request(request, error_code=exc.code, error_reason=exc.reason)
        err = ApiError.bad_request(exc.code, exc.reason, exc.details)
        return JSONResponse(status_code=err.status_code, content=err.to_json())

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        annotate_request(request, error_code="invalid_payload")
        errors = [
            {"loc": [str(p) for p in e.get("loc", ())], "msg": str(e.get("msg", ""))}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={
                "ok": False,
                "error": {"code": "invalid_payload", "message": "Request validation failed", "details": {"errors": errors}},
            },
        )


def create_app(cfg: Optional[CalculatorConfig] = None) -> FastAPI:
    """Create the FastAPI application.

    cfg:
      - None (default): load from defaults, FLOCK_CONFIG_PATH and FLOCK_* env
      - explicit CalculatorConfig: used as-is (tests, embedding)

    Docs are disabled in prod mode.
    """
    cfg = cfg or load_calculator_config()
    configure_structured_logging(cfg.log_level)

    if cfg.mode == "prod":
        app = FastAPI(title="Flock Rewards Calculator", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Flock Rewards Calculator")

    app.state.cfg = cfg

    # --- Middleware ---
    # Last added runs first: request logging wraps the size limiter.
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RequestLogMiddleware)

    _install_error_handlers(app)

    # --- Routers ---
    app.include_router(public_router)

    logger.debug("app created mode=%s require_score_sum=%s", cfg.mode, cfg.require_score_sum)
    return app

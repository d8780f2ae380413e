"""FastAPI interface for audioconv."""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .application.conversion_service import ConvertAudioJob
from .errors import ConversionError, ValidationError
from .infrastructure.huey_queue import ConversionQueue
from .infrastructure.result_publisher import build_direct_stream_response
from .interfaces.api_handlers import (
    build_conversion_queue,
    build_conversion_service,
    open_direct_stream,
    url_policy_from_config,
)
from .request_validation import decode_encoded_params, validate_request
from .utils.config import ServiceConfig, load_service_config

logger = logging.getLogger(__name__)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def create_app(
    config: ServiceConfig | None = None,
    *,
    queue: ConversionQueue | None = None,
    service_factory: Callable[[], ConvertAudioJob] | None = None,
) -> FastAPI:
    """Build the HTTP application.

    ``queue`` and ``service_factory`` default to the production wiring derived
    from ``config``; tests pass fakes.
    """

    config = config or load_service_config()
    url_policy = url_policy_from_config(config)
    if service_factory is None:
        service_factory = partial(build_conversion_service, config)
    if queue is None:
        queue = build_conversion_queue(config)

    app = FastAPI(title="audioconv API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.queue = queue

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, error: RequestValidationError) -> JSONResponse:
        return _failure(400, "Request body must be a JSON object")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint."""

        return {"status": "ok"}

    @app.post("/v1/convert-and-create", status_code=201)
    def convert_and_create(payload: Any = Body(...)) -> Response:
        """Validate a push-mode job and enqueue it; returns the job id."""

        result = validate_request(payload, url_policy=url_policy)
        if not result.ok:
            return _failure(400, result.error.message)

        try:
            job_id = queue.enqueue(result.request)
        except Exception as error:  # noqa: BLE001
            logger.error("Job could not be enqueued", exc_info=error)
            return _failure(503, "Job could not be queued")

        return JSONResponse(status_code=201, content=job_id)

    @app.get("/v1/convert")
    def convert(encoded_params: str | None = Query(None, alias="encodedParams")) -> Response:
        """Run a job synchronously and stream the converted file back."""

        try:
            payload = decode_encoded_params(encoded_params)
        except ValidationError as error:
            return _failure(400, error.message)

        result = validate_request(payload, direct_stream=True, url_policy=url_policy)
        if not result.ok:
            return _failure(400, result.error.message)

        request = result.request
        try:
            stream = open_direct_stream(service_factory(), request)
        except ConversionError as error:
            return _failure(500, error.message)
        except Exception as error:  # noqa: BLE001
            logger.error("Direct conversion failed", exc_info=error)
            return _failure(500, "Conversion failed")

        return build_direct_stream_response(
            stream.output.path,
            filename=stream.filename,
            output_format=request.output_format,
            on_complete=stream.finish,
            on_abort=stream.abort,
        )

    return app

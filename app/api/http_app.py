from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import Awaitable, Callable
import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from app.api.handlers.deps import ApiDeps
from app.api.handlers.intake import UploadedMedia, ingest_submission_handler, validate_fields_handler
from app.api.schemas import (
    ErrorResponse,
    HealthResponse,
    IngestionAcceptedResponse,
    ReadyResponse,
    RejectionResponse,
    RuleSpecListResponse,
    ValidationAcceptedResponse,
)
from app.domain.errors import MalformedSubmissionError, StorageRefusedError

SERVICE_NAME = "event-intake"


def build_app(
    run_id: str,
    api_deps: ApiDeps | None = None,
    on_startup: Callable[[], Awaitable[None]] | None = None,
    on_shutdown: Callable[[], Awaitable[None]] | None = None,
) -> FastAPI:
    logger = logging.getLogger("runtime")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        del app
        logger.info(
            "service started",
            extra={"service": SERVICE_NAME, "run_id": run_id},
        )

        if on_startup is not None:
            await on_startup()

        yield

        if on_shutdown is not None:
            await on_shutdown()

        logger.info(
            "service stopped",
            extra={"service": SERVICE_NAME, "run_id": run_id},
        )

    app = FastAPI(title=SERVICE_NAME, version="0.1.0", lifespan=lifespan)

    def _require_deps() -> ApiDeps:
        if api_deps is None:
            raise HTTPException(status_code=503, detail="api dependencies are not available")
        return api_deps

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service=SERVICE_NAME, run_id=run_id)

    @app.get("/ready", response_model=ReadyResponse, tags=["System"])
    async def ready() -> ReadyResponse:
        rule_specs_total = 0
        if api_deps is not None:
            rule_specs_total = len(api_deps.pipeline.rule_engine.rule_spec_names)
        return ReadyResponse(
            status="ready" if api_deps is not None else "degraded",
            service=SERVICE_NAME,
            run_id=run_id,
            rule_specs_total=rule_specs_total,
        )

    @app.get("/rule-specs", response_model=RuleSpecListResponse, tags=["Validation"])
    async def list_rule_specs() -> RuleSpecListResponse:
        deps = _require_deps()
        return RuleSpecListResponse(items=list(deps.pipeline.rule_engine.rule_spec_names))

    @app.post(
        "/validations/{rule_spec_name}",
        response_model=ValidationAcceptedResponse,
        responses={400: {"model": ErrorResponse}, 422: {"model": RejectionResponse}, 503: {"model": ErrorResponse}},
        tags=["Validation"],
    )
    async def validate_fields(
        rule_spec_name: str,
        fields: dict[str, Any] = Body(...),
    ) -> ValidationAcceptedResponse | JSONResponse:
        deps = _require_deps()
        try:
            result = await validate_fields_handler(
                rule_spec_name=rule_spec_name,
                fields=fields,
                api_deps=deps,
            )
        except MalformedSubmissionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if isinstance(result, RejectionResponse):
            return JSONResponse(status_code=422, content=result.model_dump(mode="json"))
        return result

    @app.post(
        "/submissions/{rule_spec_name}",
        response_model=IngestionAcceptedResponse,
        responses={400: {"model": ErrorResponse}, 422: {"model": RejectionResponse}, 503: {"model": ErrorResponse}},
        tags=["Submissions"],
    )
    async def ingest_submission(rule_spec_name: str, request: Request) -> IngestionAcceptedResponse | JSONResponse:
        deps = _require_deps()
        form = await request.form()
        fields: dict[str, object] = {}
        uploads: list[UploadedMedia] = []
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                payload = await value.read()
                # Browsers post an empty part for file inputs left blank.
                if not value.filename and not payload:
                    continue
                uploads.append(
                    UploadedMedia(
                        filename=value.filename or "",
                        content_type=value.content_type,
                        payload=payload,
                    )
                )
            else:
                fields[name] = value

        try:
            result = await ingest_submission_handler(
                rule_spec_name=rule_spec_name,
                fields=fields,
                uploads=uploads,
                api_deps=deps,
            )
        except MalformedSubmissionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except StorageRefusedError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if isinstance(result, RejectionResponse):
            return JSONResponse(status_code=422, content=result.model_dump(mode="json"))
        return result

    return app

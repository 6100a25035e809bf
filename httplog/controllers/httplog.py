"""HTTP log controller: ingestion and lookup endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response, status
from pydantic import ValidationError as PydanticValidationError
from pydantic import TypeAdapter

from httplog.controllers.dependencies import LogStoreDep
from httplog.errors import HttpLogError, NotFoundError, PersistenceError, ValidationError
from httplog.views import ErrorResponse, LogRecord, LogRecordAdapter, LogRecordListAdapter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/httplog", tags=["httplog"])

_ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}
_LOOKUP_RESPONSES = {
    **_ERROR_RESPONSES,
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
}

UrlQuery = Annotated[Optional[str], Query()]
UsernameQuery = Annotated[Optional[str], Query()]


async def _decode_body(request: Request, adapter: TypeAdapter):
    """Parse and validate the raw JSON body against ``adapter``."""

    body = await request.body()
    try:
        return adapter.validate_json(body)
    except PydanticValidationError as exc:
        first = exc.errors(include_url=False)[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        reason = f"{location}: {first['msg']}" if location else first["msg"]
        raise ValidationError(f"invalid request body: {reason}") from exc


def _require_param(name: str, value: Optional[str]) -> str:
    if not value:
        raise ValidationError(f"missing '{name}' query parameter")
    return value


def _to_http_error(exc: HttpLogError, failure_message: str) -> HTTPException:
    """Map the error taxonomy onto HTTP status codes."""

    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no logs found")
    if isinstance(exc, PersistenceError):
        logger.error("%s: %s", failure_message, exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{failure_message}: {exc}",
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    responses=_ERROR_RESPONSES,
)
async def insert_http_log(request: Request, store: LogStoreDep) -> Response:
    try:
        record = await _decode_body(request, LogRecordAdapter)
        await store.insert(record)
    except HttpLogError as exc:
        raise _to_http_error(exc, "failed to insert http log request") from exc
    return Response(status_code=status.HTTP_201_CREATED)


@router.post(
    "/bulk",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    responses=_ERROR_RESPONSES,
)
async def bulk_insert_http_logs(request: Request, store: LogStoreDep) -> Response:
    try:
        records = await _decode_body(request, LogRecordListAdapter)
        await store.bulk_insert(records)
    except HttpLogError as exc:
        raise _to_http_error(exc, "failed to insert http log requests") from exc
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/url", response_model=List[LogRecord], responses=_LOOKUP_RESPONSES)
async def get_http_logs_by_url(
    store: LogStoreDep,
    url: UrlQuery = None,
) -> List[LogRecord]:
    try:
        return await store.find_by_url(_require_param("url", url))
    except HttpLogError as exc:
        raise _to_http_error(exc, "failed to get http log requests") from exc


@router.get("/username", response_model=List[LogRecord], responses=_LOOKUP_RESPONSES)
async def get_http_logs_by_username(
    store: LogStoreDep,
    username: UsernameQuery = None,
) -> List[LogRecord]:
    try:
        return await store.find_by_username(_require_param("username", username))
    except HttpLogError as exc:
        raise _to_http_error(exc, "failed to get http log requests") from exc

"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from starlette.concurrency import run_in_threadpool

from app.schemas import DecodeErrorDetail, ReadingSetResponse
from services.decoder import ReadingSetDecoder, build_default_decoder
from services.errors import ReadingSetError

router = APIRouter()


def get_decoder() -> ReadingSetDecoder:
    return build_default_decoder()


@router.post(
    "/readings/decode",
    response_model=ReadingSetResponse,
    summary="Decode a query or notification reading payload.",
    responses={status.HTTP_400_BAD_REQUEST: {"description": "Payload could not be decoded."}},
)
async def decode_readings(
    request: Request,
    isolate: Optional[bool] = Query(
        None,
        description="Skip undecodable rows instead of rejecting the payload.",
    ),
    decoder: ReadingSetDecoder = Depends(get_decoder),
) -> ReadingSetResponse:
    body = await request.body()
    try:
        reading_set = await run_in_threadpool(decoder.decode, body, isolate_row_errors=isolate)
    except ReadingSetError as exc:
        detail = DecodeErrorDetail(kind=exc.kind, message=str(exc), field=exc.field)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail.model_dump(),
        ) from exc
    return ReadingSetResponse.from_reading_set(reading_set)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "POST payloads to /readings/decode."}

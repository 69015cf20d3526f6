from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from gymflow.controllers.schemas import GuestPassResponse
from gymflow.dependencies import ErrorResponse, require_api_headers, settings, store_scope
from gymflow.services.guest_passes import GuestPassService

router = APIRouter(
    prefix="/guest-passes",
    tags=["guest-passes"],
    dependencies=[Depends(require_api_headers)],
)


class GuestPassCreateRequest(BaseModel):
    name: str
    phone: str | None = None
    price_paid: float | None = None
    validity_days: int | None = None
    code: str | None = None


def _create_sync(body: GuestPassCreateRequest) -> GuestPassResponse:
    with store_scope() as store:
        guest_pass = GuestPassService(store, settings).create(**body.model_dump())
        return GuestPassResponse.model_validate(guest_pass)


def _list_sync(limit: int) -> list[GuestPassResponse]:
    with store_scope() as store:
        passes = GuestPassService(store, settings).list_recent(limit)
        return [GuestPassResponse.model_validate(p) for p in passes]


@router.post(
    "",
    status_code=201,
    response_model=GuestPassResponse,
    responses={400: {"model": ErrorResponse}},
)
async def create_guest_pass(body: GuestPassCreateRequest) -> GuestPassResponse:
    return await asyncio.to_thread(_create_sync, body)


@router.get("", response_model=list[GuestPassResponse])
async def list_guest_passes(limit: int = Query(50, ge=1, le=500)) -> list[GuestPassResponse]:
    return await asyncio.to_thread(_list_sync, limit)

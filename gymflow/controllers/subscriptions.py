from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from gymflow.controllers.schemas import FreezeResponse, SubscriptionResponse
from gymflow.dependencies import ErrorResponse, require_api_headers, settings, store_scope
from gymflow.services.freezes import FreezeManager
from gymflow.services.subscriptions import SubscriptionManager

router = APIRouter(
    prefix="/subscriptions",
    tags=["subscriptions"],
    dependencies=[Depends(require_api_headers)],
)

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


class SubscriptionCreateRequest(BaseModel):
    member_id: str
    plan_months: int
    price_paid: float | None = None
    sessions_per_month: int | None = None
    start_date: int | None = None


class SubscriptionRenewRequest(BaseModel):
    member_id: str
    plan_months: int
    price_paid: float | None = None
    sessions_per_month: int | None = None


class FreezeRequest(BaseModel):
    days: int


def _create_sync(body: SubscriptionCreateRequest) -> SubscriptionResponse:
    with store_scope() as store:
        subscription = SubscriptionManager(store, settings).create_subscription(**body.model_dump())
        return SubscriptionResponse.model_validate(subscription)


def _renew_sync(body: SubscriptionRenewRequest) -> SubscriptionResponse:
    with store_scope() as store:
        subscription = SubscriptionManager(store, settings).renew(**body.model_dump())
        return SubscriptionResponse.model_validate(subscription)


def _cancel_sync(subscription_id: int) -> SubscriptionResponse:
    with store_scope() as store:
        subscription = SubscriptionManager(store, settings).cancel(subscription_id)
        return SubscriptionResponse.model_validate(subscription)


def _freeze_sync(subscription_id: int, days: int) -> FreezeResponse:
    with store_scope() as store:
        freeze = FreezeManager(store).create_freeze(subscription_id, days)
        return FreezeResponse.model_validate(freeze)


def _list_freezes_sync(subscription_id: int) -> list[FreezeResponse]:
    with store_scope() as store:
        SubscriptionManager(store, settings).get(subscription_id)
        return [FreezeResponse.model_validate(f) for f in FreezeManager(store).list_freezes(subscription_id)]


@router.post("", status_code=201, response_model=SubscriptionResponse, responses=_ERRORS)
async def create_subscription(body: SubscriptionCreateRequest) -> SubscriptionResponse:
    return await asyncio.to_thread(_create_sync, body)


@router.post("/renew", status_code=201, response_model=SubscriptionResponse, responses=_ERRORS)
async def renew_subscription(body: SubscriptionRenewRequest) -> SubscriptionResponse:
    return await asyncio.to_thread(_renew_sync, body)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse, responses=_ERRORS)
async def cancel_subscription(subscription_id: int) -> SubscriptionResponse:
    return await asyncio.to_thread(_cancel_sync, subscription_id)


@router.post(
    "/{subscription_id}/freeze",
    status_code=201,
    response_model=FreezeResponse,
    responses=_ERRORS,
)
async def freeze_subscription(subscription_id: int, body: FreezeRequest) -> FreezeResponse:
    return await asyncio.to_thread(_freeze_sync, subscription_id, body.days)


@router.get("/{subscription_id}/freezes", response_model=list[FreezeResponse], responses=_ERRORS)
async def list_freezes(subscription_id: int) -> list[FreezeResponse]:
    return await asyncio.to_thread(_list_freezes_sync, subscription_id)

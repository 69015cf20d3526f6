from __future__ import annotations

import asyncio
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from gymflow.controllers.schemas import (
    AttendanceLogResponse,
    MemberResponse,
    QuotaResponse,
    SubscriptionResponse,
)
from gymflow.dependencies import ErrorResponse, require_api_headers, settings, store_scope
from gymflow.services.errors import NotFoundError
from gymflow.services.members import MemberService
from gymflow.services.quotas import QuotaLedger
from gymflow.services.reports import ReportService
from gymflow.services.subscriptions import SubscriptionManager

router = APIRouter(
    prefix="/members",
    tags=["members"],
    dependencies=[Depends(require_api_headers)],
)


class MemberCreateRequest(BaseModel):
    name: str
    phone: str
    gender: Literal["male", "female"]
    card_code: str | None = None
    access_tier: str = "A"
    address: str | None = None


class MemberDetailResponse(BaseModel):
    member: MemberResponse
    subscription: SubscriptionResponse | None = None
    recent_logs: list[AttendanceLogResponse]


def _create_sync(body: MemberCreateRequest) -> MemberResponse:
    with store_scope() as store:
        member = MemberService(store, settings).register(**body.model_dump())
        return MemberResponse.model_validate(member)


def _detail_sync(member_id: str) -> MemberDetailResponse:
    with store_scope() as store:
        member = MemberService(store, settings).get(member_id)
        subscription = SubscriptionManager(store, settings).get_active(member_id)
        logs = ReportService(store, settings).member_logs(member_id, limit=20)
        return MemberDetailResponse(
            member=MemberResponse.model_validate(member),
            subscription=SubscriptionResponse.model_validate(subscription) if subscription else None,
            recent_logs=[AttendanceLogResponse.model_validate(log) for log in logs],
        )


def _quota_sync(member_id: str) -> QuotaResponse:
    with store_scope() as store:
        MemberService(store, settings).get(member_id)
        quota = QuotaLedger(store, settings).get_or_create_current_quota(member_id)
        if quota is None:
            raise NotFoundError("No current quota for member")
        store.commit()
        return QuotaResponse.model_validate(quota)


@router.post(
    "",
    status_code=201,
    response_model=MemberResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_member(body: MemberCreateRequest) -> MemberResponse:
    return await asyncio.to_thread(_create_sync, body)


@router.get(
    "/{member_id}",
    response_model=MemberDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_member(member_id: str) -> MemberDetailResponse:
    return await asyncio.to_thread(_detail_sync, member_id)


@router.get(
    "/{member_id}/quota",
    response_model=QuotaResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_member_quota(member_id: str) -> QuotaResponse:
    return await asyncio.to_thread(_quota_sync, member_id)

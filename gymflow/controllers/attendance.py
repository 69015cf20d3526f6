from __future__ import annotations

import asyncio
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from gymflow.dependencies import ErrorResponse, require_api_headers, settings, store_scope
from gymflow.controllers.schemas import (
    AttendanceLogResponse,
    FreezeResponse,
    GuestPassResponse,
    MemberResponse,
    QuotaResponse,
    SubscriptionResponse,
    WarningResponse,
)
from gymflow.models import SCANNED_VALUE_MAX_LENGTH
from gymflow.services.checkin import CheckInEngine, CheckInResult
from gymflow.services.reports import ReportService

router = APIRouter(
    prefix="/attendance",
    tags=["attendance"],
    dependencies=[Depends(require_api_headers)],
)


class CheckInRequest(BaseModel):
    scanned_value: str = Field(..., max_length=SCANNED_VALUE_MAX_LENGTH)
    method: Literal["scan", "manual"] = "scan"


class CheckInResponse(BaseModel):
    status: str
    reason_code: str
    member: MemberResponse | None = None
    subscription: SubscriptionResponse | None = None
    quota: QuotaResponse | None = None
    guest_pass: GuestPassResponse | None = None
    freeze: FreezeResponse | None = None
    warnings: list[WarningResponse] = []

    @classmethod
    def from_result(cls, result: CheckInResult) -> "CheckInResponse":
        def dump(schema, obj):
            return schema.model_validate(obj) if obj is not None else None

        return cls(
            status=result.status.value,
            reason_code=result.reason_code.value,
            member=dump(MemberResponse, result.member),
            subscription=dump(SubscriptionResponse, result.subscription),
            quota=dump(QuotaResponse, result.quota),
            guest_pass=dump(GuestPassResponse, result.guest_pass),
            freeze=dump(FreezeResponse, result.freeze),
            warnings=[WarningResponse(key=w.key, params=w.params) for w in result.warnings],
        )


class TodayResponse(BaseModel):
    stats: dict[str, int]
    logs: list[AttendanceLogResponse]


def _check_sync(scanned_value: str, method: str) -> CheckInResponse:
    with store_scope() as store:
        result = CheckInEngine(store, settings).check_attendance(scanned_value, method)
        return CheckInResponse.from_result(result)


def _today_sync() -> TodayResponse:
    with store_scope() as store:
        reports = ReportService(store, settings)
        return TodayResponse(
            stats=reports.today_stats(),
            logs=[AttendanceLogResponse.model_validate(log) for log in reports.today_logs()],
        )


@router.post(
    "/check",
    response_model=CheckInResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def check_attendance(body: CheckInRequest) -> CheckInResponse:
    return await asyncio.to_thread(_check_sync, body.scanned_value, body.method)


@router.get("/today", response_model=TodayResponse)
async def today() -> TodayResponse:
    return await asyncio.to_thread(_today_sync)

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from gymflow.controllers.schemas import AttendanceLogResponse
from gymflow.dependencies import require_api_headers, settings, store_scope
from gymflow.services.reports import MAX_REPORT_DAYS, ReportService

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    dependencies=[Depends(require_api_headers)],
)


class ExpiringResponse(BaseModel):
    member_id: str
    name: str
    phone: str
    subscription_id: int
    end_date: int
    days_remaining: int


class LowSessionsResponse(BaseModel):
    member_id: str
    name: str
    phone: str
    sessions_remaining: int


class TodayStats(BaseModel):
    allowed: int
    warning: int
    denied: int


class OverviewResponse(BaseModel):
    total_members: int
    active_subscriptions: int
    expired_subscriptions: int
    total_revenue: float
    today: TodayStats


class DailyStatsResponse(BaseModel):
    date: str
    allowed: int
    warning: int
    denied: int


class HourlyResponse(BaseModel):
    hour: int
    count: int


class TopMemberResponse(BaseModel):
    member_id: str
    name: str
    visits: int


class DenialReasonResponse(BaseModel):
    reason_code: str
    count: int


class DeniedEntryResponse(BaseModel):
    name: str
    scanned_value: str
    timestamp: int
    reason_code: str | None = None


class IncomeSummaryResponse(BaseModel):
    total_revenue: float
    expected_monthly: float


class IncomeEntryResponse(BaseModel):
    type: str
    name: str
    phone: str | None = None
    amount: float
    created_at: int
    plan_months: int | None = None
    sessions_per_month: int | None = None
    code: str | None = None


def _rows(schema, rows):
    return [schema(**row._asdict()) for row in rows]


def _expiring_sync(days: int | None) -> list[ExpiringResponse]:
    with store_scope() as store:
        return _rows(ExpiringResponse, ReportService(store, settings).expiring(days))


def _low_sessions_sync(threshold: int | None) -> list[LowSessionsResponse]:
    with store_scope() as store:
        return _rows(LowSessionsResponse, ReportService(store, settings).low_sessions(threshold))


def _overview_sync() -> OverviewResponse:
    with store_scope() as store:
        overview = ReportService(store, settings).overview()
        return OverviewResponse(
            total_members=overview.total_members,
            active_subscriptions=overview.active_subscriptions,
            expired_subscriptions=overview.expired_subscriptions,
            total_revenue=overview.total_revenue,
            today=TodayStats(**overview.today),
        )


def _daily_stats_sync(days: int) -> list[DailyStatsResponse]:
    with store_scope() as store:
        return _rows(DailyStatsResponse, ReportService(store, settings).daily_stats(days))


def _hourly_sync() -> list[HourlyResponse]:
    with store_scope() as store:
        return _rows(HourlyResponse, ReportService(store, settings).hourly_distribution())


def _top_members_sync(days: int, limit: int) -> list[TopMemberResponse]:
    with store_scope() as store:
        return _rows(TopMemberResponse, ReportService(store, settings).top_members(days, limit))


def _denial_reasons_sync(days: int) -> list[DenialReasonResponse]:
    with store_scope() as store:
        return _rows(DenialReasonResponse, ReportService(store, settings).denial_reasons(days))


def _denied_entries_sync(days: int, limit: int) -> list[DeniedEntryResponse]:
    with store_scope() as store:
        return _rows(DeniedEntryResponse, ReportService(store, settings).denied_entries(days, limit))


def _attendance_sync(days: int, limit: int) -> list[AttendanceLogResponse]:
    with store_scope() as store:
        logs = ReportService(store, settings).attendance(days, limit)
        return [AttendanceLogResponse.model_validate(log) for log in logs]


def _income_summary_sync() -> IncomeSummaryResponse:
    with store_scope() as store:
        summary = ReportService(store, settings).income_summary()
        return IncomeSummaryResponse(**summary._asdict())


def _recent_income_sync(limit: int) -> list[IncomeEntryResponse]:
    with store_scope() as store:
        return _rows(IncomeEntryResponse, ReportService(store, settings).recent_income(limit))


@router.get("/expiring", response_model=list[ExpiringResponse])
async def expiring(days: int | None = Query(None, ge=0, le=MAX_REPORT_DAYS)) -> list[ExpiringResponse]:
    return await asyncio.to_thread(_expiring_sync, days)


@router.get("/low-sessions", response_model=list[LowSessionsResponse])
async def low_sessions(threshold: int | None = Query(None, ge=0)) -> list[LowSessionsResponse]:
    return await asyncio.to_thread(_low_sessions_sync, threshold)


@router.get("/overview", response_model=OverviewResponse)
async def overview() -> OverviewResponse:
    return await asyncio.to_thread(_overview_sync)


@router.get("/daily-stats", response_model=list[DailyStatsResponse])
async def daily_stats(days: int = Query(30, ge=1, le=MAX_REPORT_DAYS)) -> list[DailyStatsResponse]:
    return await asyncio.to_thread(_daily_stats_sync, days)


@router.get("/hourly-distribution", response_model=list[HourlyResponse])
async def hourly_distribution() -> list[HourlyResponse]:
    return await asyncio.to_thread(_hourly_sync)


@router.get("/top-members", response_model=list[TopMemberResponse])
async def top_members(
    days: int = Query(30, ge=1, le=MAX_REPORT_DAYS),
    limit: int = Query(10, ge=1, le=100),
) -> list[TopMemberResponse]:
    return await asyncio.to_thread(_top_members_sync, days, limit)


@router.get("/denial-reasons", response_model=list[DenialReasonResponse])
async def denial_reasons(days: int = Query(30, ge=1, le=MAX_REPORT_DAYS)) -> list[DenialReasonResponse]:
    return await asyncio.to_thread(_denial_reasons_sync, days)


@router.get("/denied-entries", response_model=list[DeniedEntryResponse])
async def denied_entries(
    days: int = Query(30, ge=1, le=MAX_REPORT_DAYS),
    limit: int = Query(100, ge=1, le=500),
) -> list[DeniedEntryResponse]:
    return await asyncio.to_thread(_denied_entries_sync, days, limit)


@router.get("/attendance", response_model=list[AttendanceLogResponse])
async def attendance(
    days: int = Query(30, ge=1, le=MAX_REPORT_DAYS),
    limit: int = Query(2000, ge=1, le=5000),
) -> list[AttendanceLogResponse]:
    return await asyncio.to_thread(_attendance_sync, days, limit)


@router.get("/income/summary", response_model=IncomeSummaryResponse)
async def income_summary() -> IncomeSummaryResponse:
    return await asyncio.to_thread(_income_summary_sync)


@router.get("/income/recent", response_model=list[IncomeEntryResponse])
async def recent_income(limit: int = Query(20, ge=1, le=200)) -> list[IncomeEntryResponse]:
    return await asyncio.to_thread(_recent_income_sync, limit)

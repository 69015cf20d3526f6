from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MemberResponse(_ORMModel):
    id: str
    name: str
    phone: str
    gender: str
    access_tier: str
    card_code: str | None = None
    address: str | None = None
    created_at: int


class SubscriptionResponse(_ORMModel):
    id: int
    member_id: str
    start_date: int
    end_date: int
    plan_months: int
    price_paid: float | None = None
    sessions_per_month: int | None = None
    is_active: bool


class QuotaResponse(_ORMModel):
    id: int
    subscription_id: int
    cycle_start: int
    cycle_end: int
    sessions_used: int
    sessions_cap: int


class FreezeResponse(_ORMModel):
    id: int
    subscription_id: int
    start_date: int
    end_date: int
    days: int


class GuestPassResponse(_ORMModel):
    id: str
    code: str
    name: str
    phone: str | None = None
    price_paid: float | None = None
    created_at: int
    expires_at: int
    used_at: int | None = None


class AttendanceLogResponse(_ORMModel):
    id: int
    member_id: str | None = None
    scanned_value: str
    method: str
    status: str
    reason_code: str | None = None
    timestamp: int


class WarningResponse(BaseModel):
    key: str
    params: dict[str, int] = Field(default_factory=dict)

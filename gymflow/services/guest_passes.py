"""Guest passes: single-use entry codes for visitors without a membership."""
from __future__ import annotations

import logging
import re

from gymflow.config import Settings
from gymflow.metrics import guest_passes_created_total
from gymflow.models import GUEST_CODE_DIGITS, GUEST_CODE_PREFIX, GuestPass
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.billing_cycle import SECONDS_PER_DAY
from gymflow.services.errors import ValidationError
from gymflow.services.subscriptions import validate_price_paid

logger = logging.getLogger(__name__)

_CODE_RE = re.compile(rf"^{re.escape(GUEST_CODE_PREFIX)}(\d+)$")


def format_guest_code(number: int) -> str:
    return f"{GUEST_CODE_PREFIX}{number:0{GUEST_CODE_DIGITS}d}"


class GuestPassService:
    def __init__(self, store: Store, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def _max_code_number(self) -> int:
        numbers = []
        for code in self.store.guest_passes.codes_with_prefix(GUEST_CODE_PREFIX):
            match = _CODE_RE.match(code)
            if match:
                numbers.append(int(match.group(1)))
        return max(numbers, default=0)

    def next_code(self) -> str:
        return format_guest_code(self._max_code_number() + 1)

    def get_by_code(self, code: str) -> GuestPass | None:
        return self.store.guest_passes.get_by_code(code)

    def list_recent(self, limit: int = 50) -> list[GuestPass]:
        return self.store.guest_passes.list_recent(limit)

    def create(
        self,
        *,
        name: str,
        phone: str | None = None,
        price_paid: float | None = None,
        validity_days: int | None = None,
        code: str | None = None,
        now: int | None = None,
    ) -> GuestPass:
        """Issue a pass valid for ``validity_days`` (clamped to 1..max) from ``now``."""
        if not name or not name.strip():
            raise ValidationError("Guest name is required")
        price_paid = validate_price_paid(price_paid)
        now = epoch_now() if now is None else int(now)
        days = min(max(validity_days or 1, 1), self.settings.guest_pass_max_validity_days)

        candidate = (code or "").strip().upper() or self.next_code()
        while self.store.guest_passes.get_by_code(candidate) is not None:
            match = _CODE_RE.match(candidate)
            number = int(match.group(1)) + 1 if match else self._max_code_number() + 1
            candidate = format_guest_code(number)

        guest_pass = self.store.guest_passes.add(
            GuestPass(
                code=candidate,
                name=name.strip(),
                phone=(phone or "").strip() or None,
                price_paid=price_paid,
                created_at=now,
                expires_at=now + days * SECONDS_PER_DAY,
                used_at=None,
            )
        )
        self.store.commit()
        guest_passes_created_total.inc()
        logger.info("Guest pass %s issued, valid %s days", guest_pass.code, days)
        return guest_pass


__all__ = ["GuestPassService", "format_guest_code"]

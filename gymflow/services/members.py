"""Member registration, profile edits and lookups."""
from __future__ import annotations

import logging
import re

from gymflow.config import GENDERS, Settings
from gymflow.models import Member
from gymflow.models.base import epoch_now
from gymflow.repositories import Store
from gymflow.services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CARD_CODE_DIGITS = 5
_PHONE_NOISE = re.compile(r"[\s\-()]")
_EDITABLE = ("name", "phone", "gender", "access_tier", "card_code", "address")


def validate_phone(phone: str) -> bool:
    cleaned = _PHONE_NOISE.sub("", phone or "")
    if cleaned.startswith("+"):
        return re.fullmatch(r"\+\d{8,15}", cleaned) is not None
    if cleaned.startswith("00"):
        return re.fullmatch(r"00\d{8,17}", cleaned) is not None
    return re.fullmatch(r"\d{8,15}", cleaned) is not None


def normalize_phone(phone: str, country_code: str = "+20") -> str:
    """Return ``phone`` in international ``+<digits>`` form."""
    if not phone:
        return ""
    cleaned = _PHONE_NOISE.sub("", phone)
    if cleaned.startswith("00"):
        return "+" + cleaned[2:]
    if cleaned.startswith("+"):
        return cleaned
    if cleaned.startswith("0"):
        cleaned = cleaned[1:]
    return country_code + cleaned


class MemberService:
    def __init__(self, store: Store, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def get(self, member_id: str) -> Member:
        member = self.store.members.get(member_id)
        if member is None:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    def find_by_card_code(self, card_code: str) -> Member | None:
        return self.store.members.get_by_card_code((card_code or "").strip())

    def find_by_phone(self, phone: str) -> Member | None:
        return self.store.members.get_by_phone(
            normalize_phone(phone, self.settings.default_country_code)
        )

    def search(self, query: str) -> list[Member]:
        query = (query or "").strip()
        if not query:
            return []
        normalized = normalize_phone(query, self.settings.default_country_code) if validate_phone(query) else None
        return self.store.members.search(query, normalized)

    def next_card_code(self) -> str:
        serial = self.store.members.max_card_serial(CARD_CODE_DIGITS) + 1
        return str(serial).zfill(CARD_CODE_DIGITS)

    def _check_card_code(self, card_code: str, member_id: str | None = None) -> None:
        existing = self.store.members.get_by_card_code(card_code)
        if existing is not None and existing.id != member_id:
            raise ConflictError(f"Card code already in use: {card_code}")

    def _clean(self, field: str, value):
        if field == "name":
            if not value or not str(value).strip():
                raise ValidationError("Name is required")
            return str(value).strip()
        if field == "phone":
            if not validate_phone(value or ""):
                raise ValidationError(f"Invalid phone number: {value}")
            return normalize_phone(value, self.settings.default_country_code)
        if field == "gender":
            if value not in GENDERS:
                raise ValidationError(f"Gender must be one of {', '.join(GENDERS)}")
            return value
        if field == "access_tier":
            return (value or "A").strip() or "A"
        if field in ("card_code", "address"):
            if not value:
                return None
            return str(value).strip() or None
        raise ValidationError(f"Unknown member field: {field}")

    def register(
        self,
        *,
        name: str,
        phone: str,
        gender: str,
        card_code: str | None = None,
        access_tier: str = "A",
        address: str | None = None,
        now: int | None = None,
    ) -> Member:
        now = epoch_now() if now is None else int(now)
        values = {
            "name": self._clean("name", name),
            "phone": self._clean("phone", phone),
            "gender": self._clean("gender", gender),
            "access_tier": self._clean("access_tier", access_tier),
            "card_code": self._clean("card_code", card_code),
            "address": self._clean("address", address),
        }
        if values["card_code"] is None:
            values["card_code"] = self.next_card_code()
        self._check_card_code(values["card_code"])

        member = self.store.members.add(Member(created_at=now, updated_at=now, **values))
        self.store.commit()
        logger.info("Member %s registered with card %s", member.id, member.card_code)
        return member

    def update(self, member_id: str, **changes) -> Member:
        member = self.get(member_id)
        for field, value in changes.items():
            if field not in _EDITABLE:
                raise ValidationError(f"Unknown member field: {field}")
            cleaned = self._clean(field, value)
            if field == "card_code" and cleaned:
                self._check_card_code(cleaned, member.id)
            setattr(member, field, cleaned)
        member.updated_at = epoch_now()
        self.store.commit()
        return member

    def delete(self, member_id: str) -> None:
        """Delete the member; subscriptions, freezes and quotas cascade, logs stay."""
        member = self.get(member_id)
        self.store.members.delete(member)
        self.store.commit()
        logger.info("Member %s deleted", member_id)


__all__ = ["MemberService", "normalize_phone", "validate_phone", "CARD_CODE_DIGITS"]

import pytest

from gymflow.services.errors import ValidationError
from gymflow.services.guest_passes import GuestPassService, format_guest_code
from tests.helpers import DAY, NOW


def test_format_guest_code():
    assert format_guest_code(7) == "GP-000007"
    assert format_guest_code(1234567) == "GP-1234567"


def test_codes_are_sequential(store, settings):
    service = GuestPassService(store, settings)
    first = service.create(name="One", now=NOW)
    second = service.create(name="Two", phone=" 0100 ", price_paid=50, now=NOW + 1)
    assert (first.code, second.code) == ("GP-000001", "GP-000002")
    assert second.phone == "0100"
    assert second.used_at is None
    assert service.next_code() == "GP-000003"
    assert [p.code for p in service.list_recent()] == ["GP-000002", "GP-000001"]


def test_taken_code_moves_to_next_serial(store, settings):
    service = GuestPassService(store, settings)
    service.create(name="A", code="gp-000005", now=NOW)
    clash = service.create(name="B", code="GP-000005", now=NOW)
    assert clash.code == "GP-000006"
    assert service.get_by_code(" GP-000005 ").name == "A"


@pytest.mark.parametrize("days, expected", [(None, 1), (0, 1), (3, 3), (30, 7)])
def test_validity_clamped(store, settings, days, expected):
    guest_pass = GuestPassService(store, settings).create(name="V", validity_days=days, now=NOW)
    assert guest_pass.expires_at == NOW + expected * DAY


def test_guest_pass_validation(store, settings):
    service = GuestPassService(store, settings)
    with pytest.raises(ValidationError):
        service.create(name=" ", now=NOW)
    with pytest.raises(ValidationError):
        service.create(name="Neg", price_paid=-1, now=NOW)


@pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf"), "50", True])
def test_guest_price_must_be_finite(store, settings, price):
    with pytest.raises(ValidationError):
        GuestPassService(store, settings).create(name="Odd", price_paid=price, now=NOW)


def test_guest_price_stored_as_float(store, settings):
    guest_pass = GuestPassService(store, settings).create(name="Paid", price_paid=75, now=NOW)
    assert guest_pass.price_paid == 75.0

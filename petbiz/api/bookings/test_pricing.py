# petbiz/api/bookings/test_pricing.py
import pytest

from petbiz.api.bookings import pricing
from petbiz.core.errors import InvalidTransitionError, PreconditionError, ValidationError
from petbiz.models.booking import PaymentStatus, Pricing


def test_build_pricing_computes_total():
    result = pricing.build_pricing(50, 10)
    assert result == Pricing(service_price=50.0, additional_charges=10.0, total_amount=60.0,
                             payment_status=PaymentStatus.PENDING)


def test_build_pricing_accepts_matching_total():
    assert pricing.build_pricing(49.99, 0.01, total_amount=50).total_amount == 50.0


def test_build_pricing_rejects_mismatched_total():
    with pytest.raises(ValidationError) as exc_info:
        pricing.build_pricing(50, 10, total_amount=55)
    assert "total_amount" in exc_info.value.details


@pytest.mark.parametrize("service_price, additional", [(-1, 0), (50, -5), ("50", 0), (True, 0)])
def test_build_pricing_rejects_invalid_amounts(service_price, additional):
    with pytest.raises(ValidationError):
        pricing.build_pricing(service_price, additional)


def test_build_pricing_requires_service_price():
    with pytest.raises(ValidationError):
        pricing.build_pricing(None)


def test_payment_moves_forward_only():
    pending = pricing.build_pricing(50)
    paid = pricing.set_payment_status(pending, PaymentStatus.PAID)
    refunded = pricing.set_payment_status(paid, PaymentStatus.REFUNDED)
    assert refunded.payment_status == PaymentStatus.REFUNDED

    with pytest.raises(InvalidTransitionError):
        pricing.set_payment_status(pending, PaymentStatus.REFUNDED)
    with pytest.raises(InvalidTransitionError):
        pricing.set_payment_status(paid, PaymentStatus.PENDING)
    with pytest.raises(InvalidTransitionError):
        pricing.set_payment_status(refunded, PaymentStatus.PAID)


def test_update_additional_charges_recomputes_total():
    updated = pricing.update_additional_charges(pricing.build_pricing(50, 10), 25.5)
    assert updated.additional_charges == 25.5
    assert updated.total_amount == 75.5


def test_update_additional_charges_requires_pending_payment():
    paid = pricing.set_payment_status(pricing.build_pricing(50), PaymentStatus.PAID)
    with pytest.raises(PreconditionError):
        pricing.update_additional_charges(paid, 5)

# petbiz/api/bookings/pricing.py
"""
예약 금액 계산과 결제 상태 전이.

total_amount는 항상 service_price + additional_charges와 같아야 하며,
결제 상태는 pending → paid → refunded 순서로만 바뀝니다.
"""
from dataclasses import replace
from numbers import Number
from typing import Dict, FrozenSet, Optional

from petbiz.core.errors import InvalidTransitionError, PreconditionError, ValidationError
from petbiz.models.booking import Pricing, PaymentStatus

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}


def _money(value) -> float:
    return round(float(value), 2)


def _check_amount(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValidationError(f"{name}은(는) 숫자여야 합니다.", details={name: ["숫자가 아닙니다."]})
    if value < 0:
        raise ValidationError(f"{name}은(는) 0 이상이어야 합니다.", details={name: ["음수는 허용되지 않습니다."]})
    return _money(value)


def compute_total(service_price, additional_charges=0) -> float:
    """service_price + additional_charges. 두 값 중 하나라도 음수이면 ValidationError."""
    return _money(_check_amount("service_price", service_price) +
                  _check_amount("additional_charges", additional_charges))


def build_pricing(service_price, additional_charges=0, total_amount: Optional[float] = None) -> Pricing:
    """
    예약 생성 시 금액 정보를 만듭니다.
    total_amount가 주어지면 계산값과 일치하는지 검증하고, 없으면 계산값을 사용합니다.
    """
    if service_price is None:
        raise ValidationError("service_price는 필수 항목입니다.", details={"service_price": ["필수 항목입니다."]})
    additional_charges = 0 if additional_charges is None else additional_charges
    computed = compute_total(service_price, additional_charges)

    if total_amount is not None and _money(total_amount) != computed:
        raise ValidationError(
            "total_amount가 service_price + additional_charges와 일치하지 않습니다.",
            details={"total_amount": [f"{computed}이어야 합니다."]},
        )

    return Pricing(
        service_price=_money(service_price),
        additional_charges=_money(additional_charges),
        total_amount=computed,
        payment_status=PaymentStatus.PENDING,
    )


def set_payment_status(pricing: Pricing, target: PaymentStatus) -> Pricing:
    """pending→paid, paid→refunded만 허용합니다."""
    if target not in PAYMENT_TRANSITIONS[pricing.payment_status]:
        raise InvalidTransitionError(
            f"결제 상태를 '{pricing.payment_status.value}'에서 '{target.value}'(으)로 변경할 수 없습니다.",
            details={"current_status": pricing.payment_status.value, "target_status": target.value},
        )
    return replace(pricing, payment_status=target)


def update_additional_charges(pricing: Pricing, additional_charges) -> Pricing:
    """추가 요금을 바꾸고 total_amount를 다시 계산합니다. 결제 전(pending)에만 가능합니다."""
    if pricing.payment_status != PaymentStatus.PENDING:
        raise PreconditionError("결제가 진행된 예약의 추가 요금은 변경할 수 없습니다.")
    return replace(
        pricing,
        additional_charges=_check_amount("additional_charges", additional_charges),
        total_amount=compute_total(pricing.service_price, additional_charges),
    )

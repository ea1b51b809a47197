# petbiz/api/bookings/lifecycle.py
"""
예약 상태 머신.

scheduled → confirmed → in_progress → completed 순서로만 진행하며,
종료되지 않은 상태(scheduled, confirmed, in_progress)에서는 cancelled로 전환할 수 있습니다.
completed와 cancelled는 종료 상태로, 이후 어떤 전이도 허용하지 않습니다.
"""
from dataclasses import replace
from datetime import datetime
from typing import Dict, FrozenSet

from petbiz.core.errors import InvalidTransitionError
from petbiz.models.booking import Booking, BookingStatus

ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.SCHEDULED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)
ACTIVE_STATUSES = frozenset(BookingStatus) - TERMINAL_STATUSES


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """허용되지 않는 전이이면 InvalidTransitionError를 발생시킵니다."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"'{current.value}' 상태에서 '{target.value}' 상태로 변경할 수 없습니다.",
            details={"current_status": current.value, "target_status": target.value},
        )


def transition(booking: Booking, target: BookingStatus, at: datetime) -> Booking:
    """전이를 검증한 뒤 상태와 updated_at만 바꾼 새 Booking을 반환합니다."""
    ensure_transition(booking.status, target)
    return replace(booking, status=target, updated_at=at)

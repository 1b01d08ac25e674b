from __future__ import annotations
from datetime import date
from typing import Dict, Iterable, Optional
from uuid import uuid4

from .exceptions import NotFoundError
from .logging import get_logger
from .models import LeaveRequest, LeaveStatus, LeaveType
from .storage import DataStore

logger = get_logger(__name__)


def request_leave(
    store: DataStore,
    employee_id: str,
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    hours: float,
    note: Optional[str] = None,
) -> LeaveRequest:
    if employee_id not in store.users:
        raise NotFoundError(f"Unknown user {employee_id}")
    if end_date < start_date:
        raise ValueError("Leave end date must not precede its start date")
    request = LeaveRequest(
        id=str(uuid4()),
        employee_id=employee_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        hours=max(hours, 0.0),
        note=note,
    )
    store.add_leave_request(request)
    store.save_leave_requests()
    logger.info("leave_requested", request_id=request.id, employee_id=employee_id, leave_type=leave_type.value)
    return request


def _set_status(store: DataStore, request_id: str, status: LeaveStatus) -> LeaveRequest:
    try:
        request = store.leave_requests[request_id]
    except KeyError:
        raise NotFoundError(f"Unknown leave request {request_id}") from None
    request.status = status
    store.save_leave_requests()
    logger.info("leave_status_changed", request_id=request_id, status=status.value)
    return request


def approve_leave(store: DataStore, request_id: str) -> LeaveRequest:
    return _set_status(store, request_id, LeaveStatus.APPROVED)


def deny_leave(store: DataStore, request_id: str) -> LeaveRequest:
    return _set_status(store, request_id, LeaveStatus.DENIED)


def leave_hours_on(day: date, requests: Iterable[LeaveRequest]) -> Dict[LeaveType, float]:
    """Approved leave hours for ``day``, spreading each request evenly over its dates."""

    totals: Dict[LeaveType, float] = {kind: 0.0 for kind in LeaveType}
    for request in requests:
        if request.status is not LeaveStatus.APPROVED or not request.covers(day):
            continue
        span_days = (request.end_date - request.start_date).days + 1
        totals[request.leave_type] += request.hours / span_days
    return totals

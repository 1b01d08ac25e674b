from __future__ import annotations
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .exceptions import StorageError
from .logging import get_logger
from .models import LeaveRequest, LeaveStatus, LeaveType, Role, RulesConfig, User, WorkSession
from .rules import DEFAULT_RULES, normalize_override, normalize_rules, override_to_dict, rules_to_dict

logger = get_logger(__name__)

KEY_SESSIONS = "sessions"
KEY_ACTIVE = "active_session"
KEY_RULES = "rules"
KEY_USERS = "users"
KEY_LEAVE = "leave_requests"

T = TypeVar("T")

RECORD_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class DataStore:
    """Local state kept as one JSON blob per key under ``data_dir``.

    Loading never fails: a missing or unreadable blob falls back to its default
    and the problem is logged. Saving raises ``StorageError``; callers update
    the in-memory state first and report the failure.
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.sessions: List[WorkSession] = []
        self.active_session: Optional[WorkSession] = None
        self.rules: RulesConfig = DEFAULT_RULES
        self.users: Dict[str, User] = {}
        self.leave_requests: Dict[str, LeaveRequest] = {}
        if data_dir.exists():
            self.load()

    def blob_path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def load(self) -> None:
        self.sessions = self._read_list(KEY_SESSIONS, self._deserialize_session)
        raw_active = self._read(KEY_ACTIVE)
        self.active_session = None
        if isinstance(raw_active, dict):
            try:
                self.active_session = self._deserialize_session(raw_active)
            except RECORD_ERRORS as exc:
                logger.warning("store_record_invalid", key=KEY_ACTIVE, error=str(exc))
        raw_rules = self._read(KEY_RULES)
        self.rules = normalize_rules(raw_rules) if raw_rules is not None else DEFAULT_RULES
        self.users = {u.id: u for u in self._read_list(KEY_USERS, self._deserialize_user)}
        self.leave_requests = {r.id: r for r in self._read_list(KEY_LEAVE, self._deserialize_leave)}

    def _read_list(self, key: str, parse: Callable[[dict], T]) -> List[T]:
        raw = self._read(key)
        if not isinstance(raw, list):
            return []
        items: List[T] = []
        for record in raw:
            try:
                items.append(parse(record))
            except RECORD_ERRORS as exc:
                logger.warning("store_record_invalid", key=key, error=str(exc))
        return items

    def save(self) -> None:
        self.save_sessions()
        self.save_active_session()
        self.save_rules()
        self.save_users()
        self.save_leave_requests()

    def save_sessions(self) -> None:
        self._write(KEY_SESSIONS, [self._serialize_session(s) for s in self.sessions])

    def save_active_session(self) -> None:
        active = self.active_session
        self._write(KEY_ACTIVE, self._serialize_session(active) if active else None)

    def save_rules(self) -> None:
        self._write(KEY_RULES, rules_to_dict(self.rules))

    def save_users(self) -> None:
        self._write(KEY_USERS, [self._serialize_user(u) for u in self.users.values()])

    def save_leave_requests(self) -> None:
        self._write(KEY_LEAVE, [self._serialize_leave(r) for r in self.leave_requests.values()])

    def add_user(self, user: User) -> None:
        self.users[user.id] = user

    def add_leave_request(self, request: LeaveRequest) -> None:
        self.leave_requests[request.id] = request

    def list_users(self) -> List[User]:
        """Return users ordered by display name."""

        return sorted(self.users.values(), key=lambda u: u.name.lower())

    def _read(self, key: str) -> Any:
        path = self.blob_path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("store_load_failed", key=key, path=str(path), error=str(exc))
            return None

    def _write(self, key: str, payload: Any) -> None:
        path = self.blob_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, default=self._date_serializer, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("store_save_failed", key=key, path=str(path), error=str(exc))
            raise StorageError(f"Could not save {key} to {path}: {exc}") from exc

    @staticmethod
    def _date_serializer(value):
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        raise TypeError(f"Type {type(value)} not serializable")

    @staticmethod
    def _parse_timestamp(value: str) -> datetime:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    def _serialize_session(self, session: WorkSession) -> dict:
        return {
            "id": session.id,
            "user_id": session.user_id,
            "check_in": session.check_in.isoformat(),
            "check_out": session.check_out.isoformat() if session.check_out else None,
        }

    def _deserialize_session(self, data: dict) -> WorkSession:
        check_out = data.get("check_out")
        return WorkSession(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            check_in=self._parse_timestamp(data["check_in"]),
            check_out=self._parse_timestamp(check_out) if check_out else None,
        )

    def _serialize_user(self, user: User) -> dict:
        return {
            "id": user.id,
            "name": user.name,
            "role": user.role.value,
            "emp_no": user.emp_no,
            "username": user.username,
            "manager": user.manager,
            "status": user.status,
            "code": user.code,
            "department": user.department,
            "terms": override_to_dict(user.terms),
        }

    def _deserialize_user(self, data: dict) -> User:
        return User(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            role=Role(data.get("role") or Role.USER.value),
            emp_no=data.get("emp_no"),
            username=data.get("username"),
            manager=data.get("manager"),
            status=data.get("status") or "active",
            code=data.get("code"),
            department=data.get("department"),
            terms=normalize_override(data.get("terms")),
        )

    def _serialize_leave(self, request: LeaveRequest) -> dict:
        return {
            "id": request.id,
            "employee_id": request.employee_id,
            "leave_type": request.leave_type.value,
            "start_date": request.start_date.isoformat(),
            "end_date": request.end_date.isoformat(),
            "hours": request.hours,
            "note": request.note,
            "status": request.status.value,
        }

    def _deserialize_leave(self, data: dict) -> LeaveRequest:
        return LeaveRequest(
            id=str(data["id"]),
            employee_id=str(data["employee_id"]),
            leave_type=LeaveType(data["leave_type"]),
            start_date=date.fromisoformat(data["start_date"]),
            end_date=date.fromisoformat(data["end_date"]),
            hours=float(data.get("hours") or 0.0),
            note=data.get("note"),
            status=LeaveStatus(data.get("status") or LeaveStatus.PENDING.value),
        )

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import List, MutableMapping, Optional, Sequence

from adamas_calc.backend_logic import Semester, Subject, parse_number
from adamas_calc.logger import get_logger

log = get_logger("records")

HISTORY_KINDS = ("SGPA", "CGPA", "Percentage")


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    date: str
    type: str
    result: float
    details: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            type=str(data["type"]),
            result=float(data["result"]),
            details=str(data.get("details", "")),
        )


@dataclass(frozen=True)
class SemesterProfile:
    id: str
    name: str
    sgpa: float
    credits: int
    subjects: int
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sgpa": self.sgpa,
            "credits": self.credits,
            "subjects": self.subjects,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SemesterProfile":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            sgpa=float(data["sgpa"]),
            credits=int(data.get("credits", 0)),
            subjects=int(data.get("subjects", 0)),
            created_at=str(data.get("createdAt", "")),
        )


def new_record_id() -> str:
    return uuid.uuid4().hex


def _now_string() -> str:
    return datetime.now().strftime("%d/%m/%Y, %H:%M:%S")


# ------------------------
# History entries
# ------------------------
def _history_entry(kind: str, result: float, details: str) -> HistoryEntry:
    if kind not in HISTORY_KINDS:
        raise ValueError(f"Unknown history type {kind!r}. Expected one of {HISTORY_KINDS}.")
    return HistoryEntry(
        id=new_record_id(),
        date=_now_string(),
        type=kind,
        result=float(result),
        details=details,
    )


def sgpa_history_entry(subjects: Sequence[Subject], result: float) -> HistoryEntry:
    total_credits = sum(s.credits for s in subjects)
    return _history_entry("SGPA", result, f"{len(subjects)} subjects, {total_credits:g} credits")


def cgpa_history_entry(semesters: Sequence[Semester], result: float) -> HistoryEntry:
    total_credits = sum(s.credits for s in semesters)
    return _history_entry("CGPA", result, f"{len(semesters)} semesters, {total_credits:g} total credits")


def percentage_history_entry(cgpa: float, result: float) -> HistoryEntry:
    return _history_entry("Percentage", result, f"CGPA: {cgpa:g}")


# ------------------------
# Profiles
# ------------------------
def _as_int(raw) -> int:
    value = parse_number(raw)
    return int(value) if value is not None else 0


def make_profile(name, sgpa, credits=None, subjects=None) -> Optional[SemesterProfile]:
    """
    Build a profile from raw form values.

    A blank name or a missing SGPA means "do nothing" and returns None;
    credits / subject counts that do not parse are stored as 0.
    """
    name = (name or "").strip()
    if not name or sgpa is None or str(sgpa).strip() == "":
        return None

    parsed_sgpa = parse_number(sgpa)
    return SemesterProfile(
        id=new_record_id(),
        name=name,
        sgpa=parsed_sgpa if parsed_sgpa is not None else 0.0,
        credits=_as_int(credits),
        subjects=_as_int(subjects),
        created_at=datetime.now().strftime("%d/%m/%Y"),
    )


def toggle_selection(selected: Sequence[str], profile_id: str, limit: int) -> List[str]:
    if profile_id in selected:
        return [pid for pid in selected if pid != profile_id]
    if len(selected) < limit:
        return [*selected, profile_id]
    return list(selected)


def selection_locked(selected: Sequence[str], profile_id: str, limit: int) -> bool:
    """True when the comparison is full and this profile is not part of it."""
    return profile_id not in selected and len(selected) >= limit


# ------------------------
# Key-value store
# ------------------------
class RecordStore:
    """
    Ordered list of record dicts kept under one key of a mapping.

    In the app the mapping is st.session_state; anything that behaves like a
    dict works.
    """

    def __init__(self, mapping: MutableMapping, key: str):
        self.mapping = mapping
        self.key = key

    def all(self) -> List[dict]:
        return list(self.mapping.get(self.key, []))

    def append(self, record) -> None:
        data = record.to_dict() if hasattr(record, "to_dict") else dict(record)
        self.mapping[self.key] = [*self.all(), data]
        log.debug("Stored record %s under %s", data.get("id"), self.key)

    def delete(self, record_id: str) -> None:
        self.mapping[self.key] = [r for r in self.all() if r.get("id") != record_id]

    def clear(self) -> None:
        self.mapping[self.key] = []

    def __len__(self) -> int:
        return len(self.all())


def history_entries(store: RecordStore) -> List[HistoryEntry]:
    return [HistoryEntry.from_dict(r) for r in store.all()]


def profiles(store: RecordStore) -> List[SemesterProfile]:
    return [SemesterProfile.from_dict(r) for r in store.all()]

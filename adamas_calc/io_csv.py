import pandas as pd
from typing import List, Sequence

from adamas_calc.backend_logic import Semester, Subject, clamp_marks, parse_number
from adamas_calc.logger import get_logger
from adamas_calc.records import HistoryEntry, new_record_id

log = get_logger("io_csv")

HISTORY_COLUMNS = ["Date & Time", "Type", "Result", "Details"]

# ------------------------
# CSV helpers (UI-side)
# ------------------------

def _normalise_cols(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    # allow singular "credit"
    if "credit" in df.columns and "credits" not in df.columns:
        df = df.rename(columns={"credit": "credits"})
    return df

def read_csv_upload(uploaded_file) -> pd.DataFrame:
    df = pd.read_csv(uploaded_file)
    return _normalise_cols(df)

def validate_subjects_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"marks", "credits"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: Name (optional), Marks, Credits.")
    out = df[["marks", "credits"]].copy()
    out.insert(0, "name", df["name"] if "name" in df.columns else "")
    out = out.rename(columns={"name": "Name", "marks": "Marks", "credits": "Credits"})
    return out

def validate_semesters_csv(df: pd.DataFrame) -> pd.DataFrame:
    required = {"sgpa", "credits"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {sorted(missing)}. Expected: SGPA, Credits.")
    out = df[["sgpa", "credits"]].copy()
    out = out.rename(columns={"sgpa": "SGPA", "credits": "Credits"})
    return out

def _credits_or_none(credit, what: str):
    value = parse_number(credit)
    if value is None:
        log.warning("Skipping %s row with non-numeric credits: %r", what, credit)
        return None
    if value <= 0:
        log.warning("Skipping %s row with non-positive credits: %s", what, credit)
        return None
    return value

def parse_subjects(df: pd.DataFrame) -> List[Subject]:
    """
    Marks are clamped to [0, 100]; blank rows and rows whose credits are not
    a positive number are skipped.
    """
    rows = []
    for _, row in df.iterrows():
        marks = row.get("Marks")
        credit = row.get("Credits")
        if pd.isna(marks) or pd.isna(credit):
            continue
        credits = _credits_or_none(credit, "subject")
        if credits is None:
            continue
        name = row.get("Name")
        rows.append(
            Subject(
                id=new_record_id(),
                name="" if pd.isna(name) else str(name),
                credits=credits,
                marks=clamp_marks(marks),
            )
        )
    return rows

def parse_semesters(df: pd.DataFrame) -> List[Semester]:
    rows = []
    for _, row in df.iterrows():
        raw_sgpa = row.get("SGPA")
        credit = row.get("Credits")
        if pd.isna(raw_sgpa) or pd.isna(credit):
            continue
        sgpa = parse_number(raw_sgpa)
        if sgpa is None or sgpa < 0 or sgpa > 10:
            log.warning("Skipping semester row with SGPA outside 0-10: %r", raw_sgpa)
            continue
        credits = _credits_or_none(credit, "semester")
        if credits is None:
            continue
        rows.append(Semester(id=new_record_id(), sgpa=sgpa, credits=credits))
    return rows


# ------------------------
# History export
# ------------------------

def format_result(entry: HistoryEntry) -> str:
    if entry.type == "Percentage":
        return f"{entry.result:.2f}%"
    return f"{entry.result:.2f}"

def history_frame(entries: Sequence[HistoryEntry]) -> pd.DataFrame:
    return pd.DataFrame(
        [[e.date, e.type, format_result(e), e.details] for e in entries],
        columns=HISTORY_COLUMNS,
    )

def history_csv(entries: Sequence[HistoryEntry]) -> str:
    return history_frame(entries).to_csv(index=False)

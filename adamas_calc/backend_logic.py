import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
from decimal import Decimal, ROUND_HALF_UP

import numpy as np
import pandas as pd

from adamas_calc.logger import get_logger

log = get_logger("engine")


# ------------------------
# Grading scale
# ------------------------
@dataclass(frozen=True)
class GradeBand:
    symbol: str
    min_marks: float
    max_marks: float
    grade_point: int


GRADE_BANDS: Tuple[GradeBand, ...] = (
    GradeBand("O", 90, 100, 10),
    GradeBand("A+", 80, 89, 9),
    GradeBand("A", 70, 79, 8),
    GradeBand("B+", 60, 69, 7),
    GradeBand("B", 50, 59, 6),
    GradeBand("C", 40, 49, 5),
    GradeBand("P", 35, 39, 4),
    GradeBand("F", 0, 34, 0),
    GradeBand("AB", 0, 0, 0),
    GradeBand("DB", 0, 0, 0),
)

# Absent / Debarred are never produced from marks
SPECIAL_SYMBOLS = {"AB": "Absent", "DB": "Debarred"}

GRADED_BANDS: Tuple[GradeBand, ...] = tuple(
    b for b in GRADE_BANDS if b.symbol not in SPECIAL_SYMBOLS
)

LOWEST_BAND = GRADED_BANDS[-1]


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    credits: float
    marks: float


@dataclass(frozen=True)
class Semester:
    id: str
    sgpa: float
    credits: float


@dataclass(frozen=True)
class FutureSemester:
    id: str
    name: str
    expected_sgpa: float
    credits: float


@dataclass(frozen=True)
class TargetResult:
    required_sgpa: float
    achievable: bool
    message: str


@dataclass(frozen=True)
class ProjectionPoint:
    label: str
    cgpa: float
    cumulative_credits: float


@dataclass(frozen=True)
class Projection:
    final_cgpa: float
    trajectory: Tuple[ProjectionPoint, ...]


# ------------------------
# Core logic
# ------------------------
def round_2dp_half_up(x: float) -> float:
    return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def clamp_marks(value) -> float:
    try:
        marks = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(marks):
        return 0.0
    return min(100.0, max(0.0, marks))


def grade_for_marks(marks: float) -> Tuple[str, int]:
    """
    Band lookup over the graded part of GRADE_BANDS.

    Bands are scanned from the highest lower bound down; the first band whose
    lower bound is <= marks wins, so every boundary belongs to the band above
    it (exactly 90 is an O). Anything that matches no band, negative marks and
    NaN included, lands in F.
    """
    for band in GRADED_BANDS:
        if marks >= band.min_marks:
            return band.symbol, band.grade_point
    return LOWEST_BAND.symbol, LOWEST_BAND.grade_point


def grade_point_for_symbol(symbol: str) -> int:
    for band in GRADE_BANDS:
        if band.symbol == symbol:
            return band.grade_point
    return 0


def grade_distribution(subjects: Sequence[Subject]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for subject in subjects:
        symbol, _ = grade_for_marks(subject.marks)
        counts[symbol] = counts.get(symbol, 0) + 1
    # keep the band-table order so charts read high -> low
    return {b.symbol: counts[b.symbol] for b in GRADED_BANDS if b.symbol in counts}


def weighted_mean(vc: np.ndarray) -> Tuple[float, float]:
    """
    vc: Nx2 numpy array -> [value, credit]
    returns: (credit-weighted mean rounded to 2dp, total credits)

    Empty input or zero total credits gives a mean of 0.
    """
    if vc.size == 0:
        return 0.0, 0.0

    values = vc[:, 0].astype(float)
    credits = vc[:, 1].astype(float)
    total_credits = float(credits.sum())
    if total_credits == 0:
        return 0.0, 0.0

    mean = float(np.dot(values, credits) / total_credits)
    return round_2dp_half_up(mean), total_credits


def compute_sgpa(subjects: Sequence[Subject]) -> float:
    if len(subjects) > 0:
        vc = np.array(
            [(grade_for_marks(s.marks)[1], s.credits) for s in subjects],
            dtype=float,
        )
    else:
        vc = np.zeros((0, 2), dtype=float)

    sgpa, total_credits = weighted_mean(vc)
    log.debug("SGPA %.2f from %d subjects (%g credits)", sgpa, len(subjects), total_credits)
    return sgpa


def compute_cgpa(semesters: Sequence[Semester]) -> float:
    if len(semesters) > 0:
        vc = np.array([(s.sgpa, s.credits) for s in semesters], dtype=float)
    else:
        vc = np.zeros((0, 2), dtype=float)

    cgpa, total_credits = weighted_mean(vc)
    log.debug("CGPA %.2f from %d semesters (%g credits)", cgpa, len(semesters), total_credits)
    return cgpa


def cgpa_to_percentage(cgpa: float) -> float:
    return round_2dp_half_up((cgpa - 0.5) * 10)


def parse_number(raw) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def percentage_from_input(raw) -> Optional[float]:
    """Returns None when the CGPA is not a number in [0, 10]."""
    cgpa = parse_number(raw)
    if cgpa is None or cgpa < 0 or cgpa > 10:
        log.info("Ignoring percentage conversion for input %r", raw)
        return None
    return cgpa_to_percentage(cgpa)


def minimum_grade_for(required: float) -> Optional[GradeBand]:
    """Graded band with the smallest positive grade point still >= required."""
    candidates = [b for b in GRADED_BANDS if b.grade_point > 0 and b.grade_point >= required]
    if not candidates:
        return None
    return min(candidates, key=lambda b: b.grade_point)


def minimal_forward_average_for_target(target_cgpa,
                                       credits_upcoming,
                                       current_cgpa,
                                       credits_completed):
    Ca = credits_completed
    Cu = credits_upcoming
    Ma = current_cgpa

    x = (target_cgpa * (Ca + Cu) - Ma * Ca) / Cu
    return x


def _invalid_target(message: str) -> TargetResult:
    log.info("Target calculation rejected: %s", message)
    return TargetResult(required_sgpa=0.0, achievable=False, message=message)


def required_sgpa(current_cgpa, completed_credits, target_cgpa, upcoming_credits) -> TargetResult:
    """
    SGPA needed over the upcoming credits to move the CGPA to a target.

    Inputs may be raw form values; anything that does not parse as a finite
    number, a CGPA outside [0, 10], negative completed credits or no upcoming
    credits produces a non-achievable result carrying the reason instead of a
    computed value.
    """
    current = parse_number(current_cgpa)
    completed = parse_number(completed_credits)
    target = parse_number(target_cgpa)
    upcoming = parse_number(upcoming_credits)

    if current is None or completed is None or target is None or upcoming is None:
        return _invalid_target("Please fill in all fields with valid numbers")

    if current < 0 or current > 10 or target < 0 or target > 10:
        return _invalid_target("CGPA must be between 0 and 10")

    if completed < 0:
        return _invalid_target("Completed credits cannot be negative")

    if upcoming <= 0:
        return _invalid_target("Upcoming credits must be greater than 0")

    needed = minimal_forward_average_for_target(
        target_cgpa=target,
        credits_upcoming=upcoming,
        current_cgpa=current,
        credits_completed=completed,
    )
    log.debug(
        "Required SGPA %.4f (current=%s, completed=%s, target=%s, upcoming=%s)",
        needed, current, completed, target, upcoming,
    )

    if needed > 10:
        return TargetResult(
            required_sgpa=needed,
            achievable=False,
            message=(
                f"You need an SGPA of {needed:.2f}, which is above the maximum (10). "
                "Try a lower target CGPA."
            ),
        )

    if needed < 0:
        return TargetResult(
            required_sgpa=0.0,
            achievable=True,
            message=(
                "You've already exceeded your target! Even with minimum grades, "
                f"you'll surpass {target:.2f} CGPA."
            ),
        )

    band = minimum_grade_for(needed)
    hint = (
        f' You need an average grade of at least "{band.symbol}" '
        f"({band.grade_point} points) across all subjects."
        if band is not None
        else ""
    )
    return TargetResult(
        required_sgpa=needed,
        achievable=True,
        message=f"You need an SGPA of {needed:.2f} in your upcoming semester.{hint}",
    )


def project_cgpa(current_cgpa: float,
                 completed_credits: float,
                 future_semesters: Sequence[FutureSemester]) -> Projection:
    """
    CGPA after each future semester, in the order given.

    Returns
    -------
    Projection
        trajectory[0] is always the starting point labelled "Current";
        final_cgpa is the cgpa of the last trajectory point.
    """
    start = ProjectionPoint("Current", current_cgpa, completed_credits)

    if len(future_semesters) == 0:
        return Projection(final_cgpa=start.cgpa, trajectory=(start,))

    sgpas = np.array([s.expected_sgpa for s in future_semesters], dtype=float)
    credits = np.array([s.credits for s in future_semesters], dtype=float)

    running_credits = completed_credits + np.cumsum(credits)
    running_points = current_cgpa * completed_credits + np.cumsum(sgpas * credits)

    points: List[ProjectionPoint] = [start]
    for semester, total_credits, total_points in zip(future_semesters, running_credits, running_points):
        cgpa = total_points / total_credits if total_credits > 0 else 0.0
        points.append(
            ProjectionPoint(
                label=semester.name,
                cgpa=round_2dp_half_up(float(cgpa)),
                cumulative_credits=float(total_credits),
            )
        )

    log.debug("Projected CGPA %.2f over %d semesters", points[-1].cgpa, len(future_semesters))
    return Projection(final_cgpa=points[-1].cgpa, trajectory=tuple(points))


def projection_frame(projection: Projection) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Semester": p.label, "CGPA": p.cgpa, "Credits": p.cumulative_credits}
            for p in projection.trajectory
        ]
    )


# ------------------------
# Performance tiers
# ------------------------
PERFORMANCE_TIERS = (
    (9.0, "Outstanding"),
    (8.0, "Excellent"),
    (7.0, "Very Good"),
    (6.0, "Good"),
)


def sgpa_band_label(sgpa: float) -> str:
    for threshold, label in PERFORMANCE_TIERS:
        if sgpa >= threshold:
            return label
    return "Needs Improvement"


def grade_table() -> pd.DataFrame:
    rows = []
    for band in GRADE_BANDS:
        if band.symbol in SPECIAL_SYMBOLS:
            marks = SPECIAL_SYMBOLS[band.symbol]
        elif band is LOWEST_BAND:
            marks = f"< {GRADED_BANDS[-2].min_marks}"
        else:
            marks = f"{band.min_marks} - {band.max_marks}"
        rows.append({"Grade": band.symbol, "Marks": marks, "Grade Point": band.grade_point})
    return pd.DataFrame(rows)

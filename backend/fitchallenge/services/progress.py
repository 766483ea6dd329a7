from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from decimal import Decimal, ROUND_HALF_UP
from fitchallenge.schemas.challenge import Challenge, Progress, ProgressUpdate, UserChallenge

# goal kind -> (current field, total field) on Progress
GOAL_FIELDS = {
    "totalDistance": ("current_distance", "total_distance"),
    "caloriesBurned": ("current_calories", "total_calories"),
    "totalMinutes": ("current_minutes", "total_minutes"),
    "totalSessions": ("current_sessions", "total_sessions"),
}

# (current, total) pairs that count toward completion
CRITERIA = (
    ("completed_workouts", "total_workouts"),
    ("current_distance", "total_distance"),
    ("current_calories", "total_calories"),
    ("current_minutes", "total_minutes"),
    ("current_sessions", "total_sessions"),
)

# delta field -> accumulating progress field
DELTA_FIELDS = {
    "distance": "current_distance",
    "calories": "current_calories",
    "minutes": "current_minutes",
    "sessions": "current_sessions",
}


def seed_progress(challenge: Challenge) -> Progress:
    goals = challenge.goals
    fields: dict = {
        "current_day": 1,
        "total_days": challenge.duration,
        "completed_workouts": 0,
        "total_workouts": goals.get("totalWorkouts") or challenge.duration,
    }
    for kind, (current, total) in GOAL_FIELDS.items():
        if goals.get(kind):
            fields[current] = 0
            fields[total] = goals[kind]
    return Progress(**fields)


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_progress(progress: Progress) -> int:
    """
    Unweighted mean of current/total over every tracked criterion, as 0-100.

    Only the final average is clamped; a criterion past its target still
    pulls the average up.
    """
    total_pct = 0.0
    criteria = 0
    for current, total in CRITERIA:
        target = getattr(progress, total)
        if not target:
            continue
        total_pct += (getattr(progress, current) or 0) / target * 100
        criteria += 1
    if criteria == 0:
        return 0
    return min(max(_round_half_up(total_pct / criteria), 0), 100)


def apply_update(progress: Progress, update: ProgressUpdate) -> Progress:
    """Return a new snapshot with the delta accumulated."""
    data = progress.model_dump()
    for delta_field, current in DELTA_FIELDS.items():
        amount = getattr(update, delta_field)
        if amount:
            data[current] = (data.get(current) or 0) + amount
    if update.workout_completed:
        data["completed_workouts"] += 1
        data["current_day"] = min(data["current_day"] + 1, data["total_days"])
    return Progress(**data)


def settle_completion(uc: UserChallenge, now: datetime | None = None) -> int:
    """Recompute the percentage and flip an active record to completed at 100."""
    pct = calculate_progress(uc.progress)
    if pct >= 100 and uc.status == "active":
        uc.status = "completed"
        uc.completed_at = now or datetime.now(dt_tz.utc)
    return pct

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from fitchallenge.schemas.challenge import Challenge, Progress, ProgressUpdate, UserChallenge
from fitchallenge.services.progress import apply_update, calculate_progress, seed_progress, settle_completion


def _challenge(goals: dict, duration: int = 10) -> Challenge:
    return Challenge(id="X", title="X", category="running", difficulty="beginner", duration=duration, goals=goals)


def _user_challenge(progress: Progress) -> UserChallenge:
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return UserChallenge(
        id="u1_X_1", user_id="u1", challenge_id="X", progress=progress,
        start_date=now, end_date=now + timedelta(days=progress.total_days), joined_at=now,
    )


def test_seed_progress_pairs_follow_goal_kinds():
    ch = _challenge({
        "totalDistance": 50, "caloriesBurned": 1000, "totalMinutes": 300,
        "totalSessions": 12, "totalWorkouts": 5, "avgPace": 6.5,
    })
    assert seed_progress(ch).to_document() == {
        "currentDay": 1, "totalDays": 10,
        "completedWorkouts": 0, "totalWorkouts": 5,
        "currentDistance": 0, "totalDistance": 50,
        "currentCalories": 0, "totalCalories": 1000,
        "currentMinutes": 0, "totalMinutes": 300,
        "currentSessions": 0, "totalSessions": 12,
    }


def test_seed_progress_falls_back_to_duration_for_workouts():
    progress = seed_progress(_challenge({"totalSessions": 14, "totalMinutes": 280}, duration=14))
    assert progress.total_workouts == 14
    assert progress.current_distance is None and progress.total_distance is None


def test_scenario_distance_and_workout_average():
    progress = seed_progress(_challenge({"totalDistance": 50, "totalWorkouts": 5}))
    assert progress.to_document() == {
        "currentDistance": 0, "totalDistance": 50, "currentDay": 1, "totalDays": 10,
        "completedWorkouts": 0, "totalWorkouts": 5,
    }
    updated = apply_update(progress, ProgressUpdate(distance=25, workout_completed=True))
    assert updated.current_distance == 25
    assert updated.completed_workouts == 1
    assert updated.current_day == 2
    assert calculate_progress(updated) == 35


def test_no_criteria_is_zero():
    assert calculate_progress(Progress(total_days=0, total_workouts=0)) == 0


def test_final_average_is_clamped():
    progress = Progress(total_days=10, completed_workouts=30, total_workouts=10)
    assert calculate_progress(progress) == 100


def test_over_target_criterion_inflates_average_before_clamp():
    progress = Progress(total_days=10, completed_workouts=15, total_workouts=10, current_distance=0, total_distance=50)
    assert calculate_progress(progress) == 75


def test_rounds_half_up():
    progress = Progress(total_days=8, completed_workouts=1, total_workouts=8)  # 12.5%
    assert calculate_progress(progress) == 13


def test_apply_update_creates_untracked_fields_and_leaves_input_alone():
    progress = Progress(total_days=10, total_workouts=10)
    updated = apply_update(progress, ProgressUpdate(calories=200, minutes=30))
    assert updated.current_calories == 200
    assert updated.current_minutes == 30
    assert updated.total_calories is None
    assert progress.current_calories is None
    # untracked fields don't count toward completion
    assert calculate_progress(updated) == 0


def test_current_day_capped_at_total_days():
    progress = Progress(current_day=2, total_days=2, total_workouts=5)
    updated = apply_update(progress, ProgressUpdate(workout_completed=True))
    assert updated.current_day == 2
    assert updated.completed_workouts == 1


def test_sessions_delta_drives_session_goal():
    progress = seed_progress(_challenge({"totalSessions": 2}, duration=2))
    updated = apply_update(progress, ProgressUpdate(sessions=1))
    assert updated.current_sessions == 1
    # sessions 50% and workouts (duration fallback) 0%
    assert calculate_progress(updated) == 25


def test_settle_completion_flips_status_once():
    uc = _user_challenge(Progress(total_days=2, completed_workouts=2, total_workouts=2))
    stamp = datetime(2025, 1, 3, tzinfo=timezone.utc)
    assert settle_completion(uc, stamp) == 100
    assert uc.status == "completed"
    assert uc.completed_at == stamp


def test_settle_completion_below_threshold_keeps_active():
    uc = _user_challenge(Progress(total_days=2, completed_workouts=1, total_workouts=2))
    assert settle_completion(uc) == 50
    assert uc.status == "active"
    assert uc.completed_at is None

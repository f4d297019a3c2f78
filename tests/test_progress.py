from datetime import datetime, timedelta, timezone

from app.services.progress import build_progress, format_duration, photos_required

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _steps(statuses, started_at=None):
    types = ["inspection", "preparation", "installation", "finalization"]
    return [
        {"step_number": i + 1, "step_type": types[i], "status": status, "started_at": started_at}
        for i, status in enumerate(statuses)
    ]


def test_format_duration():
    assert format_duration(0) == "0m"
    assert format_duration(45) == "45m"
    assert format_duration(135) == "2h 15m"


def test_photos_required_per_stage():
    assert photos_required("inspection") == 8
    assert photos_required("installation") == 12
    assert photos_required(None) == 4
    assert photos_required("unknown") == 4


def test_progress_midway():
    intervention = {
        "current_step": 3,
        "completion_percentage": 50,
        "created_at": (NOW - timedelta(hours=1, minutes=30)).isoformat(),
    }
    steps = _steps(["completed", "completed", "in_progress", "pending"], started_at=NOW.isoformat())

    data = build_progress(intervention, steps, {1: 8, 2: 4, 3: 2}, now=NOW)

    assert data["overall_progress"] == 50
    assert data["completed_steps"] == 2
    assert data["remaining_steps"] == 2
    assert data["time_elapsed"] == "1h 30m"
    assert data["time_remaining"] == "1h 30m"
    assert [s["progress_percentage"] for s in data["step_breakdown"]] == [100, 100, 50, 0]
    assert data["step_breakdown"][2]["photos_count"] == 2
    assert data["blockers"] == []
    assert data["recommendations"] == ["Take additional photos for current step"]


def test_progress_blockers_and_recommendations():
    intervention = {
        "current_step": 2,
        "completion_percentage": 0,
        "created_at": (NOW - timedelta(days=10)).isoformat(),
    }
    steps = _steps(
        ["completed", "in_progress", "pending", "pending"],
        started_at=(NOW - timedelta(hours=3)).isoformat(),
    )

    data = build_progress(intervention, steps, {}, now=NOW)

    assert data["overall_progress"] == 25
    assert data["blockers"] == [
        "2 step(s) missing required photos",
        "Intervention is overdue (>7 days)",
    ]
    assert data["recommendations"] == [
        "Address blockers to continue workflow",
        "Consider pausing long-running steps for review",
        "Take additional photos for current step",
    ]


def test_progress_completed_has_no_remaining_time():
    intervention = {"current_step": 4, "completion_percentage": 100, "created_at": NOW.isoformat()}
    data = build_progress(intervention, _steps(["completed"] * 4), {1: 1, 2: 1, 3: 1, 4: 1}, now=NOW)
    assert data["overall_progress"] == 100
    assert data["time_remaining"] is None
    assert data["time_elapsed"] == "0m"

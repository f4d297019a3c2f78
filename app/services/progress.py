"""Read-only progress summary for an intervention."""
from datetime import datetime, timezone

from app.config import settings
from app.models.step import STEP_TYPES
from app.services.compliance import parse_timestamp

PHOTOS_REQUIRED = {
    "inspection": 8,
    "preparation": 4,
    "installation": 12,
    "finalization": 6,
}
DEFAULT_PHOTOS_REQUIRED = 4
LONG_RUNNING_STEP_HOURS = 2


def photos_required(step_type: str | None) -> int:
    return PHOTOS_REQUIRED.get(step_type or "", DEFAULT_PHOTOS_REQUIRED)


def format_duration(minutes: int) -> str:
    hours, minutes = divmod(max(0, minutes), 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _elapsed(created_at: str | None, now: datetime) -> str:
    created = parse_timestamp(created_at)
    if created is None:
        return "0m"
    return format_duration(int((now - created).total_seconds() // 60))


def build_progress(
    intervention: dict,
    steps: list[dict],
    photo_counts: dict[int, int],
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(timezone.utc)
    total = len(steps) or len(STEP_TYPES)
    completed = sum(1 for s in steps if s.get("status") == "completed")

    overall = intervention.get("completion_percentage") or 0
    if steps:
        overall = max(overall, completed / len(steps) * 100)

    remaining = total - completed
    remaining_minutes = remaining * settings.minutes_per_step
    time_remaining = format_duration(remaining_minutes) if remaining_minutes else None

    breakdown = []
    for step in steps:
        status = step.get("status")
        breakdown.append({
            "step_number": step.get("step_number"),
            "step_type": step.get("step_type"),
            "status": status,
            "progress_percentage": 100 if status == "completed" else 50 if status == "in_progress" else 0,
            "photos_count": photo_counts.get(step.get("step_number"), 0),
            "photos_required": photos_required(step.get("step_type")),
        })

    blockers = []
    without_photos = [b for b in breakdown if b["status"] != "pending" and b["photos_count"] == 0]
    if without_photos:
        blockers.append(f"{len(without_photos)} step(s) missing required photos")

    created = parse_timestamp(intervention.get("created_at"))
    if created and (now - created).total_seconds() / 86400 > settings.stale_intervention_days:
        blockers.append(f"Intervention is overdue (>{settings.stale_intervention_days} days)")

    recommendations = []
    if blockers:
        recommendations.append("Address blockers to continue workflow")

    for step in steps:
        started = parse_timestamp(step.get("started_at"))
        if step.get("status") == "in_progress" and started:
            if (now - started).total_seconds() / 3600 > LONG_RUNNING_STEP_HOURS:
                recommendations.append("Consider pausing long-running steps for review")
                break

    if any(b["status"] == "in_progress" and b["photos_count"] < b["photos_required"] for b in breakdown):
        recommendations.append("Take additional photos for current step")

    return {
        "overall_progress": round(overall),
        "current_step": intervention.get("current_step"),
        "total_steps": total,
        "completed_steps": completed,
        "remaining_steps": remaining,
        "time_elapsed": _elapsed(intervention.get("created_at"), now),
        "time_remaining": time_remaining,
        "step_breakdown": breakdown,
        "blockers": blockers,
        "recommendations": recommendations,
    }

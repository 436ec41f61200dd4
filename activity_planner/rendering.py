# ABOUTME: Plain-text rendering of a validated ActivityPlan for terminals and chat replies.
# ABOUTME: Lays out the weather summary, morning/afternoon/indoor sections and warnings.

from activity_planner.models import ActivityItem, ActivityPlan

_RULE = "═" * 29


def _render_items(items: list[ActivityItem]) -> list[str]:
    lines = []
    for item in items:
        lines.append(f"• {item.name} - {item.description}")
        lines.append(f"  📍 {item.location}")
        if item.timing:
            lines.append(f"  ⏰ {item.timing}")
        if item.note:
            lines.append(f"  💡 {item.note}")
    return lines


def render_plan(plan: ActivityPlan, title: str | None = None) -> str:
    """Format a plan as sectioned text. Empty indoor/warning sections are omitted."""
    lines = []
    if title:
        lines += [f"📅 {title}", _RULE, ""]

    s = plan.summary
    lines += [
        "🌡️ WEATHER SUMMARY",
        f"• Conditions: {s.conditions}",
        f"• Temperature: {s.temp_range_c} ({s.temp_range_f})",
        f"• Precipitation: {s.precip_chance} chance",
        "",
        "🌅 MORNING ACTIVITIES",
        *_render_items(plan.morning),
        "",
        "🌞 AFTERNOON ACTIVITIES",
        *_render_items(plan.afternoon),
    ]
    if plan.indoor:
        lines += ["", "🏠 INDOOR ALTERNATIVES", *_render_items(plan.indoor)]
    if plan.warnings:
        lines += ["", "⚠️ SPECIAL CONSIDERATIONS", *(f"• {w}" for w in plan.warnings)]
    return "\n".join(lines)

"""
Milestone ladders and title descriptions.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Milestone:
    limit: int
    label: str
    subtitle: str


@dataclass(frozen=True)
class MilestoneProgress:
    """Where a value sits on a ladder."""

    current: Milestone
    next: Milestone
    progress: float


VISIT_MILESTONES: Tuple[Milestone, ...] = (
    Milestone(1, "High Schooler", "Still in high school."),
    Milestone(5, "Gaijin", "Still a stranger here."),
    Milestone(10, "Street Racer", "Knows the smell of asphalt."),
    Milestone(25, "Challenger", "The streets know the name."),
    Milestone(50, "Han", "Has a garage of their own."),
    Milestone(100, "D.K. (Legend)", "Master of the mountain."),
)

TIME_MILESTONES: Tuple[Milestone, ...] = (
    Milestone(1, "Friend", "Knows where the restroom is."),
    Milestone(25, "Settled In", "Gets called roommate."),
    Milestone(50, "Fixture", "Knows where to sit."),
    Milestone(100, "Second Home", "Still missing a key."),
    Milestone(200, "Lives Here", "If they vanish, call the police."),
    Milestone(400, "Landlord", "Pays the property tax."),
)

TITLE_ICONS = {
    "Most Reliable": "💪",
    "Marathoner": "🏃",
    "Early Bird": "🐦",
    "One-Hour Wonder": "⏱️",
    "Ghost": "👻",
}

TITLE_DESCRIPTIONS = {
    "Most Reliable": "Always shows up. Rain, snow, apocalypse.",
    "Marathoner": "Stayed so long even the lights wanted to leave.",
    "Early Bird": "Arrived before the event knew it started.",
    "One-Hour Wonder": "Fast, efficient, gone before coffee cooled.",
    "Ghost": "Seen rarely. Proof still under investigation.",
}


def milestone_progress(value: float, ladder: Sequence[Milestone] = VISIT_MILESTONES) -> MilestoneProgress:
    """
    Locate value on a milestone ladder.

    ``current`` is the highest milestone reached (the first rung if none
    is), ``next`` the one after it (the last rung once the ladder is
    complete) and ``progress`` the fraction of ``next`` achieved, capped at 1.
    """
    if not ladder:
        raise ValueError("Milestone ladder is empty")

    current = ladder[0]
    upcoming = ladder[1] if len(ladder) > 1 else ladder[0]
    for index, milestone in enumerate(ladder):
        if value >= milestone.limit:
            current = milestone
            upcoming = ladder[index + 1] if index + 1 < len(ladder) else milestone

    progress = min(value / upcoming.limit, 1.0) if upcoming.limit else 1.0
    return MilestoneProgress(current=current, next=upcoming, progress=max(progress, 0.0))


def title_icon(title: str) -> str:
    return TITLE_ICONS.get(title, "")


def title_description(title: str) -> Optional[str]:
    return TITLE_DESCRIPTIONS.get(title)

"""Static reference data for the four life areas."""

from __future__ import annotations

from dataclasses import dataclass

from growth_tracker.domain.models import Area


@dataclass(frozen=True, slots=True)
class AreaDefinition:
    area: Area
    name: str
    color: str
    icon: str
    description: str
    prompts: tuple[str, ...]


AREA_DEFINITIONS: dict[Area, AreaDefinition] = {
    Area.TECH: AreaDefinition(
        area=Area.TECH,
        name="Technology & Scientific Knowledge",
        color="#0A84FF",
        icon="cpu",
        description="Track your growth in technical skills and scientific understanding.",
        prompts=(
            "How much have you learned about new technologies this week?",
            "Have you applied your technical knowledge to solve any problems?",
            "Have you shared your technical expertise with others?",
            "How confident do you feel with your current technical skills?",
        ),
    ),
    Area.PERSONAL: AreaDefinition(
        area=Area.PERSONAL,
        name="Personal Growth",
        color="#30D158",
        icon="heart",
        description="Monitor your personal development, wellbeing, and mindfulness.",
        prompts=(
            "How well have you maintained your physical health?",
            "Have you practiced mindfulness or self-reflection?",
            "Have you pursued any personal hobbies or interests?",
            "How would you rate your overall mental wellbeing?",
        ),
    ),
    Area.BUSINESS: AreaDefinition(
        area=Area.BUSINESS,
        name="Business & Finance",
        color="#FF9F0A",
        icon="briefcase",
        description="Evaluate your professional progress and financial literacy.",
        prompts=(
            "Have you made progress toward your professional goals?",
            "How effectively have you managed your finances?",
            "Have you identified new opportunities for growth?",
            "How satisfied are you with your work-life balance?",
        ),
    ),
    Area.SOCIAL: AreaDefinition(
        area=Area.SOCIAL,
        name="Intimate & Social Relationships",
        color="#FF375F",
        icon="users",
        description="Assess the quality of your relationships and social connections.",
        prompts=(
            "How much quality time have you spent with loved ones?",
            "Have you had meaningful conversations with friends or family?",
            "Have you expanded your social network?",
            "How supported do you feel by your social circle?",
        ),
    ),
}


def get_area_definition(area: Area | str) -> AreaDefinition:
    return AREA_DEFINITIONS[Area.coerce(area)]


def area_icon(area: Area | str) -> str:
    return get_area_definition(area).icon

"""CSV value normalization — handles BOM, trailing spaces, skill lists."""

from __future__ import annotations

import re

from fieldservice.domain.entities.engineer import Skill
from fieldservice.domain.value_objects.enums import Role, SkillLevel


def normalize_column_name(name: str) -> str:
    """Normalize a CSV column name.

    - Removes BOM characters (\\ufeff)
    - Replaces runs of spaces / non-breaking spaces with a single underscore
    - Lowercases
    - Strips anything that is not alphanumeric or underscore
    """
    name = name.replace("\ufeff", "").strip()
    name = re.sub(r"[\s\u00a0]+", "_", name)
    name = name.lower()
    return re.sub(r"[^\w]", "", name, flags=re.UNICODE)


def clean_string(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def parse_level(raw: str | None) -> SkillLevel:
    """Unknown or missing levels fall back to novice."""
    try:
        return SkillLevel((raw or "").strip().lower())
    except ValueError:
        return SkillLevel.NOVICE


def parse_role(raw: str | None) -> Role:
    try:
        return Role((raw or "").strip().lower())
    except ValueError:
        return Role.ENGINEER


def parse_years(raw: str | None) -> float:
    if not raw:
        return 0
    try:
        return max(0.0, float(raw.replace(",", ".").strip()))
    except ValueError:
        return 0


def parse_skills(raw: str | None) -> list[Skill]:
    """Parse 'CO2:expert:4; Fiber:advanced:2' into Skill objects.

    Level and years are optional ('Fiber' alone is a novice skill with no
    experience). Skills are separated by ';' or '|'.
    """
    if not raw:
        return []
    skills = []
    for part in re.split(r"[;|]+", raw):
        fields = [f.strip() for f in part.split(":")]
        if not fields or not fields[0]:
            continue
        skills.append(
            Skill(
                name=fields[0],
                level=parse_level(fields[1] if len(fields) > 1 else None),
                years_experience=parse_years(fields[2] if len(fields) > 2 else None),
            )
        )
    return skills


def parse_bool(raw: str | None, default: bool = True) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}

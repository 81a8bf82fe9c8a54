from typing import Any, Iterable, List, Mapping


def fold_skill(skill: str) -> str:
    # Case folding only; whitespace is significant for tag equality.
    return skill.casefold()


def coerce_tags(value: Any) -> List[str]:
    """Turn a possibly-missing tag field into a list of strings.

    None becomes an empty list, a lone string becomes a one-element list and
    non-string entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping) or not isinstance(value, Iterable):
        return []
    return [v for v in value if isinstance(v, str)]


def normalize_department(department: Any) -> str | None:
    # Kept verbatim, blank included; equality is exact and case-sensitive.
    if not isinstance(department, str):
        return None
    return department

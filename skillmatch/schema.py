from typing import Any, Dict, List, Tuple

ID_FIELDS = ["id", "$id"]
TAG_FIELDS = {
    "skillsToShare": "skills_to_share",
    "skillsToLearn": "skills_to_learn",
    "interests": "interests",
}
OPTIONAL_STR_FIELDS = [
    "department",
    "fullName",
    "full_name",
    "username",
    "academicYear",
    "academic_year",
    "bio",
    "avatarUrl",
    "avatar_url",
]
MAX_TAG_LENGTH = 64


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _document_id(data: Dict[str, Any]) -> Any:
    for f in ID_FIELDS:
        if data.get(f) is not None:
            return data[f]
    return None


def _tag_values(data: Dict[str, Any], camel: str, snake: str) -> Tuple[str, Any]:
    if camel in data:
        return camel, data[camel]
    return snake, data.get(snake)


def validate_profile(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Tag arrays may be missing or null; they are read as empty.
    """
    if not isinstance(data, dict):
        return ["Profile must be an object"]

    errors: List[str] = []

    doc_id = _document_id(data)
    if doc_id is None:
        errors.append("Missing required field: id")
    elif not _is_non_empty_str(doc_id):
        errors.append("Field 'id' must be a non-empty string")

    for camel, snake in TAG_FIELDS.items():
        name, value = _tag_values(data, camel, snake)
        if value is None:
            continue
        if not isinstance(value, list):
            errors.append(f"Field '{name}' must be a list of strings if provided")
            continue
        for tag in value:
            if not isinstance(tag, str):
                errors.append(f"Field '{name}' must contain only strings")
                break
            if len(tag) > MAX_TAG_LENGTH:
                errors.append(
                    f"Field '{name}' has a tag longer than {MAX_TAG_LENGTH} characters (length {len(tag)})"
                )
                break

    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    return errors


def validate_profile_strict(data: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Strict validation for profiles entering the store.

    On top of validate_profile, requires a department and a display name
    and rejects blank tags.

    Returns:
        Tuple of (is_valid, errors)
    """
    errors = validate_profile(data)
    if not isinstance(data, dict):
        return False, errors

    if not _is_non_empty_str(data.get("department")):
        errors.append("Strict: field 'department' is required")

    if not (_is_non_empty_str(data.get("fullName")) or _is_non_empty_str(data.get("full_name"))):
        errors.append("Strict: field 'fullName' is required")

    for camel, snake in TAG_FIELDS.items():
        name, value = _tag_values(data, camel, snake)
        if isinstance(value, list) and any(isinstance(t, str) and not t.strip() for t in value):
            errors.append(f"Strict: field '{name}' contains a blank tag")

    return len(errors) == 0, errors

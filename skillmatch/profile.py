"""
Profile and match records exchanged with the matcher.

UserProfile is the typed shape the matcher reads. Raw store documents
(camelCase, as the platform's user collection holds them, or snake_case)
are converted with UserProfile.from_dict; MatchResult.to_dict produces the
camelCase payload that match cards render.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .logger import get_logger
from .normalize import coerce_tags, normalize_department
from .schema import validate_profile

logger = get_logger()

# Never carried into a profile, even as an extra key
CREDENTIAL_FIELDS = {"password", "passwordHash", "password_hash"}

_FIELD_ALIASES = {
    "id": ("id", "$id"),
    "skills_to_share": ("skillsToShare", "skills_to_share"),
    "skills_to_learn": ("skillsToLearn", "skills_to_learn"),
    "interests": ("interests",),
    "department": ("department",),
    "full_name": ("fullName", "full_name"),
    "username": ("username",),
    "academic_year": ("academicYear", "academic_year"),
    "bio": ("bio",),
    "avatar_url": ("avatarUrl", "avatar_url"),
}


def _pick(doc: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if doc.get(key) is not None:
            return doc[key]
    return None


@dataclass
class UserProfile:
    """
    A platform user as seen by the matcher.

    Only id, the three tag lists and department take part in scoring;
    the descriptive fields are carried through for presentation.
    """
    id: Optional[str]
    skills_to_share: List[str] = field(default_factory=list)
    skills_to_learn: List[str] = field(default_factory=list)
    interests: List[str] = field(default_factory=list)
    department: Optional[str] = None
    full_name: Optional[str] = None
    username: Optional[str] = None
    academic_year: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        """Read missing tag arrays as empty."""
        self.skills_to_share = coerce_tags(self.skills_to_share)
        self.skills_to_learn = coerce_tags(self.skills_to_learn)
        self.interests = coerce_tags(self.interests)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or str(self.id)

    @classmethod
    def from_dict(cls, doc: Dict[str, Any]) -> "UserProfile":
        """
        Build a profile from a raw user document.

        Accepts camelCase or snake_case keys and the document store's `$id`.
        Credential fields are dropped; unknown keys land in `extra`.
        """
        known = {alias for aliases in _FIELD_ALIASES.values() for alias in aliases}
        values = {name: _pick(doc, aliases) for name, aliases in _FIELD_ALIASES.items()}
        doc_id = values.pop("id")
        extra = {
            k: v for k, v in doc.items()
            if k not in known and k not in CREDENTIAL_FIELDS
        }
        return cls(
            id=doc_id if isinstance(doc_id, str) and doc_id else None,
            skills_to_share=values["skills_to_share"],
            skills_to_learn=values["skills_to_learn"],
            interests=values["interests"],
            department=normalize_department(values["department"]),
            full_name=values["full_name"],
            username=values["username"],
            academic_year=values["academic_year"],
            bio=values["bio"],
            avatar_url=values["avatar_url"],
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Storage form: public fields plus extra keys."""
        return {**self.extra, **self.to_public_dict()}

    def to_public_dict(self) -> Dict[str, Any]:
        """Presentation form, without credentials or unknown document keys."""
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "academicYear": self.academic_year,
            "department": self.department,
            "bio": self.bio,
            "avatarUrl": self.avatar_url,
            "skillsToShare": list(self.skills_to_share),
            "skillsToLearn": list(self.skills_to_learn),
            "interests": list(self.interests),
        }


@dataclass
class MatchResult:
    """
    One scored candidate for a subject user.

    Attributes:
        candidate: The profile being scored
        compatibility_score: Integer in [0, 99]
        matching_skills: Deduplicated union of both directional overlaps
        skills_they_can_teach: Candidate's offered skills the subject wants
        skills_you_can_teach: Subject's offered skills the candidate wants
        base_score: Skill-overlap part of the score before bonuses
        interest_bonus: 20 when at least one interest is shared, else 0
        department_bonus: 10 when departments are equal, else 0
        shared_interests: Interests present on both sides
    """
    candidate: UserProfile
    compatibility_score: int
    matching_skills: List[str] = field(default_factory=list)
    skills_they_can_teach: List[str] = field(default_factory=list)
    skills_you_can_teach: List[str] = field(default_factory=list)
    base_score: int = 0
    interest_bonus: int = 0
    department_bonus: int = 0
    shared_interests: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON payload served for match cards."""
        return {
            "user": self.candidate.to_public_dict(),
            "compatibilityScore": self.compatibility_score,
            "matchingSkills": list(self.matching_skills),
            "skillsTheyCanTeach": list(self.skills_they_can_teach),
            "skillsYouCanTeach": list(self.skills_you_can_teach),
            "breakdown": {
                "baseScore": self.base_score,
                "interestBonus": self.interest_bonus,
                "departmentBonus": self.department_bonus,
                "sharedInterests": list(self.shared_interests),
            },
        }


def coerce_profiles(docs: Iterable[Dict[str, Any]]) -> List[UserProfile]:
    """
    Convert raw user documents into profiles, skipping invalid ones.

    One bad document never aborts the batch; each skip is logged with
    its validation errors.
    """
    profiles: List[UserProfile] = []
    for doc in docs:
        errors = validate_profile(doc)
        if errors:
            doc_id = doc.get("id") if isinstance(doc, dict) else None
            logger.warning("Skipping invalid profile document", id=doc_id, errors=errors)
            continue
        profiles.append(UserProfile.from_dict(doc))
    return profiles


def skill_preview(skills: List[str], limit: int = 4) -> Tuple[List[str], int]:
    """
    Split a skill list for card display.

    Returns:
        Tuple of (skills to show, number hidden behind "+N more")
    """
    if limit < 0:
        limit = 0
    return list(skills[:limit]), max(0, len(skills) - limit)

"""
Compatibility scoring for complementary-skill matchmaking.

Responsibilities:
- Compute a deterministic compatibility score and skill-overlap breakdown
  between a subject user and each candidate.
- Rank candidates best-first.

Non-Responsibilities:
- No storage access.
- No candidate selection or pagination.
- No connection handling.

Invariant:
Given identical inputs, the same scores, skill lists and order are returned.
"""

from typing import Any, Iterable, List, Optional, Sequence

from .logger import get_logger
from .normalize import coerce_tags, fold_skill
from .profile import MatchResult, UserProfile

logger = get_logger()

INTEREST_BONUS = 20
DEPARTMENT_BONUS = 10
MAX_SCORE = 99


def _profile_id(profile: Any) -> Optional[str]:
    value = getattr(profile, "id", None)
    if isinstance(value, str) and value:
        return value
    return None


def skills_overlap(offered: Iterable[str], wanted: Iterable[str]) -> List[str]:
    """
    Skills from `offered` that appear in `wanted`, compared case-insensitively.

    Keeps the order and spelling of `offered`.
    """
    wanted_folded = {fold_skill(s) for s in coerce_tags(wanted)}
    return [s for s in coerce_tags(offered) if fold_skill(s) in wanted_folded]


def max_possible_matches(subject: UserProfile) -> int:
    """Score denominator; depends on the subject alone."""
    return max(
        1,
        len(coerce_tags(subject.skills_to_learn)) + len(coerce_tags(subject.skills_to_share)),
    )


def _round_percent(count: int, total: int) -> int:
    # round(100 * count / total) with halves rounded up, in integers
    return (200 * count + total) // (2 * total)


def score_candidate(subject: UserProfile, candidate: UserProfile) -> MatchResult:
    """
    Score one candidate against the subject.

    The skill part is the share of the subject's stated skills (to learn
    plus to share) covered by the overlap. A shared interest adds 20 and an
    equal department adds 10 (two missing departments are equal). The total
    is capped at 99.
    """
    they_can_teach = skills_overlap(candidate.skills_to_share, subject.skills_to_learn)
    you_can_teach = skills_overlap(subject.skills_to_share, candidate.skills_to_learn)

    matching: List[str] = []
    for skill in they_can_teach + you_can_teach:
        if skill not in matching:
            matching.append(skill)

    base_score = _round_percent(len(matching), max_possible_matches(subject))

    subject_interests = set(coerce_tags(subject.interests))
    shared_interests: List[str] = []
    for interest in coerce_tags(candidate.interests):
        if interest in subject_interests and interest not in shared_interests:
            shared_interests.append(interest)
    interest_bonus = INTEREST_BONUS if shared_interests else 0

    department_bonus = 0
    if subject.department == candidate.department:
        department_bonus = DEPARTMENT_BONUS

    return MatchResult(
        candidate=candidate,
        compatibility_score=min(base_score + interest_bonus + department_bonus, MAX_SCORE),
        matching_skills=matching,
        skills_they_can_teach=they_can_teach,
        skills_you_can_teach=you_can_teach,
        base_score=base_score,
        interest_bonus=interest_bonus,
        department_bonus=department_bonus,
        shared_interests=shared_interests,
    )


def compute_matches(subject: UserProfile, candidates: Sequence[UserProfile]) -> List[MatchResult]:
    """
    Score every candidate against the subject and rank them.

    The subject is excluded wherever it appears in the pool. Candidates
    without an id are skipped and logged rather than failing the batch.
    Results are ordered by score descending, then candidate id ascending.

    Args:
        subject: User the matches are computed for
        candidates: Pool of other users, usually from the user repository

    Returns:
        List of MatchResult, best first (empty for an empty pool)
    """
    subject_id = _profile_id(subject)
    if subject_id is None:
        logger.warning("Subject profile has no id, no matches computed")
        return []

    results: List[MatchResult] = []
    for index, candidate in enumerate(candidates or []):
        candidate_id = _profile_id(candidate)
        if candidate_id is None:
            logger.warning("Skipping candidate without id", subject_id=subject_id, position=index)
            continue
        if candidate_id == subject_id:
            continue
        results.append(score_candidate(subject, candidate))

    results.sort(key=lambda r: (-r.compatibility_score, r.candidate.id))
    return results


def top_matches(
    subject: UserProfile,
    candidates: Sequence[UserProfile],
    limit: Optional[int] = None,
    min_score: int = 0,
) -> List[MatchResult]:
    """Ranked matches at or above `min_score`, truncated to `limit`."""
    results = [r for r in compute_matches(subject, candidates) if r.compatibility_score >= min_score]
    if limit is not None:
        results = results[:max(0, limit)]
    return results

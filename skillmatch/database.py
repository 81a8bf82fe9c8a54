"""
Database schema, connection management and user-repository queries.

Uses SQLite with SQLAlchemy for profile storage. Tag lists are kept as
JSON columns. The repository only reads and writes records; ranking is
left to the matcher.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import create_engine, Column, String, Text, DateTime, JSON
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import get_logger
from .profile import UserProfile
from .retry import CircuitBreaker, RetryError, exponential_backoff, is_transient_error

Base = declarative_base()

logger = get_logger()

DEFAULT_CANDIDATE_LIMIT = 100

# Shared by every fetch from the user repository in this process
fetch_breaker = CircuitBreaker(
    failure_threshold=5,
    recovery_timeout=60.0,
    expected_exception=(RetryError, SQLAlchemyError),
)


class User(Base):
    """Platform user model."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    username = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    academic_year = Column(String, nullable=True)
    department = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String, nullable=True)
    skills_to_share = Column(JSON, nullable=False, default=list)
    skills_to_learn = Column(JSON, nullable=False, default=list)
    interests = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            skills_to_share=self.skills_to_share,
            skills_to_learn=self.skills_to_learn,
            interests=self.interests,
            department=self.department,
            full_name=self.full_name,
            username=self.username,
            academic_year=self.academic_year,
            bio=self.bio,
            avatar_url=self.avatar_url,
        )


_PROFILE_COLUMNS = [
    "username",
    "full_name",
    "academic_year",
    "department",
    "bio",
    "avatar_url",
    "skills_to_share",
    "skills_to_learn",
    "interests",
]


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()


def save_profile(session, profile: UserProfile) -> str:
    """
    Insert or update a user row from a profile. Does not commit.

    Returns:
        "new", "updated" or "no-change"
    """
    if not profile.id:
        raise ValueError("Cannot store a profile without an id")

    values = {name: getattr(profile, name) for name in _PROFILE_COLUMNS}
    values["skills_to_share"] = list(profile.skills_to_share)
    values["skills_to_learn"] = list(profile.skills_to_learn)
    values["interests"] = list(profile.interests)

    existing = session.get(User, profile.id)
    if existing is None:
        session.add(User(id=profile.id, **values))
        return "new"

    changed = False
    for name, value in values.items():
        if getattr(existing, name) != value:
            setattr(existing, name, value)
            changed = True
    return "updated" if changed else "no-change"


def fetch_user(session, user_id: str) -> Optional[UserProfile]:
    row = session.get(User, user_id)
    return row.to_profile() if row is not None else None


def fetch_candidates(
    session,
    exclude_id: Optional[str] = None,
    limit: Optional[int] = DEFAULT_CANDIDATE_LIMIT,
) -> List[UserProfile]:
    """
    Candidate pool for matching, ordered by id and bounded by `limit`.

    Args:
        session: SQLAlchemy session
        exclude_id: User to leave out (normally the subject)
        limit: Maximum rows returned; None for no bound
    """
    query = session.query(User)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    query = query.order_by(User.id)
    if limit is not None:
        query = query.limit(limit)
    return [row.to_profile() for row in query.all()]


def _log_retry(attempt: int, exc: Exception, delay: float) -> None:
    logger.warning(
        f"Profile fetch failed, retrying in {delay:.1f}s",
        attempt=attempt,
        error=str(exc),
    )


@exponential_backoff(
    max_retries=3,
    base_delay=0.5,
    exceptions=(OperationalError,),
    retry_if=is_transient_error,
    on_retry=_log_retry,
)
def load_match_inputs(
    db_path: Path,
    user_id: str,
    limit: Optional[int] = DEFAULT_CANDIDATE_LIMIT,
) -> Tuple[Optional[UserProfile], List[UserProfile]]:
    """
    Fetch the subject and its candidate pool in one session.

    Transient storage errors are retried with exponential backoff and
    surface as RetryError once exhausted.

    Returns:
        Tuple of (subject or None if unknown, candidates)
    """
    session = get_session(db_path)
    try:
        subject = fetch_user(session, user_id)
        if subject is None:
            return None, []
        return subject, fetch_candidates(session, exclude_id=user_id, limit=limit)
    finally:
        session.close()


def fetch_match_inputs(
    db_path: Path,
    user_id: str,
    limit: Optional[int] = DEFAULT_CANDIDATE_LIMIT,
) -> Tuple[Optional[UserProfile], List[UserProfile]]:
    """
    load_match_inputs behind the repository circuit breaker.

    Raises:
        CircuitOpenError: After repeated failed fetches, until the breaker recovers
    """
    return fetch_breaker.call(load_match_inputs, db_path, user_id, limit=limit)

"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any

from skillmatch import database
from skillmatch.profile import UserProfile


@pytest.fixture(autouse=True)
def closed_fetch_breaker():
    """Every test starts with the repository circuit closed."""
    database.fetch_breaker.reset()
    yield
    database.fetch_breaker.reset()


@pytest.fixture
def subject() -> UserProfile:
    """Subject from the reference scenario: learns python, shares guitar."""
    return UserProfile(
        id="user-1",
        skills_to_learn=["python"],
        skills_to_share=["guitar"],
        interests=["chess"],
        department="CS",
        full_name="Ada Student",
    )


@pytest.fixture
def python_tutor() -> UserProfile:
    """Candidate who can teach the subject Python."""
    return UserProfile(
        id="user-2",
        skills_to_share=["Python"],
        skills_to_learn=["banjo"],
        interests=["chess"],
        department="CS",
        full_name="Ben Tutor",
    )


@pytest.fixture
def valid_profile_doc() -> Dict[str, Any]:
    """Valid user document as the user collection stores it."""
    return {
        "id": "user-7",
        "username": "cleo",
        "password": "$2b$10$hashedvalue",
        "fullName": "Cleo Park",
        "email": "cleo@example.edu",
        "academicYear": "3rd Year",
        "department": "Design",
        "bio": "Type nerd.",
        "avatarUrl": None,
        "skillsToShare": ["Figma", "Typography"],
        "skillsToLearn": ["React"],
        "interests": ["climbing"],
    }


@pytest.fixture
def invalid_profile_doc() -> Dict[str, Any]:
    """Invalid user document (missing id, bad tag list)."""
    return {
        "fullName": "No Id",
        "skillsToShare": "Figma",
    }


@pytest.fixture
def populated_store(tmp_path) -> Path:
    """Create a JSON profile store with sample users."""
    store_file = tmp_path / "profiles.json"
    data = {
        "users": {
            "user-1": {
                "id": "user-1",
                "fullName": "Ada Student",
                "department": "CS",
                "skillsToLearn": ["python"],
                "skillsToShare": ["guitar"],
                "interests": ["chess"],
            },
            "user-2": {
                "id": "user-2",
                "fullName": "Ben Tutor",
                "department": "CS",
                "skillsToShare": ["Python"],
                "skillsToLearn": ["banjo"],
                "interests": ["chess"],
            },
            "user-3": {
                "id": "user-3",
                "fullName": "Cara Strummer",
                "department": "Music",
                "skillsToShare": ["Drums"],
                "skillsToLearn": ["Guitar"],
                "interests": None,
            },
            "user-4": {
                "id": "user-4",
                "fullName": "Dev Null",
                "department": "Physics",
            },
            "broken": {
                "id": "broken",
                "skillsToShare": "not-a-list",
            },
        }
    }
    store_file.write_text(json.dumps(data, indent=2))
    return store_file

import json
from pathlib import Path
from typing import Dict, Any, List

from .profile import UserProfile, coerce_profiles


def load_store(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {"users": {}}
    try:
        with path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
            if not content:
                return {"users": {}}
            store = json.loads(content)
    except (json.JSONDecodeError, IOError):
        return {"users": {}}
    if not isinstance(store, dict) or not isinstance(store.get("users"), dict):
        return {"users": {}}
    return store


def save_store(path: Path, store: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(store, f, indent=2, ensure_ascii=False)


def upsert_profile(store: Dict[str, Any], profile: UserProfile) -> Dict[str, Any]:
    if not profile.id:
        raise ValueError("Cannot store a profile without an id")
    users = store.setdefault("users", {})
    doc = profile.to_dict()
    current = users.get(profile.id)
    if current is None:
        users[profile.id] = doc
        return {"status": "new"}
    if current != doc:
        users[profile.id] = doc
        return {"status": "updated"}
    return {"status": "no-change"}


def list_profiles(store: Dict[str, Any]) -> List[UserProfile]:
    """Profiles in the store ordered by id; invalid documents are skipped."""
    users = store.get("users", {})
    docs = []
    for user_id in sorted(users):
        doc = users[user_id]
        if isinstance(doc, dict):
            # The store key is authoritative when the document omits its id
            docs.append({"id": user_id, **doc} if not doc.get("id") else doc)
    return coerce_profiles(docs)

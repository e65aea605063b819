"""
User store: onboarding category interests per user.

Backs recommender.providers.OnboardingSource. Persistence to a JSON file, in
memory, or Firestore depending on DATA_SOURCE. Each user record carries
category_interests picked at onboarding.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from google.cloud.firestore import AsyncClient

logger = logging.getLogger(__name__)


class InMemoryUserStore:
    """Users held in memory, keyed by user_id."""

    def __init__(self, users: Optional[Dict[str, Dict]] = None):
        self._users: Dict[str, Dict] = {}
        for uid, user in (users or {}).items():
            self._users[uid] = {**user, "user_id": uid}

    def get_by_id(self, user_id: str) -> Optional[Dict]:
        return self._users.get(user_id)

    async def get_onboarding_categories(self, user_id: str) -> List[str]:
        user = self.get_by_id(user_id)
        if not user:
            return []
        return list(user.get("category_interests") or [])


class JsonUserStore(InMemoryUserStore):
    """User store loaded once from a JSON file (e.g. data/users.json)."""

    def __init__(self, path: Union[Path, str]):
        super().__init__()
        self._path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("[startup] Could not read users file %s: %s", self._path, e)
            return
        users = data.get("users", data) if isinstance(data, dict) else data
        if isinstance(users, list):
            for u in users:
                uid = u.get("user_id") or u.get("id")
                if uid:
                    self._users[uid] = {**u, "user_id": uid}
        elif isinstance(users, dict):
            for uid, u in users.items():
                self._users[uid] = {**u, "user_id": uid}


class FirestoreUserStore:
    """User store backed by the Firestore 'users' collection (document id = user_id)."""

    def __init__(self, client: AsyncClient, collection: str = "users"):
        self._coll = client.collection(collection)

    async def get_by_id(self, user_id: str) -> Optional[Dict]:
        doc = await self._coll.document(user_id).get()
        if not doc.exists:
            return None
        d = doc.to_dict() or {}
        d["user_id"] = doc.id
        return d

    async def get_onboarding_categories(self, user_id: str) -> List[str]:
        user = await self.get_by_id(user_id)
        if not user:
            return []
        return list(user.get("category_interests") or [])

"""
Session principal and profile cache.

A SessionPrincipal is the authenticated identity attached to one request.
Profiles are cached per uid so that resolving a bearer token does not need a
profile read on every request. The cache is write-through: every profile
write in the user controller updates it, and sign-out or a failed lookup
invalidates it. The users table stays the source of truth.
"""
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class SessionPrincipal:
    uid: str
    email: str
    display_name: str
    role: str
    token: str
    photo_url: Optional[str] = None

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def is_organizer(self):
        return self.role in ("organizer", "admin")


class ProfileCache:
    def __init__(self):
        self._profiles: Dict[str, dict] = {}

    def get(self, uid: str) -> Optional[dict]:
        profile = self._profiles.get(uid)
        return dict(profile) if profile is not None else None

    def put(self, uid: str, profile: dict):
        self._profiles[uid] = dict(profile)

    def merge(self, uid: str, changes: dict):
        # Only refresh entries we already hold; a miss is filled on the next read
        if uid in self._profiles:
            self._profiles[uid].update(changes)

    def invalidate(self, uid: str):
        self._profiles.pop(uid, None)

    def clear(self):
        self._profiles.clear()


profile_cache = ProfileCache()

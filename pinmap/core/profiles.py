from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from pinmap.models.user import User


@dataclass(frozen=True)
class ProfileSummary:
    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    home_location: Optional[str] = None
    interests: list = field(default_factory=list)
    looking_for: list = field(default_factory=list)


def _summary(user: User) -> ProfileSummary:
    return ProfileSummary(
        id=user.id,
        name=user.name,
        avatar=user.avatar,
        bio=user.bio,
        home_location=user.home_location,
        interests=list(user.interests or []),
        looking_for=list(user.looking_for or []),
    )


def get_viewer_profile_summary(db: Session, user_id: str) -> ProfileSummary:
    """
    Display data only. Never used for disclosure decisions.
    Unknown users get an empty summary.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return ProfileSummary(id=user_id)
    return _summary(user)


def get_profile_summaries(db: Session, user_ids: Iterable[str]) -> dict[str, ProfileSummary]:
    user_ids = set(user_ids)
    if not user_ids:
        return {}

    users = db.query(User).filter(User.id.in_(user_ids)).all()
    found = {u.id: _summary(u) for u in users}

    return {uid: found.get(uid, ProfileSummary(id=uid)) for uid in user_ids}

"""
Follow / unfollow toggle.

The branch is picked from a read, but the write itself is what counts: an
insert that hits the unique constraint means a concurrent request already
followed, and a delete that removes nothing means one already unfollowed.
Both are reported as successful no-ops, so racing toggles never error and
never move a counter twice.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import atomic
from ..logging_config import get_logger
from ..models.follow import Follow
from ..models.user import User
from ..responses import bad_request, not_found
from .posts import clamp_limit, is_following

logger = get_logger("follows")

FOLLOW_LIST_TYPES = ("followers", "following")


class FollowAction(str, Enum):
    FOLLOWED = "followed"
    UNFOLLOWED = "unfollowed"


@dataclass
class FollowResult:
    action: FollowAction
    following: bool
    changed: bool

    def to_dict(self, follower_id: int, following_id: int) -> dict:
        return {
            "action": self.action.value,
            "following": self.following,
            "changed": self.changed,
            "follower_id": follower_id,
            "following_id": following_id,
        }


def _adjust_counters(db: Session, follower_id: int, following_id: int, delta: int) -> None:
    db.execute(
        update(User)
        .where(User.id == following_id)
        .values(followers_count=User.followers_count + delta)
    )
    db.execute(
        update(User)
        .where(User.id == follower_id)
        .values(following_count=User.following_count + delta)
    )


def follow(db: Session, follower_id: int, following_id: int) -> FollowResult:
    try:
        with atomic(db):
            db.add(Follow(follower_id=follower_id, following_id=following_id))
            db.flush()
            _adjust_counters(db, follower_id, following_id, 1)
    except IntegrityError:
        if not is_following(db, follower_id, following_id):
            # not a duplicate: the target disappeared
            not_found("User")
        logger.info("Follow already present", follower_id=follower_id, following_id=following_id)
        return FollowResult(action=FollowAction.FOLLOWED, following=True, changed=False)

    logger.info("User followed", follower_id=follower_id, following_id=following_id)
    return FollowResult(action=FollowAction.FOLLOWED, following=True, changed=True)


def unfollow(db: Session, follower_id: int, following_id: int) -> FollowResult:
    with atomic(db):
        removed = db.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        ).rowcount
        if removed:
            _adjust_counters(db, follower_id, following_id, -1)

    if removed:
        logger.info("User unfollowed", follower_id=follower_id, following_id=following_id)
    else:
        logger.info("Follow already removed", follower_id=follower_id, following_id=following_id)
    return FollowResult(action=FollowAction.UNFOLLOWED, following=False, changed=bool(removed))


def toggle_follow(db: Session, follower_id: int, following_id: int) -> FollowResult:
    if follower_id == following_id:
        bad_request("You cannot follow yourself")
    if db.get(User, following_id) is None:
        not_found("User")

    if is_following(db, follower_id, following_id):
        return unfollow(db, follower_id, following_id)
    return follow(db, follower_id, following_id)


def list_connections(db: Session, user_id: int, list_type: str, limit: int = 20, offset: int = 0) -> List[User]:
    """Users following user_id ("followers") or followed by it ("following")."""
    if list_type == "followers":
        query = db.query(User).join(Follow, Follow.follower_id == User.id).filter(Follow.following_id == user_id)
    else:
        query = db.query(User).join(Follow, Follow.following_id == User.id).filter(Follow.follower_id == user_id)
    return query.order_by(Follow.created_at.desc(), Follow.id.desc()).offset(offset).limit(clamp_limit(limit)).all()

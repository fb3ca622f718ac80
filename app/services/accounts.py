"""
Account registration, credentials, profile updates and deletion.
"""
from datetime import datetime, timezone
from typing import List, Optional, Set

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_password_hash, verify_password
from ..database import atomic
from ..logging_config import get_logger
from ..models.comment import Comment
from ..models.enums import Tier
from ..models.follow import Follow
from ..models.like import Like
from ..models.post import Post
from ..models.share import Share
from ..models.user import User
from ..responses import conflict
from ..schemas.auth import UserCreate

logger = get_logger("accounts")


def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "username": user.username,
        "tier": user.tier,
        "role": user.role,
    }


def public_profile(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "username": user.username,
        "bio": user.bio,
        "avatar_url": user.avatar_url,
        "location": user.location,
        "website": user.website,
        "tier": user.tier,
        "followers_count": user.followers_count,
        "following_count": user.following_count,
        "posts_count": user.posts_count,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _username_taken(db: Session, username: Optional[str], exclude_id: Optional[int] = None) -> bool:
    if not username:
        return False
    query = db.query(User.id).filter(User.username == username)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def register_user(db: Session, data: UserCreate, allow_tier_selection: bool = True) -> User:
    email = data.email.lower()
    if _email_taken(db, email):
        conflict("Email already registered")
    if _username_taken(db, data.username):
        conflict("Username already taken")

    user = User(
        name=data.name,
        email=email,
        username=data.username,
        hashed_password=get_password_hash(data.password),
        tier=data.tier.value if allow_tier_selection else Tier.FREE.value,
    )
    try:
        with atomic(db):
            db.add(user)
    except IntegrityError:
        # lost a race against a concurrent registration
        if _email_taken(db, email):
            conflict("Email already registered")
        conflict("Username already taken")

    db.refresh(user)
    logger.info("User registered", user_id=user.id, tier=user.tier)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


def update_profile(db: Session, user: User, changes: dict) -> User:
    """Write the present profile fields in a single UPDATE."""
    if _username_taken(db, changes.get("username"), exclude_id=user.id):
        conflict("Username already taken")

    changes["updated_at"] = datetime.now(timezone.utc)
    try:
        with atomic(db):
            db.execute(update(User).where(User.id == user.id).values(**changes))
    except IntegrityError:
        conflict("Username already taken")

    db.refresh(user)
    logger.info("Profile updated", user_id=user.id, fields=sorted(k for k in changes if k != "updated_at"))
    return user


def _lock_user(db: Session, user_id: int) -> None:
    # FOR UPDATE conflicts with the key-share lock taken by inserts referencing the user
    db.query(User.id).filter(User.id == user_id).with_for_update().one()


def _removed(db: Session, statement) -> List[int]:
    """Run a DELETE ... RETURNING and collect the returned column."""
    result = db.execute(statement, execution_options={"synchronize_session": False})
    return [row[0] for row in result.all()]


def _count(model, column, target):
    return select(func.count(model.id)).where(column == target).scalar_subquery()


def _recount_posts(db: Session, post_ids: Set[int]) -> None:
    if not post_ids:
        return
    db.execute(
        update(Post)
        .where(Post.id.in_(post_ids))
        .values(
            likes_count=_count(Like, Like.post_id, Post.id),
            comments_count=_count(Comment, Comment.post_id, Post.id),
            shares_count=_count(Share, Share.post_id, Post.id),
        ),
        execution_options={"synchronize_session": False},
    )


def _recount_users(db: Session, user_ids: Set[int]) -> None:
    if not user_ids:
        return
    db.execute(
        update(User)
        .where(User.id.in_(user_ids))
        .values(
            followers_count=_count(Follow, Follow.following_id, User.id),
            following_count=_count(Follow, Follow.follower_id, User.id),
        ),
        execution_options={"synchronize_session": False},
    )


def delete_account(db: Session, user: User) -> None:
    """
    Delete a user and everything they own.

    The user's follows, likes, shares and comments are removed by explicit
    deletes whose RETURNING rows name every post and user they touched; the
    counters on those survivors are then recomputed from the relation rows.
    Replies cascaded under the user's comments live on the same posts, so the
    recount covers them. The user row is locked first, so no concurrent write
    can attach a new row to the account before it is gone.
    """
    user_id = user.id
    with atomic(db):
        _lock_user(db, user_id)

        touched_users = set(_removed(
            db, delete(Follow).where(Follow.follower_id == user_id).returning(Follow.following_id)
        ))
        touched_users.update(_removed(
            db, delete(Follow).where(Follow.following_id == user_id).returning(Follow.follower_id)
        ))

        touched_posts = set()
        for model in (Like, Share, Comment):
            touched_posts.update(_removed(
                db, delete(model).where(model.user_id == user_id).returning(model.post_id)
            ))

        db.execute(delete(User).where(User.id == user_id), execution_options={"synchronize_session": False})

        # the user's own posts are gone by now and simply match nothing
        _recount_posts(db, touched_posts)
        _recount_users(db, touched_users)

    logger.info(
        "Account deleted",
        user_id=user_id,
        touched_posts=len(touched_posts),
        touched_users=len(touched_users),
    )

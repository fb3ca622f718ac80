"""
Post lifecycle and read access.
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..database import atomic
from ..logging_config import get_logger
from ..models.enums import Role, Visibility
from ..models.follow import Follow
from ..models.post import Post
from ..models.user import User
from ..permissions import has_role
from ..responses import forbidden, not_found, unauthorized
from ..schemas.posts import PostCreate
from ..tokens import Claims

logger = get_logger("posts")

SORT_MODES = ("recent", "popular", "trending")
MAX_PAGE_SIZE = 100


def post_to_dict(post: Post) -> dict:
    """Convert a Post model to a dictionary response."""
    author = post.user
    return {
        "id": post.id,
        "user_id": post.user_id,
        "author": {
            "id": author.id,
            "name": author.name,
            "username": author.username,
            "avatar_url": author.avatar_url,
        } if author else None,
        "content": post.content,
        "media_url": post.media_url,
        "media_type": post.media_type,
        "visibility": post.visibility,
        "likes_count": post.likes_count,
        "comments_count": post.comments_count,
        "shares_count": post.shares_count,
        "created_at": post.created_at.isoformat() if post.created_at else None,
        "updated_at": post.updated_at.isoformat() if post.updated_at else None,
    }


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        not_found("Post")
    return post


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return db.query(Follow.id).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    ).first() is not None


def can_view(db: Session, post: Post, claims: Optional[Claims]) -> bool:
    if post.visibility == Visibility.PUBLIC.value:
        return True
    if claims is None:
        return False
    if post.user_id == claims.user_id:
        return True
    if post.visibility == Visibility.FOLLOWERS_ONLY.value:
        return is_following(db, claims.user_id, post.user_id)
    return False


def ensure_can_view(db: Session, post: Post, claims: Optional[Claims]) -> None:
    """401 for anonymous callers, 403 for authenticated ones who may not see the post."""
    if can_view(db, post, claims):
        return
    if claims is None:
        unauthorized("Authentication required to view this post")
    forbidden("You don't have permission to view this post")


def create_post(db: Session, author_id: int, data: PostCreate) -> Post:
    """Insert a post and bump the author's posts_count in one transaction."""
    with atomic(db):
        post = Post(
            user_id=author_id,
            content=data.content,
            media_url=data.media_url,
            media_type=data.media_type.value if data.media_type else None,
            visibility=data.visibility.value,
        )
        db.add(post)
        db.flush()
        db.execute(
            update(User)
            .where(User.id == author_id)
            .values(posts_count=User.posts_count + 1)
        )

    db.refresh(post)
    logger.info("Post created", post_id=post.id, user_id=author_id, visibility=post.visibility)
    return post


def update_post(db: Session, post: Post, claims: Claims, changes: dict) -> Post:
    """Apply a partial update; only the owner may edit."""
    if post.user_id != claims.user_id:
        forbidden("You can only edit your own posts")

    changes["updated_at"] = datetime.now(timezone.utc)
    with atomic(db):
        db.execute(update(Post).where(Post.id == post.id).values(**changes))

    db.refresh(post)
    logger.info("Post updated", post_id=post.id, fields=sorted(k for k in changes if k != "updated_at"))
    return post


def delete_post(db: Session, post: Post, claims: Claims) -> None:
    """Delete a post (owner or admin); comments, likes and shares cascade in the store."""
    if post.user_id != claims.user_id and not has_role(claims, Role.ADMIN):
        forbidden("You can only delete your own posts")

    post_id, owner_id = post.id, post.user_id
    with atomic(db):
        removed = db.execute(delete(Post).where(Post.id == post_id)).rowcount
        if removed:
            db.execute(
                update(User)
                .where(User.id == owner_id)
                .values(posts_count=User.posts_count - 1)
            )

    logger.info("Post deleted", post_id=post_id, owner_id=owner_id, deleted_by=claims.user_id)


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_PAGE_SIZE))


def list_posts(
    db: Session,
    claims: Optional[Claims],
    limit: int = 20,
    offset: int = 0,
    sort: str = "recent",
    visibility: Visibility = Visibility.PUBLIC,
    user_id: Optional[int] = None,
) -> List[Post]:
    """
    List posts of one visibility class.

    Public posts are listed for everyone. Private listings only ever contain
    the caller's own posts; followers-only listings contain the caller's own
    posts and those of users the caller follows.
    """
    query = db.query(Post).filter(Post.visibility == visibility.value)

    if visibility != Visibility.PUBLIC:
        if claims is None:
            unauthorized("Authentication required to list non-public posts")
        if visibility == Visibility.PRIVATE:
            query = query.filter(Post.user_id == claims.user_id)
        else:
            followed = select(Follow.following_id).where(Follow.follower_id == claims.user_id)
            query = query.filter((Post.user_id == claims.user_id) | Post.user_id.in_(followed))

    if user_id is not None:
        query = query.filter(Post.user_id == user_id)

    if sort == "popular":
        query = query.order_by(Post.likes_count.desc(), Post.created_at.desc(), Post.id.desc())
    elif sort == "trending":
        engagement = Post.likes_count + Post.comments_count + Post.shares_count
        query = query.order_by(engagement.desc(), Post.created_at.desc(), Post.id.desc())
    else:
        query = query.order_by(Post.created_at.desc(), Post.id.desc())

    return query.offset(offset).limit(clamp_limit(limit)).all()

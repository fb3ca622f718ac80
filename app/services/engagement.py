"""
Likes, comments and shares.

Each write inserts the relation row and adjusts the post's counter in the same
transaction. The uniqueness pre-checks only produce a friendlier error; the
store's unique constraints decide, and a violation surfaces as 409.
"""
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import atomic
from ..logging_config import get_logger
from ..models.comment import Comment
from ..models.like import Like
from ..models.post import Post
from ..models.share import Share
from ..responses import conflict, not_found
from ..schemas.posts import CommentCreate

logger = get_logger("engagement")


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "user_id": comment.user_id,
        "author": {
            "id": comment.user.id,
            "name": comment.user.name,
            "username": comment.user.username,
        } if comment.user else None,
        "content": comment.content,
        "parent_comment_id": comment.parent_comment_id,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
    }


def _bump(db: Session, post_id: int, counter, delta: int) -> None:
    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values({counter.key: counter + delta})
    )


def _already_exists(db: Session, model, post_id: int, user_id: int) -> bool:
    return db.query(model.id).filter(model.post_id == post_id, model.user_id == user_id).first() is not None


def _insert_once(db: Session, post: Post, user_id: int, model, counter, duplicate_message: str):
    """
    Insert a (post, user) row and bump the post's counter in one transaction.

    A unique-constraint violation is a duplicate (409); a foreign-key violation
    means the post vanished after it was loaded (404).
    """
    post_id = post.id
    if _already_exists(db, model, post_id, user_id):
        conflict(duplicate_message)

    try:
        with atomic(db):
            row = model(post_id=post_id, user_id=user_id)
            db.add(row)
            db.flush()
            _bump(db, post_id, counter, 1)
    except IntegrityError:
        if db.get(Post, post_id) is None:
            not_found("Post")
        logger.warning("Duplicate rejected by store", model=model.__tablename__, post_id=post_id, user_id=user_id)
        conflict(duplicate_message)

    db.refresh(post)
    return row


def like_post(db: Session, post: Post, user_id: int) -> Like:
    like = _insert_once(db, post, user_id, Like, Post.likes_count, "Post already liked")
    logger.info("Post liked", post_id=post.id, user_id=user_id)
    return like


def share_post(db: Session, post: Post, user_id: int) -> Share:
    share = _insert_once(db, post, user_id, Share, Post.shares_count, "Post already shared")
    logger.info("Post shared", post_id=post.id, user_id=user_id)
    return share


def add_comment(db: Session, post: Post, user_id: int, data: CommentCreate) -> Comment:
    """Comment on a post; a parent comment must belong to the same post."""
    if data.parent_comment_id is not None:
        parent = db.query(Comment.id).filter(
            Comment.id == data.parent_comment_id,
            Comment.post_id == post.id,
        ).first()
        if parent is None:
            not_found("Parent comment")

    try:
        with atomic(db):
            comment = Comment(
                post_id=post.id,
                user_id=user_id,
                content=data.content,
                parent_comment_id=data.parent_comment_id,
            )
            db.add(comment)
            db.flush()
            _bump(db, post.id, Post.comments_count, 1)
    except IntegrityError:
        # the post or parent vanished between the check and the insert
        not_found("Parent comment" if data.parent_comment_id is not None else "Post")

    db.refresh(post)
    logger.info("Comment added", post_id=post.id, comment_id=comment.id, user_id=user_id)
    return comment


def list_comments(db: Session, post: Post) -> List[Comment]:
    return (
        db.query(Comment)
        .filter(Comment.post_id == post.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )

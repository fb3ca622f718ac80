"""
Posts routes: listing, CRUD and engagement (likes, comments, shares).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import get_claims, get_optional_claims, load_current_user
from ..database import get_db
from ..models.enums import Tier, Visibility
from ..permissions import require_tier
from ..responses import bad_request
from ..schemas.posts import CommentCreate, PostCreate, PostUpdate
from ..services import engagement
from ..services.posts import (
    SORT_MODES,
    clamp_limit,
    create_post,
    delete_post,
    ensure_can_view,
    get_post_or_404,
    list_posts,
    post_to_dict,
    update_post,
)
from ..tokens import Claims

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("")
def get_posts(
    limit: int = 20,
    offset: int = Query(0, ge=0),
    sort: str = "recent",
    visibility: Visibility = Visibility.PUBLIC,
    user_id: Optional[int] = None,
    db: Session = Depends(get_db),
    claims: Optional[Claims] = Depends(get_optional_claims),
):
    """List posts with sorting and pagination."""
    if sort not in SORT_MODES:
        bad_request("Invalid sort mode", f"sort must be one of: {', '.join(SORT_MODES)}")

    limit = clamp_limit(limit)
    posts = list_posts(db, claims, limit=limit, offset=offset, sort=sort, visibility=visibility, user_id=user_id)
    return {
        "posts": [post_to_dict(p) for p in posts],
        "pagination": {
            "limit": limit,
            "offset": offset,
            "sort": sort,
            "visibility": visibility.value,
            "count": len(posts),
        },
    }


@router.get("/{post_id}")
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    claims: Optional[Claims] = Depends(get_optional_claims),
):
    """Get a single post; non-public posts need an authorized caller."""
    post = get_post_or_404(db, post_id)
    ensure_can_view(db, post, claims)
    return post_to_dict(post)


@router.get("/{post_id}/comments")
def get_post_comments(
    post_id: int,
    db: Session = Depends(get_db),
    claims: Optional[Claims] = Depends(get_optional_claims),
):
    """Comments on a post, oldest first."""
    post = get_post_or_404(db, post_id)
    ensure_can_view(db, post, claims)
    comments = engagement.list_comments(db, post)
    return {
        "post_id": post.id,
        "comments": [engagement.comment_to_dict(c) for c in comments],
        "count": len(comments),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Create a new post for the current user."""
    user = load_current_user(db, claims)
    post = create_post(db, user.id, post_data)
    return {"message": "Post created successfully", "post": post_to_dict(post)}


@router.put("/{post_id}")
def update(
    post_id: int,
    post_update: PostUpdate,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Update a post (owner only)."""
    changes = post_update.changes()
    if not changes:
        bad_request("No valid fields to update", "Provide content, media_url, media_type or visibility")

    post = get_post_or_404(db, post_id)
    post = update_post(db, post, claims, changes)
    return {"message": "Post updated successfully", "post": post_to_dict(post)}


@router.delete("/{post_id}")
def delete(
    post_id: int,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Delete a post (owner or admin)."""
    post = get_post_or_404(db, post_id)
    delete_post(db, post, claims)
    return {"message": "Post deleted successfully", "post_id": post_id}


@router.post("/{post_id}/like", status_code=status.HTTP_201_CREATED)
def like(
    post_id: int,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Like a post (once per user)."""
    post = get_post_or_404(db, post_id)
    ensure_can_view(db, post, claims)
    user = load_current_user(db, claims)
    engagement.like_post(db, post, user.id)
    return {
        "message": "Post liked successfully",
        "post_id": post.id,
        "user_id": user.id,
        "likes_count": post.likes_count,
    }


@router.post("/{post_id}/comment", status_code=status.HTTP_201_CREATED)
def comment(
    post_id: int,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Comment on a post, optionally replying to a comment on the same post."""
    post = get_post_or_404(db, post_id)
    ensure_can_view(db, post, claims)
    user = load_current_user(db, claims)
    new_comment = engagement.add_comment(db, post, user.id, comment_data)
    return {
        "message": "Comment added successfully",
        "comment": engagement.comment_to_dict(new_comment),
        "comments_count": post.comments_count,
    }


@router.patch("/{post_id}/share")
def share(
    post_id: int,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Share a post (premium and enterprise tiers)."""
    post = get_post_or_404(db, post_id)
    require_tier(claims, Tier.PREMIUM)
    ensure_can_view(db, post, claims)
    user = load_current_user(db, claims)
    engagement.share_post(db, post, user.id)
    return {
        "message": "Post shared successfully",
        "post_id": post.id,
        "user_id": user.id,
        "shares_count": post.shares_count,
    }

"""
User routes: profiles, follower lists, follow toggle and account deletion.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_claims, load_current_user, verify_password
from ..database import get_db
from ..models.user import User
from ..responses import AuthenticationError, bad_request, not_found
from ..schemas.users import AccountDelete, ProfileUpdate
from ..services.accounts import delete_account, public_profile, update_profile
from ..services.follows import FOLLOW_LIST_TYPES, list_connections, toggle_follow
from ..services.posts import clamp_limit
from ..tokens import Claims

router = APIRouter(prefix="/api/users", tags=["users"])


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        not_found("User")
    return user


@router.get("/{user_id}/profile")
def get_profile(user_id: int, db: Session = Depends(get_db)):
    """Public profile with follower, following and post counts."""
    return {"user": public_profile(get_user_or_404(db, user_id))}


@router.get("/{user_id}/followers")
def get_connections(
    user_id: int,
    type: str = "followers",
    limit: int = 20,
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Followers of a user, or the users it follows with type=following."""
    if type not in FOLLOW_LIST_TYPES:
        bad_request("Invalid type", f"type must be one of: {', '.join(FOLLOW_LIST_TYPES)}")

    get_user_or_404(db, user_id)
    limit = clamp_limit(limit)
    users = list_connections(db, user_id, type, limit=limit, offset=offset)
    return {
        "user_id": user_id,
        "type": type,
        "users": [public_profile(u) for u in users],
        "pagination": {"limit": limit, "offset": offset, "count": len(users)},
    }


@router.patch("/profile")
def patch_profile(
    update: ProfileUpdate,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Update the current user's profile."""
    changes = update.changes()
    if not changes:
        bad_request("No valid fields to update")

    user = load_current_user(db, claims)
    user = update_profile(db, user, changes)
    return {"message": "Profile updated successfully", "user": public_profile(user)}


@router.patch("/{user_id}/follow")
def follow_toggle(
    user_id: int,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Follow the user, or unfollow if already following."""
    load_current_user(db, claims)
    result = toggle_follow(db, claims.user_id, user_id)
    return {
        "message": "User followed successfully" if result.following else "User unfollowed successfully",
        **result.to_dict(claims.user_id, user_id),
    }


@router.delete("/account")
def remove_account(
    body: AccountDelete,
    db: Session = Depends(get_db),
    claims: Claims = Depends(get_claims),
):
    """Delete the current account after re-checking its password."""
    user = load_current_user(db, claims)
    if not verify_password(body.password, user.hashed_password):
        raise AuthenticationError("Invalid password")

    delete_account(db, user)
    return {"message": "Account deleted successfully", "user_id": claims.user_id}

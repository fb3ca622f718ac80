from .auth import UserCreate, UserLogin, UserSummary, AuthResponse
from .posts import PostCreate, PostUpdate, CommentCreate
from .users import ProfileUpdate, AccountDelete

__all__ = [
    "UserCreate", "UserLogin", "UserSummary", "AuthResponse",
    "PostCreate", "PostUpdate", "CommentCreate",
    "ProfileUpdate", "AccountDelete",
]

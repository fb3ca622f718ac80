from .enums import MediaType, Role, Tier, Visibility
from .user import User
from .post import Post
from .comment import Comment
from .like import Like
from .follow import Follow
from .share import Share

__all__ = [
    "MediaType",
    "Role",
    "Tier",
    "Visibility",
    "User",
    "Post",
    "Comment",
    "Like",
    "Follow",
    "Share",
]

"""
Enumerated values shared by models, schemas and policies.
"""
from enum import Enum


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    FOLLOWERS_ONLY = "followers_only"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    GIF = "gif"


def sql_in(column: str, enum_cls) -> str:
    """Render a CHECK constraint expression limiting a column to an enum's values."""
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"

"""
User model for credentials, profile and denormalized counters.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base
from .enums import Role, Tier, sql_in


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(sql_in("tier", Tier), name="ck_users_tier"),
        CheckConstraint(sql_in("role", Role), name="ck_users_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    location = Column(String(100), nullable=True)
    website = Column(String(500), nullable=True)
    tier = Column(String(20), nullable=False, default=Tier.FREE.value)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    followers_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)
    posts_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships (rows are removed by ON DELETE CASCADE in the store)
    posts = relationship("Post", back_populates="user", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", passive_deletes=True)

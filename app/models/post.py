"""
Post model for user content and its engagement counters.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base
from .enums import MediaType, Visibility, sql_in


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint(sql_in("visibility", Visibility), name="ck_posts_visibility"),
        CheckConstraint(
            f"media_type IS NULL OR {sql_in('media_type', MediaType)}",
            name="ck_posts_media_type",
        ),
        Index("ix_posts_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    media_url = Column(String(500), nullable=True)
    media_type = Column(String(10), nullable=True)  # image, video, gif
    visibility = Column(String(20), nullable=False, default=Visibility.PUBLIC.value)
    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    shares_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", passive_deletes=True)

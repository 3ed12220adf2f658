from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow

class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_author_created", "author_id", "created_at"),
        Index("ix_posts_privacy_created", "privacy", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    image = Column(String, nullable=True)
    privacy = Column(String, nullable=False, default="public")  # public, private
    author_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User")

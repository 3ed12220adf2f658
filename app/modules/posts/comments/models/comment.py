from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow

class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_post_created", "post_id", "created_at"),
        Index("ix_comments_parent_created", "parent_id", "created_at"),
    )

    id = Column(String, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    # Not a foreign key: deleting a post leaves its comments in place
    post_id = Column(String, nullable=False)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    # null for top-level comments; replies point at a top-level comment
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User")

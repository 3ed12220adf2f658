from typing import Dict, List, Optional
import uuid
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.permissions import ensure_owner
from app.modules.posts.comments.models.comment import Comment
from app.modules.posts.comments.schemas.comment import (
    CommentCreate, CommentUpdate, ReplyCreate, CommentWithReplies, Comment as CommentSchema
)
from app.modules.posts.services.post import get_post_or_404
from app.modules.likes.schemas.like import LikeTarget, TargetKind
from app.modules.likes.services.like import (
    count_likes_by_target, get_liked_target_ids, delete_likes_for_target
)
from app.modules.user_management.schemas.user import UserPublic

logger = logging.getLogger("app")

COMMENT_NOT_FOUND = "Comment not found"

def _to_schema(comment: Comment, like_count: int = 0, is_liked: bool = False) -> CommentSchema:
    return CommentSchema(
        id=comment.id,
        text=comment.text,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        author_id=comment.author_id,
        author=UserPublic.model_validate(comment.author) if comment.author else None,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        like_count=like_count,
        is_liked=is_liked,
    )

def get_comment(db: Session, comment_id: str) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def get_comment_or_404(db: Session, comment_id: str, message: str = COMMENT_NOT_FOUND) -> Comment:
    comment = get_comment(db, comment_id)
    if not comment:
        raise NotFoundError(message)
    return comment

def get_top_level_comments(db: Session, post_id: str) -> List[Comment]:
    """Top-level comments of a post, oldest first"""
    return (
        db.query(Comment)
        .options(joinedload(Comment.author))
        .filter(Comment.post_id == post_id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.asc())
        .all()
    )

def get_replies(db: Session, parent_ids: List[str]) -> Dict[str, List[Comment]]:
    """Replies grouped by parent id, each group oldest first"""
    grouped: Dict[str, List[Comment]] = {parent_id: [] for parent_id in parent_ids}
    if not parent_ids:
        return grouped
    replies = (
        db.query(Comment)
        .options(joinedload(Comment.author))
        .filter(Comment.parent_id.in_(parent_ids))
        .order_by(Comment.created_at.asc())
        .all()
    )
    for reply in replies:
        grouped[reply.parent_id].append(reply)
    return grouped

def get_comments_with_replies(db: Session, post_id: str, user_id: str) -> List[CommentWithReplies]:
    """
    Comments of a post as a two-level tree: top-level comments with their
    replies, both annotated with like_count and is_liked for user_id.
    Replies of replies are never fetched.
    """
    comments = get_top_level_comments(db, post_id)
    replies_by_parent = get_replies(db, [comment.id for comment in comments])

    all_ids = [comment.id for comment in comments]
    all_ids += [reply.id for replies in replies_by_parent.values() for reply in replies]
    counts = count_likes_by_target(db, TargetKind.COMMENT, all_ids)
    liked = get_liked_target_ids(db, user_id, TargetKind.COMMENT, all_ids)

    def annotate(comment: Comment) -> CommentSchema:
        return _to_schema(comment, counts.get(comment.id, 0), comment.id in liked)

    result = []
    for comment in comments:
        result.append(CommentWithReplies(
            **annotate(comment).model_dump(),
            replies=[annotate(reply) for reply in replies_by_parent[comment.id]],
        ))
    return result

def create_comment(db: Session, comment_in: CommentCreate, author_id: str) -> CommentSchema:
    """Create a top-level comment on an existing post"""
    get_post_or_404(db, comment_in.post_id)

    comment = Comment(
        id=str(uuid.uuid4()),
        text=comment_in.text,
        post_id=comment_in.post_id,
        author_id=author_id,
        parent_id=None,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info(f"Created comment {comment.id} on post {comment.post_id}")
    return _to_schema(comment)

def create_reply(db: Session, parent_id: str, reply_in: ReplyCreate, author_id: str) -> CommentSchema:
    """
    Reply to a top-level comment. The reply joins the parent's post.
    Replying to a reply is rejected to keep threads two levels deep.
    """
    parent = get_comment_or_404(db, parent_id, "Parent comment not found")
    if parent.parent_id is not None:
        raise ValidationFailed.for_field("parent_id", "Cannot reply to a reply")

    reply = Comment(
        id=str(uuid.uuid4()),
        text=reply_in.text,
        post_id=parent.post_id,
        author_id=author_id,
        parent_id=parent.id,
    )
    db.add(reply)
    db.commit()
    db.refresh(reply)
    logger.info(f"Created reply {reply.id} to comment {parent.id}")
    return _to_schema(reply)

def get_owned_comment(db: Session, comment_id: str, user_id: str, action: str) -> Comment:
    """Load a comment the requester is about to mutate; NotFound first, then Forbidden"""
    comment = get_comment_or_404(db, comment_id)
    ensure_owner(comment, user_id, f"You are not authorized to {action} this comment")
    return comment

def update_comment(db: Session, comment: Comment, comment_in: CommentUpdate, user_id: str) -> CommentSchema:
    """Replace the text of a comment"""
    ensure_owner(comment, user_id, "You are not authorized to update this comment")

    comment.text = comment_in.text
    db.commit()
    db.refresh(comment)

    counts = count_likes_by_target(db, TargetKind.COMMENT, [comment.id])
    liked = get_liked_target_ids(db, user_id, TargetKind.COMMENT, [comment.id])
    return _to_schema(comment, counts.get(comment.id, 0), comment.id in liked)

def delete_comment(db: Session, comment: Comment, user_id: str) -> None:
    """
    Delete a comment together with its direct replies, then the likes on
    the deleted comment.

    Likes on the removed replies are not touched, and the like purge
    commits separately from the comment delete.
    """
    ensure_owner(comment, user_id, "You are not authorized to delete this comment")
    comment_id = comment.id

    removed = (
        db.query(Comment)
        .filter(or_(Comment.id == comment_id, Comment.parent_id == comment_id))
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"Deleted comment {comment_id} ({removed - 1} replies)")

    delete_likes_for_target(db, LikeTarget.comment(comment_id))

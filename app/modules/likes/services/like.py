from typing import Dict, Iterable, List, Optional, Set
import logging
import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.modules.likes.models.like import Like
from app.modules.likes.schemas.like import LikeTarget, LikeToggleResult, Liker, TargetKind
from app.modules.user_management.schemas.user import UserPublic

logger = logging.getLogger("app")

def _target_filter(target: LikeTarget):
    return (Like.target_type == target.kind.value, Like.target_id == target.id)

def get_like(db: Session, user_id: str, target: LikeTarget) -> Optional[Like]:
    """Get the like a user placed on a target"""
    return (
        db.query(Like)
        .filter(Like.user_id == user_id, *_target_filter(target))
        .first()
    )

def count_likes(db: Session, target: LikeTarget) -> int:
    return db.query(func.count(Like.id)).filter(*_target_filter(target)).scalar() or 0

def count_likes_by_target(db: Session, kind: TargetKind, target_ids: Iterable[str]) -> Dict[str, int]:
    """Like counts for many targets of one kind in a single grouped query"""
    target_ids = list(target_ids)
    if not target_ids:
        return {}
    rows = (
        db.query(Like.target_id, func.count(Like.id))
        .filter(Like.target_type == kind.value, Like.target_id.in_(target_ids))
        .group_by(Like.target_id)
        .all()
    )
    return {target_id: count for target_id, count in rows}

def get_liked_target_ids(db: Session, user_id: str, kind: TargetKind, target_ids: Iterable[str]) -> Set[str]:
    """Subset of target_ids the user has liked"""
    target_ids = list(target_ids)
    if not target_ids:
        return set()
    rows = (
        db.query(Like.target_id)
        .filter(
            Like.user_id == user_id,
            Like.target_type == kind.value,
            Like.target_id.in_(target_ids),
        )
        .all()
    )
    return {row.target_id for row in rows}

def toggle_like(db: Session, user_id: str, target: LikeTarget) -> LikeToggleResult:
    """
    Like the target, or remove the like if the user already placed one.

    The target itself is not looked up; callers that need a 404 for a
    missing post or comment check it before calling. The count is
    recomputed after the write, so concurrent toggles by other users
    may be reflected in it.
    """
    existing = get_like(db, user_id, target)

    if existing:
        db.delete(existing)
        db.commit()
        logger.info(f"User {user_id} unliked {target.kind.value} {target.id}")
        return LikeToggleResult(is_liked=False, like_count=count_likes(db, target))

    like = Like(
        id=str(uuid.uuid4()),
        user_id=user_id,
        target_type=target.kind.value,
        target_id=target.id,
    )
    db.add(like)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same like first
        db.rollback()
        logger.warning(f"Duplicate like by user {user_id} on {target.kind.value} {target.id}, keeping existing")
    else:
        logger.info(f"User {user_id} liked {target.kind.value} {target.id}")

    return LikeToggleResult(is_liked=True, like_count=count_likes(db, target))

def get_likers(db: Session, target: LikeTarget) -> List[Liker]:
    """Users who liked a target, most recent first"""
    likes = (
        db.query(Like)
        .options(joinedload(Like.user))
        .filter(*_target_filter(target))
        .order_by(Like.created_at.desc())
        .all()
    )
    return [
        Liker(user=UserPublic.model_validate(like.user), liked_at=like.created_at)
        for like in likes
    ]

def delete_likes_for_target(db: Session, target: LikeTarget) -> int:
    """Remove every like on a target; returns the number of rows deleted"""
    deleted = db.query(Like).filter(*_target_filter(target)).delete(synchronize_session=False)
    db.commit()
    return deleted

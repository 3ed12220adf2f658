from typing import List, Optional, Tuple
import uuid
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import NotFoundError
from app.core.permissions import ensure_owner
from app.modules.posts.models.post import Post
from app.modules.posts.schemas.post import PostCreate, PostUpdate, PostWithLikes, PostPrivacy
from app.modules.likes.schemas.like import LikeTarget, TargetKind
from app.modules.likes.services.like import (
    count_likes_by_target, get_liked_target_ids, delete_likes_for_target
)
from app.modules.user_management.schemas.user import UserPublic

logger = logging.getLogger("app")

POST_NOT_FOUND = "Post not found"

def _visible_to(user_id: str):
    """Public posts plus the requester's own private ones"""
    return or_(Post.privacy == PostPrivacy.PUBLIC.value, Post.author_id == user_id)

def _to_schema(post: Post, like_count: int = 0, is_liked: bool = False) -> PostWithLikes:
    return PostWithLikes(
        id=post.id,
        content=post.content,
        image=post.image,
        privacy=post.privacy,
        author_id=post.author_id,
        author=UserPublic.model_validate(post.author) if post.author else None,
        created_at=post.created_at,
        updated_at=post.updated_at,
        like_count=like_count,
        is_liked=is_liked,
    )

def annotate_posts(db: Session, posts: List[Post], user_id: str) -> List[PostWithLikes]:
    """Attach like_count and is_liked for the requester to each post"""
    post_ids = [post.id for post in posts]
    counts = count_likes_by_target(db, TargetKind.POST, post_ids)
    liked = get_liked_target_ids(db, user_id, TargetKind.POST, post_ids)
    return [_to_schema(post, counts.get(post.id, 0), post.id in liked) for post in posts]

def get_post(db: Session, post_id: str) -> Optional[Post]:
    """Get post by ID"""
    return db.query(Post).filter(Post.id == post_id).first()

def get_post_or_404(db: Session, post_id: str) -> Post:
    post = get_post(db, post_id)
    if not post:
        raise NotFoundError(POST_NOT_FOUND)
    return post

def get_visible_post(db: Session, post_id: str, user_id: str) -> PostWithLikes:
    """Get one post as seen by user_id; other users' private posts read as missing"""
    post = (
        db.query(Post)
        .options(joinedload(Post.author))
        .filter(Post.id == post_id, _visible_to(user_id))
        .first()
    )
    if not post:
        raise NotFoundError(POST_NOT_FOUND)
    return annotate_posts(db, [post], user_id)[0]

def _paginate(db: Session, query, user_id: str, page: int, limit: int) -> Tuple[List[PostWithLikes], int]:
    skip = (page - 1) * limit
    posts = (
        query.options(joinedload(Post.author))
        .order_by(Post.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    # Separate query: not snapshot-consistent with the page under concurrent writes
    total = query.count()
    return annotate_posts(db, posts, user_id), total

def get_feed(db: Session, user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[PostWithLikes], int]:
    """
    Newest-first page of posts visible to user_id, with the total number of
    visible posts for pagination.
    """
    logger.info(f"Getting feed for user {user_id} page={page}, limit={limit}")
    query = db.query(Post).filter(_visible_to(user_id))
    return _paginate(db, query, user_id, page, limit)

def get_user_posts(
    db: Session, author_id: str, user_id: str, page: int = 1, limit: int = 10
) -> Tuple[List[PostWithLikes], int]:
    """Posts by author_id as seen by user_id"""
    logger.info(f"Getting posts for author {author_id} page={page}, limit={limit}")
    query = db.query(Post).filter(Post.author_id == author_id, _visible_to(user_id))
    return _paginate(db, query, user_id, page, limit)

def create_post(db: Session, post_in: PostCreate, author_id: str) -> PostWithLikes:
    """Create new post"""
    post = Post(
        id=str(uuid.uuid4()),
        content=post_in.content,
        image=post_in.image,
        privacy=post_in.privacy.value,
        author_id=author_id,
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info(f"Created post {post.id} for author {author_id}")
    return _to_schema(post)

def get_owned_post(db: Session, post_id: str, user_id: str, action: str) -> Post:
    """Load a post the requester is about to mutate; NotFound first, then Forbidden"""
    post = get_post_or_404(db, post_id)
    ensure_owner(post, user_id, f"You are not authorized to {action} this post")
    return post

def update_post(db: Session, post: Post, post_in: PostUpdate, user_id: str) -> PostWithLikes:
    """Replace the content of a post, and its privacy when given"""
    ensure_owner(post, user_id, "You are not authorized to update this post")

    post.content = post_in.content
    if post_in.privacy is not None:
        post.privacy = post_in.privacy.value

    db.commit()
    db.refresh(post)
    logger.info(f"Updated post {post.id}")
    return annotate_posts(db, [post], user_id)[0]

def delete_post(db: Session, post: Post, user_id: str) -> None:
    """
    Delete a post, then the likes on it.

    The two steps commit separately: a failure in between leaves orphaned
    likes behind. Comments on the post are left in place.
    """
    ensure_owner(post, user_id, "You are not authorized to delete this post")
    post_id = post.id

    db.delete(post)
    db.commit()
    logger.info(f"Deleted post {post_id}")

    removed = delete_likes_for_target(db, LikeTarget.post(post_id))
    logger.info(f"Removed {removed} likes of deleted post {post_id}")

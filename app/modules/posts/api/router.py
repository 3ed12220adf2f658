from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request, status, UploadFile, File, Form, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import format_validation_errors, read_json_body
from app.core.exceptions import ValidationFailed
from app.core.responses import ApiResponse, Pagination, success_response
from app.core.storage import MediaStorage
from app.db.session import get_db
from app.deps import get_current_user, get_media_storage
from app.modules.user_management.models.user import User
from app.modules.posts.models.post import Post
from app.modules.posts.schemas.post import PostCreate, PostUpdate, PostWithLikes
from app.modules.posts.services.post import (
    get_post_or_404, get_owned_post, get_visible_post, get_feed, get_user_posts,
    create_post, update_post, delete_post
)
from app.modules.likes.schemas.like import LikeTarget, LikeToggleResult, Liker
from app.modules.likes.services.like import toggle_like, get_likers


router = APIRouter()

def _page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.FEED_DEFAULT_LIMIT, ge=1, le=settings.FEED_MAX_LIMIT),
):
    return page, limit

@router.post(
    "",
    response_model=ApiResponse[PostWithLikes],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_new_post(
    *,
    db: Session = Depends(get_db),
    content: str = Form(""),
    privacy: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    storage: MediaStorage = Depends(get_media_storage),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Create new post with optional image file.
    """
    fields = {"content": content}
    if privacy is not None:
        fields["privacy"] = privacy
    try:
        post_in = PostCreate(**fields)
    except ValidationError as e:
        raise ValidationFailed(format_validation_errors(e.errors()))

    # Validate before uploading so a rejected post leaves no orphaned file
    if image is not None and image.filename:
        post_in.image = await storage.upload_file(image, "posts")

    post = create_post(db, post_in, current_user.id)
    return success_response(message="Post created successfully", data=post)

@router.get("", response_model=ApiResponse[List[PostWithLikes]], response_model_exclude_unset=True)
def read_feed(
    db: Session = Depends(get_db),
    page_params: tuple = Depends(_page_params),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Newest-first feed of public posts and the current user's private posts.
    """
    page, limit = page_params
    posts, total = get_feed(db, current_user.id, page=page, limit=limit)
    return success_response(data=posts, pagination=Pagination.build(page, limit, total))

@router.get("/user/{user_id}", response_model=ApiResponse[List[PostWithLikes]], response_model_exclude_unset=True)
def read_user_posts(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    page_params: tuple = Depends(_page_params),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Get posts by user ID.
    """
    page, limit = page_params
    posts, total = get_user_posts(db, user_id, current_user.id, page=page, limit=limit)
    return success_response(data=posts, pagination=Pagination.build(page, limit, total))

@router.get("/{post_id}", response_model=ApiResponse[PostWithLikes], response_model_exclude_unset=True)
def read_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Get post by ID.
    """
    return success_response(data=get_visible_post(db, post_id, current_user.id))

def _post_to_update(
    post_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Post:
    # Runs before the body is read: non-authors get 403 whatever they send
    return get_owned_post(db, post_id, current_user.id, "update")

@router.put("/{post_id}", response_model=ApiResponse[PostWithLikes], response_model_exclude_unset=True)
async def update_post_by_id(
    request: Request,
    db: Session = Depends(get_db),
    post: Post = Depends(_post_to_update),
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Update a post. Only the author may do this.

    Body: {"content": str, "privacy": "public" | "private" (optional)}
    """
    post_in = await read_json_body(request, PostUpdate)
    updated = update_post(db, post, post_in, current_user.id)
    return success_response(message="Post updated successfully", data=updated)

@router.delete("/{post_id}", response_model=ApiResponse[Any], response_model_exclude_unset=True)
def delete_post_by_id(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """
    Delete a post and the likes on it. Comments are kept.
    """
    post = get_owned_post(db, post_id, current_user.id, "delete")
    delete_post(db, post, current_user.id)
    return success_response(message="Post deleted successfully")

@router.post("/{post_id}/like", response_model=ApiResponse[LikeToggleResult], response_model_exclude_unset=True)
def toggle_post_like(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Like the post, or unlike it if already liked"""
    get_post_or_404(db, post_id)
    result = toggle_like(db, current_user.id, LikeTarget.post(post_id))
    return success_response(
        message="Post liked" if result.is_liked else "Post unliked",
        data=result,
    )

@router.get("/{post_id}/likes", response_model=ApiResponse[List[Liker]], response_model_exclude_unset=True)
def read_post_likers(
    *,
    db: Session = Depends(get_db),
    post_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Users who liked the post, most recent first"""
    return success_response(data=get_likers(db, LikeTarget.post(post_id)))

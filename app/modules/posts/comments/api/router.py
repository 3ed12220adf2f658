from typing import Any, List

from fastapi import APIRouter, Depends, Request, status, Path
from sqlalchemy.orm import Session

from app.core.errors import read_json_body
from app.core.responses import ApiResponse, success_response
from app.db.session import get_db
from app.deps import get_current_user
from app.modules.user_management.models.user import User
from app.modules.posts.comments.models.comment import Comment
from app.modules.posts.comments.schemas.comment import (
    Comment as CommentSchema, CommentCreate, CommentUpdate, CommentWithReplies, ReplyCreate
)
from app.modules.posts.comments.services.comment import (
    get_comment_or_404, get_owned_comment, get_comments_with_replies,
    create_comment, create_reply, update_comment, delete_comment
)
from app.modules.likes.schemas.like import LikeTarget, LikeToggleResult, Liker
from app.modules.likes.services.like import toggle_like, get_likers

router = APIRouter()

@router.post(
    "",
    response_model=ApiResponse[CommentSchema],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_new_comment(
    *,
    db: Session = Depends(get_db),
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Create a top-level comment on a post"""
    comment = create_comment(db, comment_in, current_user.id)
    return success_response(message="Comment created successfully", data=comment)

@router.get("/{post_id}", response_model=ApiResponse[List[CommentWithReplies]], response_model_exclude_unset=True)
def read_comments_by_post_id(
    *,
    db: Session = Depends(get_db),
    post_id: str = Path(..., description="The ID of the post to get comments for"),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get comments by post ID with replies"""
    return success_response(data=get_comments_with_replies(db, post_id, current_user.id))

@router.post(
    "/{comment_id}/reply",
    response_model=ApiResponse[CommentSchema],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def reply_to_comment(
    *,
    db: Session = Depends(get_db),
    comment_id: str = Path(..., description="The ID of the comment to reply to"),
    reply_in: ReplyCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Reply to a top-level comment"""
    reply = create_reply(db, comment_id, reply_in, current_user.id)
    return success_response(message="Reply created successfully", data=reply)

def _comment_to_update(
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Comment:
    # Runs before the body is read: non-authors get 403 whatever they send
    return get_owned_comment(db, comment_id, current_user.id, "update")

@router.put("/{comment_id}", response_model=ApiResponse[CommentSchema], response_model_exclude_unset=True)
async def update_comment_by_id(
    request: Request,
    db: Session = Depends(get_db),
    comment: Comment = Depends(_comment_to_update),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Update a comment. Body: {"text": str}"""
    comment_in = await read_json_body(request, CommentUpdate)
    updated = update_comment(db, comment, comment_in, current_user.id)
    return success_response(message="Comment updated successfully", data=updated)

@router.delete("/{comment_id}", response_model=ApiResponse[Any], response_model_exclude_unset=True)
def delete_comment_by_id(
    *,
    db: Session = Depends(get_db),
    comment_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Delete a comment and its replies"""
    comment = get_owned_comment(db, comment_id, current_user.id, "delete")
    delete_comment(db, comment, current_user.id)
    return success_response(message="Comment deleted successfully")

@router.post("/{comment_id}/like", response_model=ApiResponse[LikeToggleResult], response_model_exclude_unset=True)
def toggle_comment_like(
    *,
    db: Session = Depends(get_db),
    comment_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Like the comment, or unlike it if already liked"""
    get_comment_or_404(db, comment_id)
    result = toggle_like(db, current_user.id, LikeTarget.comment(comment_id))
    return success_response(
        message="Comment liked" if result.is_liked else "Comment unliked",
        data=result,
    )

@router.get("/{comment_id}/likes", response_model=ApiResponse[List[Liker]], response_model_exclude_unset=True)
def read_comment_likers(
    *,
    db: Session = Depends(get_db),
    comment_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Users who liked the comment, most recent first"""
    return success_response(data=get_likers(db, LikeTarget.comment(comment_id)))

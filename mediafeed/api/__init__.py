from fastapi import APIRouter
from mediafeed.api import auth, comments, content, users

api_router = APIRouter()

api_router.include_router(auth.auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users.users_router, prefix="/users", tags=["users"])
api_router.include_router(content.content_router, prefix="/content", tags=["content"])
api_router.include_router(comments.content_comments_router, prefix="/content", tags=["comments"])
api_router.include_router(comments.comments_router, prefix="/comments", tags=["comments"])

__all__ = ["api_router"]

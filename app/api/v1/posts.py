"""Chef post endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_chef, get_db
from app.core.exceptions import NotFoundError, PermissionDenied
from app.models.post import ChefPost
from app.models.user import User
from app.schemas.post import PostCreate, PostListResponse, PostResponse

router = APIRouter()


@router.get("/", response_model=PostListResponse)
async def list_posts(
    db: Annotated[AsyncSession, Depends(get_db)],
    chef_id: UUID | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> PostListResponse:
    """Feed of chef posts, newest first."""
    query = select(ChefPost)
    if chef_id:
        query = query.where(ChefPost.chef_id == chef_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(ChefPost.created_at.desc()).offset(offset).limit(page_size)
    )
    return PostListResponse(
        posts=[PostResponse.model_validate(p) for p in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ChefPost:
    post = ChefPost(chef_id=current_user.id, **post_data.model_dump())
    db.add(post)
    await db.flush()
    await db.refresh(post)
    return post


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    current_user: Annotated[User, Depends(get_current_chef)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    result = await db.execute(select(ChefPost).where(ChefPost.id == post_id))
    post = result.scalar_one_or_none()
    if not post:
        raise NotFoundError("Post", str(post_id))
    if post.chef_id != current_user.id:
        raise PermissionDenied("You can only delete your own posts")
    await db.delete(post)

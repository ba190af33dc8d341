"""Admin API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.database import get_session
from ledger.schemas.admin import UserCreate, UserListItem, UserResponse
from ledger.services import admin as admin_service

router = APIRouter()


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision a user",
)
async def create_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Register a new user.

    Returns the user details including the bearer key.
    **Store the key securely - it cannot be retrieved later.**
    """
    try:
        user, api_key = await admin_service.create_user(session, data)
        return UserResponse(user_id=user.id, api_key=api_key, created_at=user.created_at)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User with ID '{data.user_id}' already exists",
        )


@router.get(
    "/users",
    response_model=list[UserListItem],
    summary="List all users",
)
async def list_users(
    session: AsyncSession = Depends(get_session),
) -> list[UserListItem]:
    users = await admin_service.list_users(session)
    return [UserListItem(user_id=u.id, created_at=u.created_at) for u in users]

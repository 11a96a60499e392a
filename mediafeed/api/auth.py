from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mediafeed.db.database import get_db
from mediafeed.schemas.user import UserResponse, WalletConnectRequest, WalletConnectResponse
from mediafeed.services.user_service import UserService
from mediafeed.utils.security import create_access_token

auth_router = APIRouter()


@auth_router.post("/wallet/connect", response_model=WalletConnectResponse)
async def connect_wallet(
    payload: WalletConnectRequest,
    db: AsyncSession = Depends(get_db),
):
    user_service = UserService(db)
    user, is_new = await user_service.connect_wallet(
        wallet_address=payload.wallet_address,
        name=payload.name,
    )
    access_token = await create_access_token(user.wallet_address)

    return WalletConnectResponse(
        user=UserResponse.model_validate(user),
        is_new_user=is_new,
        access_token=access_token,
    )

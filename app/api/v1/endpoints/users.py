from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_identity
from app.schemas.token import TokenPayload

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
        500: {"description": "Internal server error"}
    }
)

@router.get(
    "/me",
    response_model=TokenPayload,
    status_code=status.HTTP_200_OK,
    summary="Current identity",
    description="""
    Return the identity carried by the bearer access token.

    This is the same check every task endpoint runs before touching data.
    """,
    responses={
        200: {
            "description": "Identity of the caller",
            "content": {
                "application/json": {
                    "example": {"userId": 1, "email": "a@x.com"}
                }
            }
        }
    }
)
async def read_current_identity(
    identity: TokenPayload = Depends(get_current_identity)
) -> TokenPayload:
    return identity

from fastapi import APIRouter, Depends

from beautybook.auth.dependencies import get_current_user
from beautybook.models.user import User

router = APIRouter(tags=['auth'])


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {
        "success": True,
        "data": {"id": current_user.id, "email": current_user.email, "role": current_user.role},
    }

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from beautybook.auth import jwt_handler
from beautybook.database import get_db
from beautybook.models.enums import UserRole
from beautybook.models.user import User

security = HTTPBearer()

ROLE_LABELS = {
    UserRole.CLIENT: 'clients',
    UserRole.ARTIST: 'artists',
    UserRole.ADMIN: 'admins',
}


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token expired. Please login again.") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid token. Please login again.") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.id == int(subject)).first()
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_role(*roles: UserRole):
    """Dependency factory restricting a route group to the given roles."""
    allowed = {role.value for role in roles}
    label = ' or '.join(ROLE_LABELS[role] for role in roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=403, detail=f"Only {label} can access this resource")
        return current_user

    return dependency


require_client = require_role(UserRole.CLIENT)
require_artist = require_role(UserRole.ARTIST)
require_admin = require_role(UserRole.ADMIN)

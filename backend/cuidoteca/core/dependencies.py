from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import Forbidden
from cuidoteca.core.security import decode_token
from cuidoteca.database import get_db
from cuidoteca.models.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Extract and validate the JWT from the Authorization header.

    Returns the User ORM instance for the authenticated user.

    Raises:
        HTTPException 401: If the token is missing, invalid, or the user
            does not exist.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível validar as credenciais",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(token)
        user_id: str | None = payload.get("sub")
        token_type: str | None = payload.get("type")
        if user_id is None or token_type != "access":
            raise credentials_exception
        user_uuid = UUID(user_id)
    except (JWTError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


def _require_role(role: UserRole, detail: str):
    """Build a dependency that lets only users of ``role`` through."""

    async def _check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role is not role:
            raise Forbidden(detail)
        return current_user

    return _check_role


require_parent = _require_role(UserRole.PARENT, "Apenas pais podem realizar esta ação")
require_cuidador = _require_role(UserRole.CUIDADOR, "Apenas cuidadores podem realizar esta ação")
require_institution = _require_role(
    UserRole.INSTITUTION, "Apenas instituições podem realizar esta ação"
)
require_coordinator = _require_role(
    UserRole.COORDINATOR, "Acesso restrito a coordenadores"
)

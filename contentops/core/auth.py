# contentops/core/auth.py
from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from contentops.core.access import AccessContext, resolve_access
from contentops.core.errors import UnauthorizedError
from contentops.core.security import decode_access_token
from contentops.db.session import SessionLocal

# Tokens are issued by the external auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/login")


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a DB session and make sure it's closed afterwards."""
    async with SessionLocal() as db:
        yield db


def get_current_identity(request: Request, token: str = Depends(oauth2_scheme)) -> str:
    """Decode the Bearer JWT and return the caller e-mail ('sub'), or 401."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError:
        raise credentials_exception

    email = payload.get("sub")
    if not email:
        raise credentials_exception

    # request logging picks this up
    request.state.identity = email
    return email


async def get_access_context(
    request: Request,
    email: str = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> AccessContext:
    ctx = await resolve_access(db, email)
    request.state.admin_role = ctx.role
    return ctx


def require_admin(ctx: AccessContext = Depends(get_access_context)) -> AccessContext:
    """403 unless the identity resolved to an admin (any role)."""
    if ctx.error is not None:
        raise ctx.error
    if not ctx.is_admin:
        raise UnauthorizedError("Unauthorized - Admin access required.")
    return ctx


def require_super_admin(ctx: AccessContext = Depends(require_admin)) -> AccessContext:
    denied = ctx.authorize_mutation()
    if denied is not None:
        raise denied
    return ctx

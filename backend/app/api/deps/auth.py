from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.roles import AccountRole
from app.core.security import bearer_scheme, decode_access_token
from app.db.session import get_db
from app.models.account import Account


async def get_current_account(
    credentials=Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """
    Dependency for protected endpoints.
    """
    token = credentials.credentials
    account_id = decode_access_token(token)  # returns sub string

    try:
        account_uuid = uuid.UUID(str(account_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    account = await db.get(Account, account_uuid)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found")

    if not getattr(account, "is_active", True):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account inactive")

    return account


async def require_admin(account: Account = Depends(get_current_account)) -> Account:
    if (account.role or "").lower() != AccountRole.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return account

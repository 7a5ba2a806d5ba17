from __future__ import annotations

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_account
from app.crud.partner import get_profile_for_account
from app.db.session import get_db
from app.models.account import Account
from app.models.partner_profile import PartnerProfile


async def require_partner(
    db: AsyncSession = Depends(get_db),
    account: Account = Depends(get_current_account),
) -> PartnerProfile:
    profile = await get_profile_for_account(db, account.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a partner")
    if (profile.status or "").upper() != "ACTIVE":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Partner profile is inactive")
    return profile

from __future__ import annotations

import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from outbound.accounts.models import User
from outbound.accounts.schemas import AccountStatusUpdate


logger = logging.getLogger("outbound.accounts")


class AccountService:
    def set_status(
        self,
        session: Session,
        *,
        actor_user_id: uuid.UUID,
        user_id: uuid.UUID,
        dto: AccountStatusUpdate,
    ) -> User:
        if user_id == actor_user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="you cannot change your own status")
        user = session.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
        user.status = dto.status
        session.commit()
        session.refresh(user)
        logger.info(
            "account.status_changed",
            extra={"user_id": str(actor_user_id), "resource_id": str(user_id), "reason": dto.status},
        )
        return user


account_service = AccountService()

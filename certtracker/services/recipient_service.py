from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from certtracker.db.models import Recipient
from certtracker.db.session import get_sync_session
from certtracker.schemas.recipient_schemas import (
    CreateRecipientRequest,
    RecipientResponse,
    UpdateRecipientRequest,
)
from certtracker.services.certification_service import parse_uuid
from certtracker.utils.logging import get_logger

logger = get_logger()


class RecipientService:
    """Service for notification recipient management"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_response(recipient: Recipient) -> Dict[str, Any]:
        return RecipientResponse.model_validate(recipient).model_dump(by_alias=True)

    async def get_recipient_by_id(self, recipient_id: str) -> Optional[Recipient]:
        recipient_id = parse_uuid(recipient_id, "RECIPIENT_NOT_FOUND")
        return self.db.execute(
            select(Recipient).where(Recipient.id == recipient_id)
        ).scalar_one_or_none()

    async def check_email_exists(
        self, email: str, exclude_id: Optional[str] = None
    ) -> bool:
        """Case-insensitive check for an existing recipient address"""
        query = select(Recipient).where(func.lower(Recipient.email) == email.lower())
        if exclude_id:
            query = query.where(Recipient.id != exclude_id)
        return self.db.execute(query).first() is not None

    async def list_recipients(self) -> List[Dict[str, Any]]:
        result = self.db.execute(
            select(Recipient).order_by(Recipient.created_at.desc())
        )
        return [self.to_response(recipient) for recipient in result.scalars().all()]

    async def create_recipient(self, data: CreateRecipientRequest) -> Dict[str, Any]:
        if await self.check_email_exists(data.email):
            raise ValueError("RECIPIENT_EMAIL_EXISTS")

        try:
            recipient = Recipient(
                name=data.name,
                email=data.email,
                role=(data.role or "").strip() or None,
                is_active=data.is_active,
            )
            self.db.add(recipient)
            self.db.commit()
            self.db.refresh(recipient)
            logger.info(f"Created recipient {recipient.email}")
            return self.to_response(recipient)

        except IntegrityError:
            self.db.rollback()
            raise ValueError("RECIPIENT_EMAIL_EXISTS")

    async def update_recipient(
        self, recipient_id: str, data: UpdateRecipientRequest
    ) -> Dict[str, Any]:
        recipient = await self.get_recipient_by_id(recipient_id)
        if not recipient:
            raise ValueError("RECIPIENT_NOT_FOUND")

        changes = {
            field: getattr(data, field)
            for field in data.model_fields_set
            if getattr(data, field) is not None or field == "role"
        }
        if not changes:
            raise ValueError("NO_FIELDS_TO_UPDATE")

        if "email" in changes:
            changes["email"] = changes["email"].strip()
            if await self.check_email_exists(changes["email"], exclude_id=recipient.id):
                raise ValueError("RECIPIENT_EMAIL_EXISTS")

        try:
            for field, value in changes.items():
                setattr(recipient, field, value)
            self.db.commit()
            self.db.refresh(recipient)
            logger.info(f"Updated recipient {recipient.email}")
            return self.to_response(recipient)

        except IntegrityError:
            self.db.rollback()
            raise ValueError("RECIPIENT_EMAIL_EXISTS")

    async def delete_recipient(self, recipient_id: str) -> None:
        """Delete a recipient; audit rows keep their copied address"""
        recipient = await self.get_recipient_by_id(recipient_id)
        if not recipient:
            raise ValueError("RECIPIENT_NOT_FOUND")

        self.db.delete(recipient)
        self.db.commit()
        logger.info(f"Deleted recipient {recipient.email}")


def get_recipient_service(
    db: Session = Depends(get_sync_session),
) -> RecipientService:
    """Dependency to provide RecipientService instance"""
    return RecipientService(db)

from datetime import datetime
from typing import Optional

from pydantic import Field

from certtracker.db.models import DeliveryOutcome, NotificationKind
from certtracker.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class EmailLogItem(BaseModel):
    """One notification audit row"""

    id: str = Field(..., description="Audit record ID")
    certification_id: str = Field(..., description="Certification ID")
    recipient_email: str = Field(..., description="Recipient address")
    kind: NotificationKind = Field(..., description="reminder or overdue")
    milestone_key: str = Field(..., description="scheme:bucket suppression key")
    sent_at: datetime = Field(..., description="Attempt timestamp (UTC)")
    outcome: DeliveryOutcome = Field(..., description="sent or failed")
    error: Optional[str] = Field(default=None, description="Delivery error")

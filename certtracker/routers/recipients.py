from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status

from certtracker.schemas.recipient_schemas import (
    CreateRecipientRequest,
    UpdateRecipientRequest,
)
from certtracker.services.recipient_service import (
    RecipientService,
    get_recipient_service,
)
from certtracker.utils.error_handlers import handle_service_error
from certtracker.utils.responses import ResponseBuilder

recipients_router = APIRouter()

RecipientId = Annotated[str, Path(description="Recipient ID")]


@recipients_router.get("", summary="List notification recipients")
async def list_recipients(
    request: Request,
    recipient_service: RecipientService = Depends(get_recipient_service),
):
    recipients = await recipient_service.list_recipients()
    return ResponseBuilder.success(
        request=request,
        data=recipients,
        message=f"Retrieved {len(recipients)} recipient{'s' if len(recipients) != 1 else ''}",
    )


@recipients_router.post(
    "", status_code=status.HTTP_201_CREATED, summary="Add a notification recipient"
)
async def create_recipient(
    request: Request,
    recipient_data: CreateRecipientRequest,
    recipient_service: RecipientService = Depends(get_recipient_service),
):
    try:
        recipient = await recipient_service.create_recipient(recipient_data)
        return ResponseBuilder.success(
            request=request,
            data=recipient,
            message="Recipient created successfully",
            status_code=status.HTTP_201_CREATED,
        )
    except ValueError as e:
        return handle_service_error(request, e)


@recipients_router.put(
    "/{recipient_id}",
    summary="Update a notification recipient",
    description="Deactivating a recipient (isActive=false) stops notifications while keeping the record",
)
async def update_recipient(
    request: Request,
    recipient_id: RecipientId,
    recipient_data: UpdateRecipientRequest,
    recipient_service: RecipientService = Depends(get_recipient_service),
):
    try:
        recipient = await recipient_service.update_recipient(
            recipient_id, recipient_data
        )
        return ResponseBuilder.success(
            request=request,
            data=recipient,
            message="Recipient updated successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)


@recipients_router.delete("/{recipient_id}", summary="Delete a notification recipient")
async def delete_recipient(
    request: Request,
    recipient_id: RecipientId,
    recipient_service: RecipientService = Depends(get_recipient_service),
):
    try:
        await recipient_service.delete_recipient(recipient_id)
        return ResponseBuilder.success(
            request=request,
            data={"id": recipient_id},
            message="Recipient deleted successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)

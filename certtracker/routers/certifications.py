from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status

from certtracker.schemas.certification_schemas import (
    CreateCertificationRequest,
    UpdateCertificationRequest,
)
from certtracker.services.certification_service import (
    CertificationService,
    get_certification_service,
)
from certtracker.utils.error_handlers import handle_service_error
from certtracker.utils.errors import BusinessLogicError
from certtracker.utils.responses import ResponseBuilder

certifications_router = APIRouter()

CertificationId = Annotated[str, Path(description="Certification ID")]


@certifications_router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List certifications",
    description="Retrieve certifications with their current expiry bucket, optionally filtered by status or a search term",
)
async def list_certifications(
    request: Request,
    q: Optional[str] = Query(default=None, description="Search plant, address or registration number"),
    status_filter: Optional[str] = Query(
        default=None, alias="status", description="Exact certification status"
    ),
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        certifications = await certification_service.list_certifications(
            q=q, status=status_filter
        )
        return ResponseBuilder.success(
            request=request,
            data=certifications,
            message=f"Retrieved {len(certifications)} certification{'s' if len(certifications) != 1 else ''}",
        )
    except ValueError as e:
        return handle_service_error(request, e)


@certifications_router.get(
    "/{certification_id}",
    status_code=status.HTTP_200_OK,
    summary="Get a certification",
)
async def get_certification(
    request: Request,
    certification_id: CertificationId,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        certification = await certification_service.get_certification(
            certification_id
        )
        return ResponseBuilder.success(
            request=request,
            data=certification,
            message="Certification retrieved successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)


@certifications_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a certification",
    description="Create a certification; an attachment may be sent inline as base64 (max 10MB decoded)",
)
async def create_certification(
    request: Request,
    certification_data: CreateCertificationRequest,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        certification = await certification_service.create_certification(
            certification_data
        )
        return ResponseBuilder.success(
            request=request,
            data=certification,
            message="Certification created successfully",
            status_code=status.HTTP_201_CREATED,
        )
    except ValueError as e:
        return handle_service_error(request, e)


@certifications_router.put(
    "/{certification_id}",
    status_code=status.HTTP_200_OK,
    summary="Update a certification",
    description="Update the fields present in the request; attachmentClear removes the stored attachment",
)
async def update_certification(
    request: Request,
    certification_id: CertificationId,
    certification_data: UpdateCertificationRequest,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        certification = await certification_service.update_certification(
            certification_id, certification_data
        )
        return ResponseBuilder.success(
            request=request,
            data=certification,
            message="Certification updated successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)


@certifications_router.delete(
    "/{certification_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a certification",
    description="Delete a certification together with its notification history",
)
async def delete_certification(
    request: Request,
    certification_id: CertificationId,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        await certification_service.delete_certification(certification_id)
        return ResponseBuilder.success(
            request=request,
            data={"id": certification_id},
            message="Certification deleted successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)


@certifications_router.get(
    "/{certification_id}/attachment",
    summary="Download the attachment",
    response_class=Response,
)
async def download_attachment(
    request: Request,
    certification_id: CertificationId,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        name, content_type, data = await certification_service.get_attachment(
            certification_id
        )
    except ValueError as e:
        return handle_service_error(request, e)

    safe_name = name.replace('"', "")
    return Response(
        content=data,
        media_type=content_type,
        headers={
            "Content-Disposition": (
                f"attachment; filename=\"{quote(safe_name, safe=' ._-')}\"; "
                f"filename*=UTF-8''{quote(safe_name)}"
            )
        },
    )


@certifications_router.delete(
    "/{certification_id}/attachment",
    status_code=status.HTTP_200_OK,
    summary="Remove the attachment",
)
async def remove_attachment(
    request: Request,
    certification_id: CertificationId,
    certification_service: CertificationService = Depends(get_certification_service),
):
    try:
        await certification_service.remove_attachment(certification_id)
        return ResponseBuilder.success(
            request=request,
            data={"id": certification_id},
            message="Attachment removed successfully",
        )
    except ValueError as e:
        return handle_service_error(request, e)
    except Exception as e:
        raise BusinessLogicError(
            message="Failed to remove attachment",
            error_code="ATTACHMENT_REMOVE_FAILED",
        ) from e

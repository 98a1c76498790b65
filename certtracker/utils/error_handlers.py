from fastapi import Request, status

from certtracker.utils.responses import ResponseBuilder

ERROR_STATUS_MAPPING = {
    # Certification errors
    "CERTIFICATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_STATUS": status.HTTP_400_BAD_REQUEST,
    "NO_FIELDS_TO_UPDATE": status.HTTP_400_BAD_REQUEST,
    # Attachment errors
    "ATTACHMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ATTACHMENT_TOO_LARGE": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "INVALID_ATTACHMENT": status.HTTP_400_BAD_REQUEST,
    # Recipient errors
    "RECIPIENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "RECIPIENT_EMAIL_EXISTS": status.HTTP_409_CONFLICT,
}

ERROR_MESSAGES = {
    "CERTIFICATION_NOT_FOUND": "Certification not found",
    "INVALID_STATUS": "Unknown certification status",
    "NO_FIELDS_TO_UPDATE": "No valid fields to update",
    "ATTACHMENT_NOT_FOUND": "No attachment",
    "ATTACHMENT_TOO_LARGE": "Attachment too large (max 10MB)",
    "INVALID_ATTACHMENT": "Invalid attachment",
    "RECIPIENT_NOT_FOUND": "Recipient not found",
    "RECIPIENT_EMAIL_EXISTS": "Recipient email already exists",
}


def handle_service_error(request: Request, error: Exception):
    """Map a service ``ValueError("ERROR_CODE[: details]")`` onto an error response"""
    error_message = str(error)

    # Format is "ERROR_CODE" or "ERROR_CODE: details"
    if ":" in error_message:
        error_code, details = error_message.split(":", 1)
        details = details.strip()
    else:
        error_code, details = error_message, ""

    status_code = ERROR_STATUS_MAPPING.get(
        error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    message = ERROR_MESSAGES.get(error_code, "An unexpected error occurred")
    if details and error_code in ERROR_MESSAGES:
        message = f"{message}: {details}"

    return ResponseBuilder.error(
        request=request,
        message=message,
        error_code=error_code if error_code in ERROR_MESSAGES else "UNEXPECTED_ERROR",
        status_code=status_code,
    )

from nss_portal.response import CustomHTTPException


class RequestValidationError(CustomHTTPException):
    """400 carrying field-level messages, e.g. ``RequestValidationError(email="...")``."""

    def __init__(self, message="Invalid Request", **errors):
        super().__init__(
            status_code=400,
            message=message,
            error_code="VALIDATION_ERROR",
            errors=errors,
        )

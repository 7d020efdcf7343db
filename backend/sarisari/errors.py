"""Domain errors raised by the services and mapped to HTTP responses by the API"""


class SariSariError(Exception):
    """Base error"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(SariSariError):
    """Malformed input or a business rule that refused the request"""
    status_code = 400


class NotFound(SariSariError):
    status_code = 404

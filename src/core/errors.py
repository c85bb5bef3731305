"""
Error types shared by the API routes and the media pipeline.

HTTP-facing errors subclass FastAPI's HTTPException so they render through
the framework's default handler. Pipeline errors are plain RuntimeErrors;
the routes log them and answer with a generic 500.
"""
from fastapi import HTTPException, status


class BadRequestError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Couldn't validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class PipelineError(RuntimeError):
    """Failure of an external dependency while processing media."""


class ProbeError(PipelineError):
    pass


class TranscodeError(PipelineError):
    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class UploadError(PipelineError):
    pass

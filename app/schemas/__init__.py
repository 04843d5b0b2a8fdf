from .auth import CurrentUser, JWTClaims, UserResponse
from .documents import (
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentWithResult,
    DocumentWithTemplate,
    PaginationParams,
    ResultResponse,
)
from .response import ApiResponse, ErrorResponse
from .stats import StatsResponse
from .templates import TemplateCreate, TemplateResponse
from .upload import (
    IngestResult,
    NewTemplateSpec,
    TemplateSelection,
    UploadedFile,
    WorkflowOutcome,
    WorkflowPayload,
)

__all__ = [
    "ApiResponse",
    "CurrentUser",
    "DocumentDetailResponse",
    "DocumentListResponse",
    "DocumentWithResult",
    "DocumentWithTemplate",
    "ErrorResponse",
    "IngestResult",
    "JWTClaims",
    "NewTemplateSpec",
    "PaginationParams",
    "ResultResponse",
    "StatsResponse",
    "TemplateCreate",
    "TemplateResponse",
    "TemplateSelection",
    "UploadedFile",
    "UserResponse",
    "WorkflowOutcome",
    "WorkflowPayload",
]

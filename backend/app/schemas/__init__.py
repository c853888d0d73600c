from backend.app.schemas.admin import EscalationResponse, StatsResponse
from backend.app.schemas.issue import (
    BatchStatusResult,
    BatchStatusUpdate,
    CommentCreate,
    CommentResponse,
    IssueCreate,
    IssueResponse,
    IssueUpdate,
    Location,
    StatusUpdate,
    VoteCreate,
    VoteResult,
)
from backend.app.schemas.user import (
    RoleResponse,
    RoleUpdate,
    UserRegister,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "UserRegister",
    "UserUpdate",
    "UserResponse",
    "RoleUpdate",
    "RoleResponse",
    "Location",
    "IssueCreate",
    "IssueUpdate",
    "IssueResponse",
    "StatusUpdate",
    "BatchStatusUpdate",
    "BatchStatusResult",
    "VoteCreate",
    "VoteResult",
    "CommentCreate",
    "CommentResponse",
    "StatsResponse",
    "EscalationResponse",
]

from backend.app.models.user import User
from backend.app.models.issue import Issue, IssueComment, IssueVote

__all__ = [
    "User",
    "Issue",
    "IssueVote",
    "IssueComment",
]

"""Admin dashboard schemas."""

from pydantic import BaseModel


class NamedCount(BaseModel):
    name: str
    value: int


class DailyCount(BaseModel):
    date: str
    count: int


class ActiveReporter(BaseModel):
    user_id: str
    name: str | None = None
    email: str | None = None
    count: int


class StatsResponse(BaseModel):
    total_issues: int
    open_issues: int
    in_progress_issues: int
    resolved_issues: int
    this_week_issues: int
    this_month_issues: int
    average_resolution_time: int  # hours
    top_categories: list[NamedCount]
    severity_distribution: dict[int, int]
    weekly_trend: list[DailyCount]
    most_active_users: list[ActiveReporter]


class EscalationLocation(BaseModel):
    latitude: float
    longitude: float
    address: str


class EscalationResponse(BaseModel):
    bucket: str
    location: EscalationLocation
    issue_ids: list[str]
    count: int

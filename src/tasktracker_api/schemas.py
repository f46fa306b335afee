"""
tasktracker_api.schemas

Pydantic models exchanged between routers and services.

Responsibilities:
- Request bodies (validated at the HTTP edge, consumed by services).
- Read models built from ORM rows (`from_attributes`).
- Report shapes for statistics, search and gamification.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from tasktracker_api.auth.passwords import MAX_PASSWORD_BYTES
from tasktracker_api.db.models import (
    AttendeeResponse,
    BadgeRarity,
    EventType,
    FamilyRole,
    NotificationType,
    ReminderStatus,
    RepeatFrequency,
    TaskPriority,
    TaskStatus,
    UserRole,
)


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class RequestModel(BaseModel):
    # Strings are trimmed before length checks, so "   " fails min_length=1.
    model_config = ConfigDict(str_strip_whitespace=True)


def _fits_bcrypt(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Password = Annotated[str, Field(min_length=8, max_length=128), AfterValidator(_fits_bcrypt)]


# --- users / auth -----------------------------------------------------------


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: Password
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    username_or_email: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=1, max_length=128)


class UpdateProfileRequest(BaseModel):
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: Password


class UserRead(OrmModel):
    id: uuid.UUID
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    role: UserRole
    is_active: bool
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserRead


class RoleUpdateRequest(BaseModel):
    role: UserRole


# --- categories / tags ------------------------------------------------------


class CategoryCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryRead(OrmModel):
    id: uuid.UUID
    name: str
    description: str | None
    color: str | None
    created_at: datetime
    updated_at: datetime


class TagCreate(RequestModel):
    name: str = Field(min_length=1, max_length=50)


class TagRead(OrmModel):
    id: uuid.UUID
    name: str
    created_at: datetime


class CountByName(BaseModel):
    id: uuid.UUID
    name: str
    count: int


# --- tasks ------------------------------------------------------------------


class TaskCreate(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    status: TaskStatus = TaskStatus.not_started
    priority: TaskPriority = TaskPriority.medium
    due_date: datetime | None = None
    estimated_minutes: int | None = Field(default=None, ge=0, le=60 * 24 * 365)
    category_id: uuid.UUID | None = None
    tag_ids: list[uuid.UUID] = Field(default_factory=list)


class TaskUpdate(TaskCreate):
    # None keeps the current tags; a list (possibly empty) replaces them.
    tag_ids: list[uuid.UUID] | None = None  # type: ignore[assignment]


class TaskPatch(RequestModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=4000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    estimated_minutes: int | None = Field(default=None, ge=0, le=60 * 24 * 365)
    category_id: uuid.UUID | None = None
    tag_ids: list[uuid.UUID] | None = None


class BatchTaskUpdateItem(TaskPatch):
    id: uuid.UUID


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskTagsUpdate(BaseModel):
    tag_ids: list[uuid.UUID]


class TaskIdsRequest(BaseModel):
    task_ids: list[uuid.UUID]


class BatchStatusUpdate(BaseModel):
    task_ids: list[uuid.UUID]
    status: TaskStatus


class BatchStatusResult(BaseModel):
    task_id: uuid.UUID
    success: bool
    previous_status: TaskStatus | None = None
    new_status: TaskStatus | None = None
    error: str | None = None


class TaskRead(OrmModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None
    completed_at: datetime | None
    estimated_minutes: int | None
    category_id: uuid.UUID | None
    category: CategoryRead | None = None
    tags: list[TagRead] = Field(default_factory=list)
    board_id: uuid.UUID | None
    board_column_id: uuid.UUID | None
    board_order: int
    family_id: uuid.UUID | None
    assigned_to_user_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class TaskStatistics(BaseModel):
    total: int
    completed: int
    in_progress: int
    not_started: int
    other: int
    overdue: int
    due_today: int
    due_this_week: int
    due_next_week: int
    completion_rate: float
    by_category: list[CountByName]
    by_tag: list[CountByName]
    recently_modified: list[TaskRead]
    recently_completed: list[TaskRead]


# --- reminders --------------------------------------------------------------


class ReminderCreate(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    reminder_time: datetime
    repeat_frequency: RepeatFrequency = RepeatFrequency.none
    priority: TaskPriority = TaskPriority.medium
    task_id: uuid.UUID | None = None


class ReminderUpdate(ReminderCreate):
    status: ReminderStatus | None = None


class SnoozeRequest(BaseModel):
    minutes: int = Field(ge=1, le=1440)


class ReminderRead(OrmModel):
    id: uuid.UUID
    title: str
    description: str | None
    reminder_time: datetime
    repeat_frequency: RepeatFrequency
    priority: TaskPriority
    status: ReminderStatus
    completed_at: datetime | None
    task_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


# --- notifications ----------------------------------------------------------


class NotificationCreate(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)
    notification_type: NotificationType = NotificationType.system
    is_important: bool = False
    related_entity_type: str | None = Field(default=None, max_length=64)
    related_entity_id: str | None = Field(default=None, max_length=64)
    user_id: uuid.UUID | None = None


class NotificationFilter(BaseModel):
    is_read: bool | None = None
    notification_type: NotificationType | None = None
    is_important: bool | None = None
    since: datetime | None = None
    until: datetime | None = None
    search: str | None = Field(default=None, max_length=200)


class NotificationRead(OrmModel):
    id: uuid.UUID
    title: str
    message: str
    notification_type: NotificationType
    is_read: bool
    read_at: datetime | None
    is_important: bool
    related_entity_type: str | None
    related_entity_id: str | None
    created_by_user_id: uuid.UUID | None
    created_at: datetime


class NotificationCounts(BaseModel):
    total: int
    unread: int
    important: int
    by_type: dict[str, int]


class NotificationStats(BaseModel):
    total: int
    unread: int
    read: int
    important: int
    read_rate: float
    last_7_days: int
    by_type: dict[str, int]


class PreferenceCreate(BaseModel):
    notification_type: NotificationType
    enabled: bool = True
    priority: TaskPriority = TaskPriority.medium
    family_id: uuid.UUID | None = None
    email_enabled: bool = False
    push_enabled: bool = True


class PreferenceUpdate(BaseModel):
    enabled: bool | None = None
    priority: TaskPriority | None = None
    email_enabled: bool | None = None
    push_enabled: bool | None = None


class PreferenceRead(OrmModel):
    id: uuid.UUID
    notification_type: NotificationType
    enabled: bool
    priority: TaskPriority
    family_id: uuid.UUID | None
    email_enabled: bool
    push_enabled: bool
    created_at: datetime
    updated_at: datetime


class PreferenceSummary(BaseModel):
    total: int
    enabled: int
    disabled: int
    email_enabled: int
    push_enabled: int
    enabled_types: list[NotificationType]


# --- families ---------------------------------------------------------------


class FamilyCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class FamilyMemberRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    username: str
    role: FamilyRole
    display_name: str | None
    joined_at: datetime


class FamilyRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    created_by_id: uuid.UUID | None
    created_at: datetime
    members: list[FamilyMemberRead]


class MemberRoleUpdate(BaseModel):
    role: FamilyRole


class InvitationCreate(RequestModel):
    email: EmailStr
    role: FamilyRole = FamilyRole.member
    message: str | None = Field(default=None, max_length=500)


class InvitationRead(BaseModel):
    id: uuid.UUID
    token: str
    email: str
    family_id: uuid.UUID
    family_name: str
    role: FamilyRole
    message: str | None
    is_accepted: bool
    is_declined: bool
    created_at: datetime
    expires_at: datetime


class FamilyActivityRead(OrmModel):
    id: uuid.UUID
    family_id: uuid.UUID
    actor_id: uuid.UUID | None
    action_type: str
    description: str
    entity_type: str | None
    entity_id: str | None
    created_at: datetime


class AssignTaskRequest(BaseModel):
    task_id: uuid.UUID
    assignee_user_id: uuid.UUID


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    username: str
    value: int


# --- family calendar --------------------------------------------------------


class EventCreate(RequestModel):
    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    start_time: datetime
    end_time: datetime
    is_all_day: bool = False
    location: str | None = Field(default=None, max_length=200)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    event_type: EventType = EventType.general
    is_recurring: bool = False
    recurrence_pattern: RepeatFrequency = RepeatFrequency.none
    attendee_member_ids: list[uuid.UUID] = Field(default_factory=list)


class EventUpdate(EventCreate):
    # None keeps the current attendees; a list (possibly empty) replaces them.
    attendee_member_ids: list[uuid.UUID] | None = None  # type: ignore[assignment]


class AttendeeResponseUpdate(RequestModel):
    response: AttendeeResponse
    note: str | None = Field(default=None, max_length=500)
    # Defaults to the caller; admins and parents may answer for another member.
    family_member_id: uuid.UUID | None = None


class AttendeeRead(BaseModel):
    id: uuid.UUID
    family_member_id: uuid.UUID
    user_id: uuid.UUID
    username: str
    response: AttendeeResponse
    note: str | None
    responded_at: datetime | None


class EventRead(BaseModel):
    id: uuid.UUID
    family_id: uuid.UUID
    created_by_id: uuid.UUID | None
    title: str
    description: str | None
    start_time: datetime
    end_time: datetime
    is_all_day: bool
    location: str | None
    color: str | None
    event_type: EventType
    is_recurring: bool
    recurrence_pattern: RepeatFrequency
    created_at: datetime
    updated_at: datetime
    attendees: list[AttendeeRead]


# --- boards -----------------------------------------------------------------


class BoardCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    create_default_columns: bool = True


class BoardUpdate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class ColumnCreate(RequestModel):
    name: str = Field(min_length=1, max_length=50)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(default=None, max_length=32)
    task_limit: int | None = Field(default=None, ge=1, le=1000)
    mapped_status: TaskStatus = TaskStatus.not_started
    is_done_column: bool = False
    order: int | None = Field(default=None, ge=0)


class ColumnUpdate(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str | None = Field(default=None, max_length=32)
    task_limit: int | None = Field(default=None, ge=1, le=1000)
    clear_task_limit: bool = False
    mapped_status: TaskStatus | None = None
    is_done_column: bool | None = None


class ColumnReorder(BaseModel):
    column_ids: list[uuid.UUID] = Field(min_length=1)


class ColumnRead(OrmModel):
    id: uuid.UUID
    board_id: uuid.UUID
    name: str
    order: int
    color: str | None
    icon: str | None
    task_limit: int | None
    is_hidden: bool
    is_done_column: bool
    mapped_status: TaskStatus
    task_count: int = 0


class BoardRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    columns: list[ColumnRead]


class BoardColumnWithTasks(ColumnRead):
    tasks: list[TaskRead] = Field(default_factory=list)


class BoardDetail(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    columns: list[BoardColumnWithTasks]
    unassigned_tasks: list[TaskRead]


class WipStatus(BaseModel):
    column_id: uuid.UUID
    task_count: int
    task_limit: int | None
    status: str
    message: str


class ColumnStatistics(BaseModel):
    column_id: uuid.UUID
    task_count: int
    by_priority: dict[str, int]
    overdue: int
    oldest_task_age_days: float | None
    wip_status: str


class MoveTaskRequest(BaseModel):
    column_id: uuid.UUID
    position: int | None = Field(default=None, ge=0)


# --- gamification -----------------------------------------------------------


class ProgressRead(OrmModel):
    user_id: uuid.UUID
    level: int
    current_points: int
    total_points_earned: int
    next_level_threshold: int
    current_streak: int
    longest_streak: int
    last_activity_date: datetime | None


class PointTransactionRead(OrmModel):
    id: uuid.UUID
    points: int
    transaction_type: str
    description: str
    task_id: uuid.UUID | None
    created_at: datetime


class AchievementRead(OrmModel):
    id: uuid.UUID
    key: str
    name: str
    description: str
    category: str
    criterion: str
    target_value: int
    point_value: int
    icon_url: str | None


class UserAchievementRead(OrmModel):
    id: uuid.UUID
    unlocked_at: datetime
    achievement: AchievementRead


class DailyLoginResult(BaseModel):
    points_awarded: int
    current_streak: int
    progress: ProgressRead


class DailyLoginStatus(BaseModel):
    claimed_today: bool
    current_streak: int
    next_reward: int


class CategoryProgress(BaseModel):
    category: str
    unlocked: int
    total: int


class GamificationStats(BaseModel):
    progress: ProgressRead
    tasks_completed: int
    achievements_unlocked: int
    achievements_total: int
    consistency_score: float
    category_stats: list[CategoryProgress]


class BadgeCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=256)
    category: str = Field(min_length=1, max_length=50)
    rarity: BadgeRarity = BadgeRarity.common
    point_value: int = Field(default=0, ge=0, le=10_000)
    icon_url: str | None = Field(default=None, max_length=256)
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    is_active: bool = True


class BadgeRead(OrmModel):
    id: uuid.UUID
    name: str
    description: str
    category: str
    rarity: BadgeRarity
    point_value: int
    icon_url: str | None
    color: str | None
    is_active: bool
    created_at: datetime


class AwardBadgeRequest(RequestModel):
    user_id: uuid.UUID
    badge_id: uuid.UUID
    note: str | None = Field(default=None, max_length=500)


class UserBadgeRead(OrmModel):
    id: uuid.UUID
    user_id: uuid.UUID
    award_note: str | None
    is_displayed: bool
    is_featured: bool
    awarded_at: datetime
    badge: BadgeRead


# --- saved searches / unified search ----------------------------------------


class SavedSearchCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    query: str = Field(min_length=1, max_length=500)
    entity_types: list[str] = Field(default_factory=list)
    filters: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = False
    family_id: uuid.UUID | None = None


class SavedSearchRead(OrmModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    query: str
    entity_types: list[str]
    filters: dict[str, Any]
    is_public: bool
    family_id: uuid.UUID | None
    usage_count: int
    last_used_at: datetime | None
    created_at: datetime
    updated_at: datetime


class SearchRequest(BaseModel):
    query: str = Field(max_length=200)
    entity_types: list[str] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=50)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category_id: uuid.UUID | None = None


class SearchResultItem(BaseModel):
    entity_type: str
    id: uuid.UUID
    title: str
    description: str | None = None
    relevance: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchGroup(BaseModel):
    results: list[SearchResultItem]
    total_count: int
    has_more: bool


class SearchResponse(BaseModel):
    query: str
    groups: dict[str, SearchGroup]
    total_results: int
    execution_time_ms: float


# --- statistics / analytics -------------------------------------------------


class CategoryActivity(BaseModel):
    category_id: uuid.UUID
    name: str
    total: int
    completed: int
    completion_rate: float


class DailyCount(BaseModel):
    day: date
    created: int
    completed: int


class OverdueSummary(BaseModel):
    count: int
    oldest_due_date: datetime | None


class ProductivitySummary(BaseModel):
    completion_rate: float
    status_distribution: dict[str, int]
    priority_distribution: dict[str, int]
    by_category: list[CategoryActivity]
    average_completion_hours: float | None
    productivity_trend: list[DailyCount]
    overdue: OverdueSummary


class ProductivityAnalytics(BaseModel):
    start: date
    end: date
    daily: list[DailyCount]
    total_created: int
    total_completed: int
    completion_ratio: float


class DashboardTaskCounts(BaseModel):
    total: int
    completed: int
    in_progress: int
    overdue: int
    due_today: int


class Dashboard(BaseModel):
    tasks: DashboardTaskCounts
    unread_notifications: int
    progress: ProgressRead
    upcoming_reminders: list[ReminderRead]
    recent_tasks: list[TaskRead]


# --- Module Notes -----------------------------------------------------------
# Enum fields serialize as their values ("InProgress", "High", ...), which is
# also what clients send back.

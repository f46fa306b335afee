"""
tasktracker_api.db.models

Core persistence schema.

Responsibilities:
- Define ORM models for the task/family organization domain:
  - User, Category, Tag, TaskItem (+ task_tags link table)
  - Reminder, Notification, NotificationPreference
  - Family, FamilyMember, Invitation, FamilyActivity
  - Board, BoardColumn
  - FamilyCalendarEvent, FamilyEventAttendee
  - UserProgress, PointTransaction, Achievement, UserAchievement, Badge, UserBadge
  - SavedSearch
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    Enum,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid as SAUuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasktracker_api.clock import utcnow
from tasktracker_api.db.base import Base


class UserRole(enum.StrEnum):
    # Declaration order is the privilege order (see auth.models.role_rank).
    regular_user = "RegularUser"
    developer = "Developer"
    admin = "Admin"
    global_admin = "GlobalAdmin"


class TaskStatus(enum.StrEnum):
    not_started = "NotStarted"
    in_progress = "InProgress"
    on_hold = "OnHold"
    pending = "Pending"
    completed = "Completed"
    cancelled = "Cancelled"


class TaskPriority(enum.StrEnum):
    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class RepeatFrequency(enum.StrEnum):
    none = "None"
    daily = "Daily"
    weekly = "Weekly"
    monthly = "Monthly"


class ReminderStatus(enum.StrEnum):
    pending = "Pending"
    completed = "Completed"
    snoozed = "Snoozed"
    dismissed = "Dismissed"


class NotificationType(enum.StrEnum):
    task_due = "TaskDue"
    task_assigned = "TaskAssigned"
    task_completed = "TaskCompleted"
    family_invitation = "FamilyInvitation"
    family_activity = "FamilyActivity"
    achievement = "Achievement"
    reminder = "Reminder"
    calendar_event = "CalendarEvent"
    badge = "Badge"
    system = "System"


class FamilyRole(enum.StrEnum):
    admin = "Admin"
    parent = "Parent"
    child = "Child"
    member = "Member"


class EventType(enum.StrEnum):
    general = "General"
    appointment = "Appointment"
    activity = "Activity"
    chore = "Chore"
    celebration = "Celebration"
    travel = "Travel"


class AttendeeResponse(enum.StrEnum):
    pending = "Pending"
    accepted = "Accepted"
    declined = "Declined"
    tentative = "Tentative"


class BadgeRarity(enum.StrEnum):
    common = "Common"
    uncommon = "Uncommon"
    rare = "Rare"
    epic = "Epic"
    legendary = "Legendary"


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _user_fk(*, nullable: bool = False, ondelete: str = "CASCADE") -> Mapped[Any]:
    return mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
        index=True,
    )


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = _uuid_pk()
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.regular_user
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


task_tags = Table(
    "task_tags",
    Base.metadata,
    Column(
        "task_id",
        SAUuid(as_uuid=True),
        ForeignKey("task_items.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        SAUuid(as_uuid=True),
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_categories_user_name"),)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tags_user_name"),)


class TaskItem(Base):
    __tablename__ = "task_items"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus), nullable=False, default=TaskStatus.not_started, index=True
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority), nullable=False, default=TaskPriority.medium
    )
    due_date: Mapped[datetime | None] = mapped_column(nullable=True, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    estimated_minutes: Mapped[int | None] = mapped_column(nullable=True)

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    board_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("boards.id", ondelete="SET NULL"), nullable=True
    )
    board_column_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("board_columns.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    board_order: Mapped[int] = mapped_column(nullable=False, default=0)

    family_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("families.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to_user_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    assigned_by_user_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    category: Mapped[Category | None] = relationship(lazy="selectin")
    tags: Mapped[list[Tag]] = relationship(
        secondary=task_tags, lazy="selectin", passive_deletes=True
    )

    __table_args__ = (Index("ix_task_items_user_status", "user_id", "status"),)


class Reminder(Base):
    __tablename__ = "reminders"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    task_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("task_items.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reminder_time: Mapped[datetime] = mapped_column(nullable=False, index=True)
    repeat_frequency: Mapped[RepeatFrequency] = mapped_column(
        Enum(RepeatFrequency), nullable=False, default=RepeatFrequency.none
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority), nullable=False, default=TaskPriority.medium
    )
    status: Mapped[ReminderStatus] = mapped_column(
        Enum(ReminderStatus), nullable=False, default=ReminderStatus.pending, index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType), nullable=False, default=NotificationType.system, index=True
    )
    is_read: Mapped[bool] = mapped_column(nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(nullable=True)
    is_important: Mapped[bool] = mapped_column(nullable=False, default=False)

    related_entity_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)

    __table_args__ = (Index("ix_notifications_user_read", "user_id", "is_read"),)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType), nullable=False
    )
    enabled: Mapped[bool] = mapped_column(nullable=False, default=True)
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority), nullable=False, default=TaskPriority.medium
    )
    family_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=True
    )
    email_enabled: Mapped[bool] = mapped_column(nullable=False, default=False)
    push_enabled: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "notification_type", "family_id", name="uq_notification_prefs_scope"
        ),
    )


class Family(Base):
    __tablename__ = "families"

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    members: Mapped[list[FamilyMember]] = relationship(
        back_populates="family",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class FamilyMember(Base):
    __tablename__ = "family_members"

    id: Mapped[uuid.UUID] = _uuid_pk()
    family_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = _user_fk()
    role: Mapped[FamilyRole] = mapped_column(
        Enum(FamilyRole), nullable=False, default=FamilyRole.member
    )
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    relationship_label: Mapped[str | None] = mapped_column(String(50), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    family: Mapped[Family] = relationship(back_populates="members")
    user: Mapped[User] = relationship(lazy="selectin")

    __table_args__ = (UniqueConstraint("family_id", "user_id", name="uq_family_members_user"),)


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = _uuid_pk()
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    family_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[FamilyRole] = mapped_column(
        Enum(FamilyRole), nullable=False, default=FamilyRole.member
    )
    created_by_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_accepted: Mapped[bool] = mapped_column(nullable=False, default=False)
    is_declined: Mapped[bool] = mapped_column(nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)

    family: Mapped[Family] = relationship(lazy="selectin")


class FamilyActivity(Base):
    __tablename__ = "family_activities"

    id: Mapped[uuid.UUID] = _uuid_pk()
    family_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    action_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)

    __table_args__ = (Index("ix_family_activities_family_created", "family_id", "created_at"),)


class FamilyCalendarEvent(Base):
    __tablename__ = "family_calendar_events"

    id: Mapped[uuid.UUID] = _uuid_pk()
    family_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    is_all_day: Mapped[bool] = mapped_column(nullable=False, default=False)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType), nullable=False, default=EventType.general
    )
    is_recurring: Mapped[bool] = mapped_column(nullable=False, default=False)
    recurrence_pattern: Mapped[RepeatFrequency] = mapped_column(
        Enum(RepeatFrequency), nullable=False, default=RepeatFrequency.none
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    attendees: Mapped[list[FamilyEventAttendee]] = relationship(
        back_populates="event",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="FamilyEventAttendee.created_at",
        passive_deletes=True,
    )


class FamilyEventAttendee(Base):
    __tablename__ = "family_event_attendees"

    id: Mapped[uuid.UUID] = _uuid_pk()
    event_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("family_calendar_events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    family_member_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("family_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    response: Mapped[AttendeeResponse] = mapped_column(
        Enum(AttendeeResponse), nullable=False, default=AttendeeResponse.pending
    )
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    event: Mapped[FamilyCalendarEvent] = relationship(back_populates="attendees")
    member: Mapped[FamilyMember] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "family_member_id", name="uq_event_attendees_member"),
    )


class Board(Base):
    __tablename__ = "boards"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    columns: Mapped[list[BoardColumn]] = relationship(
        back_populates="board",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="BoardColumn.order",
        passive_deletes=True,
    )


class BoardColumn(Base):
    __tablename__ = "board_columns"

    id: Mapped[uuid.UUID] = _uuid_pk()
    board_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    order: Mapped[int] = mapped_column(nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    task_limit: Mapped[int | None] = mapped_column(nullable=True)
    is_hidden: Mapped[bool] = mapped_column(nullable=False, default=False)
    is_done_column: Mapped[bool] = mapped_column(nullable=False, default=False)
    mapped_status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus), nullable=False, default=TaskStatus.not_started
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)

    board: Mapped[Board] = relationship(back_populates="columns")


class UserProgress(Base):
    __tablename__ = "user_progress"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), unique=True
    )
    level: Mapped[int] = mapped_column(nullable=False, default=1)
    current_points: Mapped[int] = mapped_column(nullable=False, default=0)
    total_points_earned: Mapped[int] = mapped_column(nullable=False, default=0)
    next_level_threshold: Mapped[int] = mapped_column(nullable=False, default=100)
    current_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    last_activity_date: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class PointTransaction(Base):
    __tablename__ = "point_transactions"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    points: Mapped[int] = mapped_column(nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    task_id: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, index=True)


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[uuid.UUID] = _uuid_pk()
    key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    # criterion names a counter (see services.gamification_service) compared to target_value
    criterion: Mapped[str] = mapped_column(String(32), nullable=False)
    target_value: Mapped[int] = mapped_column(nullable=False, default=1)
    point_value: Mapped[int] = mapped_column(nullable=False, default=0)
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    achievement_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False
    )
    unlocked_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    achievement: Mapped[Achievement] = relationship(lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievements_pair"),
    )


class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    rarity: Mapped[BadgeRarity] = mapped_column(
        Enum(BadgeRarity), nullable=False, default=BadgeRarity.common, index=True
    )
    point_value: Mapped[int] = mapped_column(nullable=False, default=0)
    icon_url: Mapped[str | None] = mapped_column(String(256), nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


class UserBadge(Base):
    __tablename__ = "user_badges"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    badge_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False
    )
    awarded_by_id: Mapped[uuid.UUID | None] = _user_fk(nullable=True, ondelete="SET NULL")
    award_note: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_displayed: Mapped[bool] = mapped_column(nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(nullable=False, default=False)
    awarded_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    badge: Mapped[Badge] = relationship(lazy="selectin")

    __table_args__ = (UniqueConstraint("user_id", "badge_id", name="uq_user_badges_pair"),)


class SavedSearch(Base):
    __tablename__ = "saved_searches"

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _user_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    query: Mapped[str] = mapped_column(String(500), nullable=False)
    entity_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    filters: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_public: Mapped[bool] = mapped_column(nullable=False, default=False)
    family_id: Mapped[uuid.UUID | None] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("families.id", ondelete="SET NULL"), nullable=True
    )
    usage_count: Mapped[int] = mapped_column(nullable=False, default=0)
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)


# --- Module Notes -----------------------------------------------------------
# Ownership is always a user_id column; family sharing is expressed with an
# optional family_id. Child rows rely on ON DELETE rules (SQLite enforces them via
# the PRAGMA hook in `db.session`), so ORM collections are declared passive_deletes.

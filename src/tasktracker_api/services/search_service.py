"""
tasktracker_api.services.search_service

Unified search across the caller's entities.

Responsibilities:
- Query each requested entity type for text matches.
- Rank matches by relevance and page each type's result group.
- Offer title suggestions for type-ahead.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.db.repositories.boards import BoardRepo
from tasktracker_api.db.repositories.categories import CategoryRepo
from tasktracker_api.db.repositories.families import FamilyRepo
from tasktracker_api.db.repositories.gamification import GamificationRepo
from tasktracker_api.db.repositories.notifications import NotificationRepo
from tasktracker_api.db.repositories.tags import TagRepo
from tasktracker_api.db.repositories.tasks import TaskRepo
from tasktracker_api.errors import ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import SearchGroup, SearchRequest, SearchResponse, SearchResultItem

log = get_logger(__name__)

ENTITY_TYPES = (
    "tasks",
    "categories",
    "tags",
    "families",
    "boards",
    "notifications",
    "achievements",
)


def relevance(term: str, title: str, description: str | None = None) -> float:
    needle = term.lower()
    hay = title.lower()
    if hay == needle:
        return 1.0
    if hay.startswith(needle):
        return 0.8
    if needle in hay:
        return 0.6
    if description and needle in description.lower():
        return 0.3
    return 0.0


def validate_entity_types(entity_types: Iterable[str]) -> list[str]:
    requested = list(dict.fromkeys(entity_types))
    unknown = [t for t in requested if t not in ENTITY_TYPES]
    if unknown:
        raise ValidationError(
            f"Unknown entity type(s): {', '.join(unknown)}. "
            f"Expected any of: {', '.join(ENTITY_TYPES)}"
        )
    return requested or list(ENTITY_TYPES)


class SearchService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._tasks = TaskRepo(session)
        self._categories = CategoryRepo(session)
        self._tags = TagRepo(session)
        self._families = FamilyRepo(session)
        self._boards = BoardRepo(session)
        self._notifications = NotificationRepo(session)
        self._gamification = GamificationRepo(session)

    async def _candidates(
        self, user_id: uuid.UUID, entity_type: str, req: SearchRequest, term: str
    ) -> list[SearchResultItem]:
        if entity_type == "tasks":
            tasks = await self._tasks.search(
                user_id,
                term,
                status=req.status,
                priority=req.priority,
                category_id=req.category_id,
            )
            return [
                _item(
                    "tasks",
                    t.id,
                    t.title,
                    t.description,
                    term,
                    status=t.status.value,
                    priority=t.priority.value,
                    due_date=t.due_date.isoformat() if t.due_date else None,
                )
                for t in tasks
            ]
        if entity_type == "categories":
            return [
                _item("categories", c.id, c.name, c.description, term, color=c.color)
                for c in await self._categories.search(user_id, term)
            ]
        if entity_type == "tags":
            return [
                _item("tags", t.id, t.name, None, term)
                for t in await self._tags.search(user_id, term)
            ]
        if entity_type == "families":
            return [
                _item("families", f.id, f.name, f.description, term)
                for f in await self._families.search_for_user(user_id, term)
            ]
        if entity_type == "boards":
            return [
                _item("boards", b.id, b.name, b.description, term)
                for b in await self._boards.search(user_id, term)
            ]
        if entity_type == "notifications":
            return [
                _item(
                    "notifications",
                    n.id,
                    n.title,
                    n.message,
                    term,
                    is_read=n.is_read,
                    notification_type=n.notification_type.value,
                )
                for n in await self._notifications.list_for_user(user_id, search=term)
            ]
        return [
            _item("achievements", a.id, a.name, a.description, term, category=a.category)
            for a in await self._gamification.search_achievements(term)
        ]

    async def search(self, user_id: uuid.UUID, req: SearchRequest) -> SearchResponse:
        term = req.query.strip()
        if not term:
            raise ValidationError("Search query cannot be empty")
        entity_types = validate_entity_types(req.entity_types)

        started = time.perf_counter()
        groups: dict[str, SearchGroup] = {}
        total = 0
        offset = (req.page - 1) * req.page_size
        for entity_type in entity_types:
            candidates = await self._candidates(user_id, entity_type, req, term)
            items = [i for i in candidates if i.relevance > 0]
            items.sort(key=lambda i: (-i.relevance, i.title.lower()))
            page = items[offset : offset + req.page_size]
            groups[entity_type] = SearchGroup(
                results=page,
                total_count=len(items),
                has_more=offset + len(page) < len(items),
            )
            total += len(items)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 3)
        log.info("search_executed", user_id=str(user_id), results=total, elapsed_ms=elapsed_ms)
        return SearchResponse(
            query=term, groups=groups, total_results=total, execution_time_ms=elapsed_ms
        )

    async def suggestions(self, user_id: uuid.UUID, prefix: str, limit: int = 10) -> list[str]:
        prefix = prefix.strip()
        if not prefix:
            return []
        titles = await self._tasks.titles_starting_with(user_id, prefix, limit)
        names = [c.name for c in await self._categories.search(user_id, prefix)]
        names += [t.name for t in await self._tags.search(user_id, prefix)]
        out = list(titles)
        for name in sorted(names):
            if name.lower().startswith(prefix.lower()) and name not in out:
                out.append(name)
        return out[:limit]


def _item(
    entity_type: str,
    entity_id: uuid.UUID,
    title: str,
    description: str | None,
    term: str,
    **metadata,
) -> SearchResultItem:
    return SearchResultItem(
        entity_type=entity_type,
        id=entity_id,
        title=title,
        description=description,
        relevance=relevance(term, title, description),
        metadata=metadata,
    )

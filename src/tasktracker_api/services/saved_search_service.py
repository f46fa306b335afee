"""
tasktracker_api.services.saved_search_service

Saved (and family-shared) unified-search queries.

Responsibilities:
- CRUD over the caller's saved searches.
- Visibility: owners always; family members when the search is public and
  shared with their family.
- Execute a saved search through `SearchService`, tracking usage.
"""

from __future__ import annotations

import uuid
from typing import Any

import pydantic
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker_api.clock import utcnow
from tasktracker_api.db.models import SavedSearch
from tasktracker_api.db.repositories.families import FamilyRepo
from tasktracker_api.db.repositories.saved_searches import SavedSearchRepo
from tasktracker_api.errors import ForbiddenError, NotFoundError, ValidationError
from tasktracker_api.observability.logging import get_logger
from tasktracker_api.schemas import SavedSearchCreate, SearchRequest, SearchResponse
from tasktracker_api.services.search_service import SearchService, validate_entity_types

log = get_logger(__name__)

FILTER_KEYS = frozenset({"status", "priority", "category_id", "page", "page_size"})


def build_request(query: str, entity_types: list[str], filters: dict[str, Any]) -> SearchRequest:
    unknown = sorted(set(filters) - FILTER_KEYS)
    if unknown:
        raise ValidationError(f"Unsupported search filter(s): {', '.join(unknown)}")
    try:
        return SearchRequest(query=query, entity_types=entity_types, **filters)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            "Invalid search filters",
            errors=[f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()],
        ) from exc


class SavedSearchService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._repo = SavedSearchRepo(session)
        self._families = FamilyRepo(session)
        self._search = SearchService(session=session)

    async def _require_member(self, user_id: uuid.UUID, family_id: uuid.UUID) -> None:
        if await self._families.get(family_id) is None:
            raise NotFoundError(f"Family with ID {family_id} not found")
        if await self._families.get_member(family_id, user_id) is None:
            raise ForbiddenError("You are not a member of this family")

    async def _visible(self, user_id: uuid.UUID, search_id: uuid.UUID) -> SavedSearch:
        saved = await self._repo.get(search_id)
        if saved is None:
            raise NotFoundError(f"Saved search with ID {search_id} not found")
        if saved.user_id == user_id:
            return saved
        if saved.is_public and saved.family_id is not None:
            if await self._families.get_member(saved.family_id, user_id) is not None:
                return saved
        raise ForbiddenError("You do not have access to this saved search")

    async def _owned(self, user_id: uuid.UUID, search_id: uuid.UUID) -> SavedSearch:
        saved = await self._visible(user_id, search_id)
        if saved.user_id != user_id:
            raise ForbiddenError("Only the owner can modify this saved search")
        return saved

    async def list_searches(self, user_id: uuid.UUID) -> list[SavedSearch]:
        return await self._repo.list_for_user(user_id)

    async def family_searches(self, user_id: uuid.UUID, family_id: uuid.UUID) -> list[SavedSearch]:
        await self._require_member(user_id, family_id)
        return await self._repo.list_public_for_family(family_id)

    async def get(self, user_id: uuid.UUID, search_id: uuid.UUID) -> SavedSearch:
        return await self._visible(user_id, search_id)

    async def _validated(self, user_id: uuid.UUID, body: SavedSearchCreate) -> list[str]:
        entity_types = validate_entity_types(body.entity_types)
        build_request(body.query, entity_types, body.filters)
        if body.family_id is not None:
            await self._require_member(user_id, body.family_id)
        return list(dict.fromkeys(body.entity_types))

    async def create(self, user_id: uuid.UUID, body: SavedSearchCreate) -> SavedSearch:
        entity_types = await self._validated(user_id, body)
        saved = await self._repo.add(
            SavedSearch(
                user_id=user_id,
                name=body.name.strip(),
                query=body.query.strip(),
                entity_types=entity_types,
                filters=body.filters,
                is_public=body.is_public,
                family_id=body.family_id,
            )
        )
        await self._session.commit()
        log.info("saved_search_created", search_id=str(saved.id), user_id=str(user_id))
        return saved

    async def update(
        self, user_id: uuid.UUID, search_id: uuid.UUID, body: SavedSearchCreate
    ) -> SavedSearch:
        saved = await self._owned(user_id, search_id)
        saved.entity_types = await self._validated(user_id, body)
        saved.name = body.name.strip()
        saved.query = body.query.strip()
        saved.filters = body.filters
        saved.is_public = body.is_public
        saved.family_id = body.family_id
        saved.updated_at = utcnow()
        await self._session.commit()
        return saved

    async def delete(self, user_id: uuid.UUID, search_id: uuid.UUID) -> None:
        saved = await self._owned(user_id, search_id)
        await self._repo.delete(saved)
        await self._session.commit()

    async def execute(self, user_id: uuid.UUID, search_id: uuid.UUID) -> SearchResponse:
        saved = await self._visible(user_id, search_id)
        request = build_request(saved.query, list(saved.entity_types), dict(saved.filters))
        saved.usage_count += 1
        saved.last_used_at = utcnow()
        await self._session.commit()
        return await self._search.search(user_id, request)

    async def most_used(self, user_id: uuid.UUID, limit: int = 5) -> list[SavedSearch]:
        return await self._repo.most_used(user_id, limit)

    async def search(self, user_id: uuid.UUID, term: str) -> list[SavedSearch]:
        return await self._repo.search(user_id, term.strip())

    async def share(
        self, user_id: uuid.UUID, search_id: uuid.UUID, family_id: uuid.UUID
    ) -> SavedSearch:
        saved = await self._owned(user_id, search_id)
        await self._require_member(user_id, family_id)
        saved.family_id = family_id
        saved.is_public = True
        saved.updated_at = utcnow()
        await self._session.commit()
        log.info("saved_search_shared", search_id=str(search_id), family_id=str(family_id))
        return saved

    async def unshare(self, user_id: uuid.UUID, search_id: uuid.UUID) -> SavedSearch:
        saved = await self._owned(user_id, search_id)
        saved.family_id = None
        saved.is_public = False
        saved.updated_at = utcnow()
        await self._session.commit()
        return saved

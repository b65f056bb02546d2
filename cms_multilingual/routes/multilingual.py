"""
Multilingual Routes

router  (prefix: /api/v1/multilingual)
    GET    /languages                          → configured languages + preferred one
    GET    /settings                           → stored multilingual settings
    PUT    /settings                           → merge and save multilingual settings
    POST   /content/{content_id}/translations  → create a content translation
    GET    /content/{content_id}/translations  → {lang: id} for the item's group
    POST   /content/{content_id}/resync        → run taxonomy sync for the item
    POST   /translations/batch                 → {id: {lang: id}} for many ids
    GET    /groups/{kind}/{group_id}           → {lang: id} for one group
    POST   /groups/terms                       → create an empty term group
    POST   /terms/{term_id}/translations       → create a term translation
    POST   /terms/in-group                     → create a term inside a group
    PUT    /terms/{term_id}/group              → link a term to a group
    DELETE /terms/{term_id}/group              → unlink a term from its group
    POST   /terms/query                        → language-scoped, ordered term listing
    PUT    /terms/order                        → store explicit term positions
    GET    /paths/{kind}/{entity_id}           → localized path of an entity
    GET    /routes/match                       → match a path against the route table

The acting user arrives as the optional ``X-Acting-User`` header.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002

from cms_multilingual.database import get_db
from cms_multilingual.exceptions import ContentNotFoundError, ResourceNotFoundError
from cms_multilingual.i18n.locale import get_language_info, parse_accept_language
from cms_multilingual.models.translation_group import EntityKind
from cms_multilingual.schemas.multilingual import (
    BatchTranslationsRequest,
    BatchTranslationsResponse,
    EmptyGroupCreate,
    LocalizedPathResponse,
    RouteMatchResponse,
    SyncReportResponse,
    TermGroupLink,
    TermInGroupCreate,
    TermListRequest,
    TermOrderEntry,
    TermResponse,
    TermTranslationCreate,
    TranslationCreate,
    TranslationCreated,
    TranslationsResponse,
)
from cms_multilingual.services.multilingual_service import MultilingualService
from cms_multilingual.services.settings_service import MULTILINGUAL_KEY
from cms_multilingual.services.term_query_service import FIELDS_ALL, FIELDS_COUNT, TermQuery

router = APIRouter(tags=["Multilingual"])
logger = logging.getLogger(__name__)


async def get_engine(
    db: AsyncSession = Depends(get_db),
    x_acting_user: int | None = Header(None),
) -> MultilingualService:
    """Per-request multilingual engine bound to the request's DB session."""
    return await MultilingualService.create(db, acting_user_id=x_acting_user)


# ── Languages & settings ───────────────────────────────────────────────────────


@router.get("/languages")
async def list_languages(
    engine: MultilingualService = Depends(get_engine),
    accept_language: str | None = Header(None),
) -> dict[str, Any]:
    codes = engine.config.language_codes
    preferred = parse_accept_language(accept_language or "", codes) or engine.config.default_language
    return {
        "enabled": engine.config.is_active,
        "default_language": engine.config.default_language,
        "preferred_language": preferred,
        "languages": [get_language_info(code) for code in codes],
    }


@router.get("/settings")
async def get_multilingual_settings(engine: MultilingualService = Depends(get_engine)) -> dict[str, Any]:
    return await engine.options.get(MULTILINGUAL_KEY)


@router.put("/settings")
async def update_multilingual_settings(
    data: dict[str, Any],
    engine: MultilingualService = Depends(get_engine),
) -> dict[str, Any]:
    return await engine.options.save(MULTILINGUAL_KEY, data)


# ── Content translations ───────────────────────────────────────────────────────


@router.post(
    "/content/{content_id}/translations",
    response_model=TranslationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_content_translation(
    content_id: int,
    payload: TranslationCreate,
    engine: MultilingualService = Depends(get_engine),
) -> TranslationCreated:
    new_id = await engine.create_translation(content_id, payload.target_lang)
    created = await engine.content.require_content(new_id)
    return TranslationCreated(id=new_id, source_id=content_id, language=created.language)


@router.get("/content/{content_id}/translations", response_model=TranslationsResponse)
async def get_content_translations(
    content_id: int,
    engine: MultilingualService = Depends(get_engine),
) -> TranslationsResponse:
    item = await engine.content.get_content(content_id)
    if item is None:
        raise ContentNotFoundError(content_id)
    if not item.translation_group:
        return TranslationsResponse(group_id="", translations={})
    members = await engine.get_translations(EntityKind.CONTENT, item.translation_group)
    return TranslationsResponse(group_id=item.translation_group, translations=members)


@router.post("/content/{content_id}/resync", response_model=SyncReportResponse)
async def resync_content(
    content_id: int,
    engine: MultilingualService = Depends(get_engine),
) -> SyncReportResponse:
    report = await engine.resync_content(content_id)
    return SyncReportResponse.from_report(report)


@router.post("/translations/batch", response_model=BatchTranslationsResponse)
async def get_batch_translations(
    payload: BatchTranslationsRequest,
    engine: MultilingualService = Depends(get_engine),
) -> BatchTranslationsResponse:
    mapping = await engine.get_batch_translations(payload.kind, payload.ids)
    return BatchTranslationsResponse(translations=mapping)


@router.get("/groups/{kind}/{group_id}", response_model=TranslationsResponse)
async def get_group_translations(
    kind: EntityKind,
    group_id: str,
    engine: MultilingualService = Depends(get_engine),
) -> TranslationsResponse:
    members = await engine.get_translations(kind, group_id)
    return TranslationsResponse(group_id=group_id, translations=members)


@router.post("/groups/terms", status_code=status.HTTP_201_CREATED)
async def create_empty_term_group(
    payload: EmptyGroupCreate,
    engine: MultilingualService = Depends(get_engine),
) -> dict[str, str]:
    return {"group_id": await engine.create_empty_term_group(payload.taxonomy)}


# ── Term translations ──────────────────────────────────────────────────────────


@router.post(
    "/terms/{term_id}/translations",
    response_model=TranslationCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_term_translation(
    term_id: int,
    payload: TermTranslationCreate,
    engine: MultilingualService = Depends(get_engine),
) -> TranslationCreated:
    new_id = await engine.create_term_translation(term_id, payload.target_lang, payload.taxonomy)
    created = await engine.terms.require_term(new_id)
    return TranslationCreated(id=new_id, source_id=term_id, language=created.language)


@router.post("/terms/in-group", response_model=TermResponse, status_code=status.HTTP_201_CREATED)
async def create_term_in_group(
    payload: TermInGroupCreate,
    engine: MultilingualService = Depends(get_engine),
) -> TermResponse:
    term = await engine.create_term_in_group(payload.taxonomy, payload.group_id, payload.language, name=payload.name)
    return TermResponse.model_validate(term)


@router.put("/terms/{term_id}/group", response_model=TermResponse)
async def link_term(
    term_id: int,
    payload: TermGroupLink,
    engine: MultilingualService = Depends(get_engine),
) -> TermResponse:
    return TermResponse.model_validate(await engine.link_term_to_group(term_id, payload.group_id))


@router.delete("/terms/{term_id}/group", response_model=TermResponse)
async def unlink_term(
    term_id: int,
    engine: MultilingualService = Depends(get_engine),
) -> TermResponse:
    return TermResponse.model_validate(await engine.unlink_term(term_id))


@router.post("/terms/query")
async def query_terms(
    payload: TermListRequest,
    engine: MultilingualService = Depends(get_engine),
) -> dict[str, Any]:
    query = TermQuery(
        taxonomies=payload.taxonomies,
        fields=payload.fields,
        orderby=payload.orderby,
        order=payload.order,
        context_content_id=payload.content_id,
        context_language=payload.language,
    )
    result = await engine.list_terms(query)
    if payload.fields == FIELDS_COUNT:
        return {"count": result}
    if payload.fields == FIELDS_ALL:
        return {"terms": [TermResponse.model_validate(term).model_dump() for term in result]}
    return {"ids": result}


@router.put("/terms/order")
async def reorder_terms(
    entries: list[TermOrderEntry],
    engine: MultilingualService = Depends(get_engine),
) -> dict[str, int]:
    updated = await engine.terms.reorder_terms([entry.model_dump() for entry in entries])
    return {"updated": updated}


# ── Routing ────────────────────────────────────────────────────────────────────


@router.get("/paths/{kind}/{entity_id}", response_model=LocalizedPathResponse)
async def get_localized_path(
    kind: EntityKind,
    entity_id: int,
    engine: MultilingualService = Depends(get_engine),
) -> LocalizedPathResponse:
    path = await engine.resolve_localized_path(kind, entity_id)
    return LocalizedPathResponse(kind=kind, id=entity_id, path=path)


@router.get("/routes/match", response_model=RouteMatchResponse)
async def match_route(
    path: str = Query(..., min_length=1),
    engine: MultilingualService = Depends(get_engine),
) -> RouteMatchResponse:
    found = engine.match_path(path)
    if found is None:
        raise ResourceNotFoundError("Localized route", resource_id=path)
    return RouteMatchResponse(entity=found.entity, target=found.target, language=found.language, slug=found.slug)

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cms_multilingual.models.translation_group import EntityKind


class TranslationCreate(BaseModel):
    target_lang: str = Field(..., title="Target Language", description="Language code of the new translation.")


class TermTranslationCreate(BaseModel):
    target_lang: str = Field(..., title="Target Language", description="Language code of the new term.")
    taxonomy: str = Field(..., title="Taxonomy", description="Taxonomy the source term belongs to.")


class TermInGroupCreate(BaseModel):
    taxonomy: str = Field(..., title="Taxonomy")
    group_id: str = Field(..., title="Translation Group")
    language: str = Field(..., title="Language")
    name: str | None = Field(None, title="Name", description="Defaults to 'New {LANG} Term'.")


class TermGroupLink(BaseModel):
    group_id: str = Field(..., title="Translation Group")


class EmptyGroupCreate(BaseModel):
    taxonomy: str | None = Field(None, title="Taxonomy")


class TranslationCreated(BaseModel):
    id: int = Field(..., title="New ID", description="Identifier of the created translation.")
    source_id: int
    language: str


class BatchTranslationsRequest(BaseModel):
    kind: EntityKind = Field(EntityKind.CONTENT, title="Entity Kind")
    ids: list[int] = Field(default_factory=list, title="IDs")


class TranslationsResponse(BaseModel):
    group_id: str
    translations: dict[str, int] = Field(..., description="Language code → entity id.")


class BatchTranslationsResponse(BaseModel):
    translations: dict[int, dict[str, int]]


class TermResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    taxonomy: str
    name: str
    slug: str
    parent_id: int | None
    language: str | None
    translation_group: str | None


class TermListRequest(BaseModel):
    taxonomies: list[str] = Field(..., min_length=1, title="Taxonomies")
    fields: str = Field("all", description="One of 'all', 'ids', 'count'.")
    orderby: str | None = Field(None, description="One of 'name', 'id', 'term_id', 'slug'.")
    order: str = "ASC"
    content_id: int | None = Field(None, description="Scope the listing to this item's language.")
    language: str | None = None


class TermOrderEntry(BaseModel):
    term_id: int
    position: int


class LocalizedPathResponse(BaseModel):
    kind: EntityKind
    id: int
    path: str


class RouteMatchResponse(BaseModel):
    entity: str
    target: str | None
    language: str
    slug: str


class SyncReportResponse(BaseModel):
    content_id: int
    synced: list[int]
    failures: list[dict[str, Any]]
    skipped: bool

    @classmethod
    def from_report(cls, report: Any) -> "SyncReportResponse":
        return cls(
            content_id=report.content_id,
            synced=report.synced,
            failures=[
                {"content_id": f.content_id, "language": f.language, "error": str(f.cause)} for f in report.failures
            ],
            skipped=report.skipped,
        )

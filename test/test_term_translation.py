"""
Term translation tests
"""

import pytest

from cms_multilingual.exceptions import (
    GroupLanguageConflictError,
    TermNotFoundError,
    TranslationExistsError,
    ValidationError,
)
from cms_multilingual.models.translation_group import EntityKind


class TestCreateTermTranslation:
    async def test_clones_into_target_language(self, engine, make_term):
        source = await make_term("News", language="de", group="t-n", slug="news")

        new_id = await engine.create_term_translation(source.id, "fr", "category")
        created = await engine.terms.get_term(new_id)

        assert created.name == "News (FR)"
        assert created.slug == "news-fr"
        assert created.language == "fr"
        assert created.translation_group == "t-n"

    async def test_bootstraps_source_group(self, engine, make_term):
        source = await make_term("Loose", slug="loose")

        new_id = await engine.create_term_translation(source.id, "en", "category")
        source = await engine.terms.get_term(source.id)

        assert source.language == "de"
        assert source.translation_group
        assert (await engine.terms.get_term(new_id)).translation_group == source.translation_group

    async def test_existing_language_conflicts(self, engine, make_term):
        source = await make_term("News", language="de", group="t-n", slug="news")
        first = await engine.create_term_translation(source.id, "fr", "category")

        with pytest.raises(TranslationExistsError) as exc_info:
            await engine.create_term_translation(source.id, "fr", "category")

        assert exc_info.value.details["existing_id"] == first

    async def test_taxonomy_mismatch(self, engine, make_term):
        source = await make_term("News", language="de", group="t-n")

        with pytest.raises(TermNotFoundError):
            await engine.create_term_translation(source.id, "fr", "tag")

    async def test_unconfigured_language(self, engine, make_term):
        source = await make_term("News", language="de", group="t-n")

        with pytest.raises(ValidationError):
            await engine.create_term_translation(source.id, "es", "category")


class TestGroupMembership:
    async def test_create_in_group_with_default_name(self, engine, make_term):
        news = await make_term("News", language="de", group="t-n")
        news_id = news.id

        term = await engine.create_term_in_group("category", "t-n", "en")

        assert term.name == "New EN Term"
        assert term.language == "en"
        assert await engine.get_translations("term", "t-n") == {"de": news_id, "en": term.id}

    async def test_create_in_group_conflict(self, engine, make_term):
        await make_term("News", language="de", group="t-n")

        with pytest.raises(GroupLanguageConflictError):
            await engine.create_term_in_group("category", "t-n", "de", name="Andere")

    async def test_link_and_unlink(self, engine, make_term):
        await make_term("News", language="de", group="t-n")
        loose = await make_term("Actualites", language="fr")

        await engine.link_term_to_group(loose.id, "t-n")
        assert (await engine.get_translations("term", "t-n"))["fr"] == loose.id

        unlinked = await engine.unlink_term(loose.id)
        assert unlinked.translation_group is None
        assert "fr" not in await engine.get_translations("term", "t-n")

    async def test_link_conflict(self, engine, make_term):
        await make_term("Actualites", language="fr", group="t-n")
        other = await make_term("Infos", language="fr")

        with pytest.raises(GroupLanguageConflictError):
            await engine.link_term_to_group(other.id, "t-n")

    async def test_link_requires_language(self, engine, make_term):
        untagged = await make_term("Untagged")

        with pytest.raises(ValidationError):
            await engine.link_term_to_group(untagged.id, "t-n")

    async def test_relinking_own_group_is_allowed(self, engine, make_term):
        term = await make_term("News", language="de", group="t-n")

        linked = await engine.link_term_to_group(term.id, "t-n")

        assert linked.translation_group == "t-n"


class TestEmptyGroups:
    async def test_placeholder_removed_by_first_member(self, engine):
        group_id = await engine.create_empty_term_group("category")
        assert [g.group_id for g in await engine.groups.list_empty_groups(EntityKind.TERM, "category")] == [group_id]

        await engine.create_term_in_group("category", group_id, "fr", name="Premier")

        assert await engine.groups.list_empty_groups(EntityKind.TERM) == []

    async def test_remove_missing_placeholder(self, engine):
        assert await engine.groups.remove_empty_group("never-created") is False
        assert await engine.groups.remove_empty_group(None) is False


class TestTermSaveHook:
    async def test_submitted_language_applied(self, engine):
        term = await engine.terms.insert_term("category", "Mode", acting_language="FR")

        assert term.language == "fr"
        assert term.translation_group

    async def test_missing_language_defaults(self, engine):
        term = await engine.terms.insert_term("category", "Neu")

        assert term.language == "de"

    async def test_existing_group_kept(self, engine):
        term = await engine.terms.insert_term("category", "Fest", language="de", translation_group="t-keep")

        assert term.translation_group == "t-keep"

    async def test_empty_name_rejected(self, engine):
        with pytest.raises(ValidationError):
            await engine.terms.insert_term("category", "  ")

    async def test_slug_collision_gets_suffix(self, engine):
        await engine.terms.insert_term("category", "Sale")

        second = await engine.terms.insert_term("category", "Sale")

        assert second.slug == "sale-2"

"""
Content translation creation tests

Covers group bootstrapping, the one-member-per-language rule, argument
validation, custom field copy, placeholder cleanup, and term seeding.
"""

import pytest
from sqlalchemy import func, select

from cms_multilingual.exceptions import ContentNotFoundError, TranslationExistsError, ValidationError
from cms_multilingual.models.content_item import ContentItem
from cms_multilingual.models.translation_group import EmptyTranslationGroup
from cms_multilingual.plugins.hooks import HOOK_TRANSLATION_CREATED


async def _group_size(db, group_id):
    result = await db.execute(select(func.count(ContentItem.id)).where(ContentItem.translation_group == group_id))
    return result.scalar()


class TestCreateTranslation:
    async def test_creates_draft_in_target_language(self, engine, make_content):
        """The copy is a draft titled '{title} - {LANG}' in the source's group"""
        source = await make_content("Hello World", language="de", group="g-1", body="Hallo")

        new_id = await engine.translations.create_translation(source.id, "fr")
        created = await engine.content.get_content(new_id)

        assert created.title == "Hello World - FR"
        assert created.slug == "hello-world-fr"
        assert created.status == "draft"
        assert created.language == "fr"
        assert created.translation_group == "g-1"
        assert created.body == "Hallo"

    async def test_bootstraps_group_and_language_on_source(self, engine, make_content):
        """A source without group or language gets a fresh group and the default language"""
        source = await make_content("Legacy")

        new_id = await engine.translations.create_translation(source.id, "en")
        source = await engine.content.get_content(source.id)
        created = await engine.content.get_content(new_id)

        assert source.language == "de"
        assert source.translation_group
        assert created.translation_group == source.translation_group

    async def test_acting_user_becomes_author(self, engine, make_content):
        source = await make_content("Authored", language="de", group="g-a", author_id=1)

        new_id = await engine.translations.create_translation(source.id, "fr", acting_user_id=7)

        assert (await engine.content.get_content(new_id)).author_id == 7

    async def test_language_code_is_normalized(self, engine, make_content):
        source = await make_content("Case", language="de", group="g-c")

        new_id = await engine.translations.create_translation(source.id, " FR ")

        assert (await engine.content.get_content(new_id)).language == "fr"


class TestOneMemberPerLanguage:
    async def test_second_translation_in_same_language_conflicts(self, engine, test_db, make_content):
        """Creating a second fr member raises and writes nothing"""
        source = await make_content("Page", language="de", group="g-2")
        first = await engine.translations.create_translation(source.id, "fr")

        with pytest.raises(TranslationExistsError) as exc_info:
            await engine.translations.create_translation(source.id, "fr")

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["existing_id"] == first
        assert await _group_size(test_db, "g-2") == 2

    async def test_translating_into_source_language_conflicts(self, engine, test_db, make_content):
        source = await make_content("Page", language="de", group="g-3")

        with pytest.raises(TranslationExistsError):
            await engine.translations.create_translation(source.id, "de")

        assert await _group_size(test_db, "g-3") == 1

    async def test_conflict_from_sibling_source(self, engine, make_content):
        """The rule holds no matter which member is used as the source"""
        source = await make_content("Page", language="de", group="g-4")
        fr_id = await engine.translations.create_translation(source.id, "fr")

        with pytest.raises(TranslationExistsError):
            await engine.translations.create_translation(fr_id, "de")

    async def test_trashed_member_still_holds_its_language(self, engine, test_db, make_content):
        """A trashed fr row keeps fr taken until it is removed from the group"""
        source = await make_content("Page", language="de", group="g-5")
        trashed = await make_content("Old FR", language="fr", group="g-5", status="trash")
        source_id, trashed_id = source.id, trashed.id

        with pytest.raises(TranslationExistsError) as exc_info:
            await engine.create_translation(source_id, "fr")

        assert exc_info.value.details["existing_id"] == trashed_id
        assert await _group_size(test_db, "g-5") == 2

    async def test_trashed_member_hidden_from_lookups(self, engine, make_content):
        source = await make_content("Page", language="de", group="g-6")
        await make_content("Old FR", language="fr", group="g-6", status="trash")
        source_id = source.id

        assert await engine.get_translations("content", "g-6") == {"de": source_id}


class TestValidation:
    async def test_malformed_language(self, engine, make_content):
        source = await make_content("Page", language="de", group="g-6")

        with pytest.raises(ValidationError):
            await engine.translations.create_translation(source.id, "")

    async def test_unconfigured_language(self, engine, make_content):
        source = await make_content("Page", language="de", group="g-7")

        with pytest.raises(ValidationError) as exc_info:
            await engine.translations.create_translation(source.id, "it")

        assert "not configured" in exc_info.value.message

    async def test_missing_source(self, engine):
        with pytest.raises(ContentNotFoundError):
            await engine.translations.create_translation(999, "fr")


class TestFieldCopy:
    async def test_copies_matching_fields_and_skips_empty(self, engine, fields, make_content):
        """Values of fields applying to the source are copied verbatim; empty ones are skipped"""
        fields.register_group(
            "post_extras",
            [
                {"name": "subtitle", "type": "text"},
                {"name": "layout", "type": "section", "sub_fields": [{"name": "sidebar", "type": "toggle"}]},
                {"name": "empty_note", "type": "text"},
            ],
            [[{"type": "content_type", "value": "post"}]],
        )
        source = await make_content("Fields", language="de", group="g-f")
        await engine.content.set_field_value(source.id, "subtitle", "Untertitel")
        await engine.content.set_field_value(source.id, "sidebar", {"enabled": True})
        await engine.content.set_field_value(source.id, "empty_note", "")
        await engine.content.set_field_value(source.id, "unregistered", "stays behind")

        new_id = await engine.translations.create_translation(source.id, "fr")

        assert await engine.content.get_field_values(new_id) == {
            "subtitle": "Untertitel",
            "sidebar": {"enabled": True},
        }

    async def test_no_matching_groups_copies_nothing(self, engine, fields, make_content):
        fields.register_group("pages_only", [{"name": "hero"}], [[{"type": "content_type", "value": "page"}]])
        source = await make_content("Post", language="de", group="g-n")
        await engine.content.set_field_value(source.id, "hero", "img.png")

        new_id = await engine.translations.create_translation(source.id, "fr")

        assert await engine.content.get_field_values(new_id) == {}


class TestSideEffects:
    async def test_removes_group_placeholder(self, engine, test_db, make_content):
        test_db.add(EmptyTranslationGroup(group_id="g-p", entity_kind="content"))
        await test_db.commit()
        source = await make_content("Page", language="de", group="g-p")

        await engine.translations.create_translation(source.id, "fr")

        assert await test_db.get(EmptyTranslationGroup, "g-p") is None

    async def test_fires_translation_created(self, engine, make_content):
        received = []

        async def _listener(payload):
            received.append(payload)

        engine.hooks.add_action(HOOK_TRANSLATION_CREATED, _listener)
        source = await make_content("Page", language="de", group="g-h")

        new_id = await engine.translations.create_translation(source.id, "en")

        assert received == [
            {"kind": "content", "source_id": source.id, "new_id": new_id, "language": "en", "group_id": "g-h"}
        ]

    async def test_facade_seeds_terms_in_target_language(self, engine, test_db, make_content, make_term):
        """The facade gives the new translation the fr members of the source's term groups"""
        news_de = await make_term("Nachrichten", language="de", group="t-news")
        news_fr = await make_term("Actualites", language="fr", group="t-news")
        source = await make_content("Product", content_type="product", language="de", group="g-s")
        await engine.content.replace_terms(source.id, "category", [news_de.id])
        await test_db.commit()

        new_id = await engine.create_translation(source.id, "fr")

        assert await engine.content.get_term_ids(new_id, "category") == [news_fr.id]

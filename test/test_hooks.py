"""
Hook registry tests
"""

import pytest

from cms_multilingual.plugins.registry import HookRegistry


@pytest.fixture
def hooks():
    return HookRegistry()


class TestActions:
    async def test_priority_then_registration_order(self, hooks):
        calls = []

        def _make(label):
            async def _callback(payload):
                calls.append(label)
                return label

            return _callback

        hooks.add_action("content.saved", _make("late"), priority=30)
        hooks.add_action("content.saved", _make("first"), priority=10)
        hooks.add_action("content.saved", _make("second"), priority=10)

        results = await hooks.do_action("content.saved", {})

        assert calls == ["first", "second", "late"]
        assert results == ["first", "second", "late"]

    async def test_failing_subscriber_does_not_stop_the_rest(self, hooks):
        calls = []

        async def _broken(payload):
            raise RuntimeError("boom")

        async def _ok(payload):
            calls.append(payload["id"])

        hooks.add_action("content.saved", _broken, priority=1)
        hooks.add_action("content.saved", _ok, priority=2)

        results = await hooks.do_action("content.saved", {"id": 5})

        assert results == [None, None]
        assert calls == [5]

    async def test_unknown_hook_is_a_no_op(self, hooks):
        assert await hooks.do_action("nothing.here", {}) == []


class TestFilters:
    def test_value_threaded_through_filters(self, hooks):
        hooks.add_filter("terms.query_args", lambda value: value + ["b"], priority=20)
        hooks.add_filter("terms.query_args", lambda value: value + ["a"], priority=10)

        assert hooks.apply_filters("terms.query_args", []) == ["a", "b"]

    def test_extra_arguments_passed(self, hooks):
        hooks.add_filter("terms.query_clauses", lambda value, query: f"{value}:{query}")

        assert hooks.apply_filters("terms.query_clauses", "clauses", "query") == "clauses:query"

    def test_filter_errors_propagate(self, hooks):
        def _broken(value):
            raise ValueError("bad filter")

        hooks.add_filter("terms.query_args", _broken)

        with pytest.raises(ValueError):
            hooks.apply_filters("terms.query_args", None)


class TestIntrospection:
    def test_count_and_remove_by_name(self, hooks):
        async def _noop(payload):
            return None

        hooks.add_action("content.saved", _noop, name="sync")
        hooks.add_action("content.saved", _noop, name="sync")
        hooks.add_action("content.saved", _noop, name="other")

        assert hooks.count_callbacks("content.saved") == 3
        assert hooks.count_callbacks("content.saved", "sync") == 2
        assert hooks.remove("content.saved", "sync") == 2
        assert hooks.callback_names("content.saved") == ["other"]

    async def test_engine_wiring(self, engine):
        assert engine.hooks.callback_names("content.saved") == [
            "assign_language",
            "taxonomy_sync",
            "slug_normalization",
        ]
        assert engine.hooks.count_callbacks("terms.query_args", "term_language_scope") == 1

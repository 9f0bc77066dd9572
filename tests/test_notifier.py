"""Tests for ChangeNotifier."""
import logging

from schemastate import ChangeEvent, ChangeNotifier


def _event(field="user", path=("name",), value="Bert"):
    return ChangeEvent(field=field, path=path, value=value, field_value=None, state=None)


class TestChangeNotifier:
    """Subscription and dispatch."""

    def test_calls_in_registration_order(self):
        notifier = ChangeNotifier()
        calls = []
        notifier.subscribe("user", lambda event: calls.append("first"))
        notifier.subscribe("user", lambda event: calls.append("second"))

        notifier.publish(_event())

        assert calls == ["first", "second"]

    def test_only_matching_field(self):
        notifier = ChangeNotifier()
        calls = []
        notifier.subscribe("other", calls.append)

        notifier.publish(_event())

        assert calls == []

    def test_unsubscribe(self):
        notifier = ChangeNotifier()
        calls = []
        notifier.subscribe("user", calls.append)
        notifier.unsubscribe("user", calls.append)
        notifier.unsubscribe("missing", calls.append)

        notifier.publish(_event())

        assert calls == []
        assert notifier.subscribers("user") == []

    def test_clear(self):
        notifier = ChangeNotifier()
        notifier.subscribe("user", print)
        notifier.clear("user")
        assert notifier.subscribers("user") == []

    def test_failing_subscriber_is_isolated(self, caplog):
        notifier = ChangeNotifier()
        calls = []

        def broken(event):
            raise ValueError("bad subscriber")

        notifier.subscribe("user", broken)
        notifier.subscribe("user", calls.append)

        with caplog.at_level(logging.WARNING, logger="schemastate.notifier"):
            notifier.publish(_event())

        assert len(calls) == 1
        assert "bad subscriber" in caplog.text

    def test_dotted_path(self):
        assert _event(path=()).dotted_path == "user"
        assert _event(path=("tags", 0, "label")).dotted_path == "user.tags[0].label"

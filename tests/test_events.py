"""
Tests for the progress channel and the global parameter store
"""

import pytest

from ringbox.events import Finding, ProgressChannel
from ringbox.exceptions import ValidationError
from ringbox.params import GlobalParameters


class TestFinding:
    def test_label_with_pair(self):
        assert Finding(("admin", "secret"), True).label() == "admin  :  secret"

    def test_label_single_item(self):
        assert Finding(("10.0.0.1", None), False).label() == "10.0.0.1"


class TestProgressChannel:
    def test_emit_reaches_subscribers(self):
        channel = ProgressChannel()
        first, second = [], []
        channel.subscribe(first.append)
        channel.subscribe(second.append)

        finding = channel.emit("admin", "admin", valid=True)

        assert first == [finding]
        assert second == [finding]
        assert finding.valid

    def test_unsubscribe(self):
        channel = ProgressChannel()
        received = []
        unsubscribe = channel.subscribe(received.append)
        assert channel.subscriber_count == 1

        unsubscribe()
        unsubscribe()
        channel.emit("a")

        assert received == []
        assert channel.subscriber_count == 0

    def test_emit_without_subscribers(self):
        finding = ProgressChannel().emit("a", "b")
        assert finding.pair == ("a", "b")
        assert not finding.valid

    def test_broken_subscriber_does_not_stop_others(self):
        channel = ProgressChannel()
        received = []

        def broken(finding):
            raise RuntimeError("render failed")

        channel.subscribe(broken)
        channel.subscribe(received.append)

        channel.emit("a", "b")

        assert len(received) == 1


class TestGlobalParameters:
    def test_set_get_env(self):
        params = GlobalParameters()
        params.set("target", "10.0.0.1")

        assert params.get("target") == "10.0.0.1"
        assert "target" in params
        assert params["target"] == "10.0.0.1"
        assert params.env() == {"target": "10.0.0.1"}
        assert list(params) == ["target"]
        assert len(params) == 1

    def test_env_is_a_copy(self):
        params = GlobalParameters()
        params.set("port", "21")
        params.env()["port"] = "22"
        assert params.get("port") == "21"

    def test_unset(self):
        params = GlobalParameters()
        params.set("port", "21")
        assert params.unset("port") is True
        assert params.unset("port") is False
        assert params.get("port") is None

    @pytest.mark.parametrize("name,value", [("", "x"), ("target", ""), ("target", None)])
    def test_empty_rejected(self, name, value):
        with pytest.raises(ValidationError):
            GlobalParameters().set(name, value)

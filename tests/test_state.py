"""Tests for narration snapshots and user-visible strings."""

import dataclasses

import pytest

from visionvoice.core.i18n import MESSAGES, detect_language, translate
from visionvoice.core.state import NarrationSnapshot, NarrationState


class TestNarrationSnapshot:
    def test_loading_only_while_analyzing(self):
        for state in NarrationState:
            snapshot = NarrationSnapshot(state, None, 1.0, True)
            assert snapshot.is_loading is (state is NarrationState.ANALYZING)

    def test_frozen(self):
        snapshot = NarrationSnapshot(NarrationState.IDLE, None, 1.0, True)
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.rate = 2.0

    def test_equality(self):
        a = NarrationSnapshot(NarrationState.SPEAKING, "text", 1.0, True)
        b = NarrationSnapshot(NarrationState.SPEAKING, "text", 1.0, True)
        assert a == b
        assert a != dataclasses.replace(b, rate=1.5)


class TestI18n:
    def test_same_keys_in_every_language(self):
        assert set(MESSAGES["zh"]) == set(MESSAGES["en"])

    def test_formatting(self):
        assert translate("result.speed", "en", value="1.5") == "Speed: 1.5x"

    def test_chinese(self):
        assert translate("result.paused", "zh") == "已暂停"

    def test_unknown_language_falls_back_to_english(self):
        assert translate("result.paused", "fr") == "Paused"

    def test_unknown_key(self):
        assert translate("result.nothing", "en") == "result.nothing"

    @pytest.mark.parametrize(
        "preferred,expected",
        [("en", "en"), ("zh-CN", "zh"), ("zh_TW", "zh"), ("de", "en")],
    )
    def test_explicit_language(self, preferred, expected):
        assert detect_language(preferred) == expected

    def test_auto_uses_environment(self, monkeypatch):
        monkeypatch.setenv("LANG", "zh_CN.UTF-8")
        assert detect_language("auto") == "zh"
        monkeypatch.setenv("LANG", "en_US.UTF-8")
        assert detect_language(None) == "en"

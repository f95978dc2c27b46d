"""Tests for data model classes."""
import pytest

from hana_vocab.models import POS_LABELS, Progress, QuizQuestion, Session, Settings, VocabItem

from conftest import make_item


def test_vocab_item_localized_meaning():
    item = make_item(1, meaning="爱", meaning_en="love")
    assert item.localized_meaning("zh") == "爱"
    assert item.localized_meaning("en") == "love"


def test_vocab_item_is_immutable():
    item = make_item(1)
    with pytest.raises(AttributeError):
        item.korean = "다른"


def test_vocab_item_round_trip_dict():
    item = make_item(1, romanization="dan-eo", tags=("custom",))
    assert VocabItem.from_dict(item.to_dict()) == item


def test_vocab_item_accepts_camel_case_meaning():
    item = VocabItem.from_dict({"id": 7, "korean": "물", "meaning": "水", "meaningEn": "water"})
    assert item.id == "7"
    assert item.meaning_en == "water"
    assert item.romanization is None


def test_progress_defaults():
    p = Progress(id="w001")
    assert p.mastery == 0
    assert p.interval == 1.0
    assert p.last_seen == 0
    assert p.next_review == 0


def test_settings_defaults():
    s = Settings()
    assert s.input_mode == "handwriting"
    assert s.language == "zh"


def test_session_current_question():
    item = make_item(1)
    q = QuizQuestion(id="q1", type="dictation", prompt="词1", answer="단어1", target=item)
    session = Session(id="s", mode="endless", questions=[q])
    assert session.current is q
    session.index = 1
    assert session.current is None


def test_pos_labels_cover_twelve_categories():
    assert len(POS_LABELS) == 12

"""
Tests for speech intent classification.
"""

from joypet_relay.config import AppConfig
from joypet_relay.intents import IntentClassifier, intent_to_trigger
from joypet_relay.models import (
    NO_INTENT,
    PRAISE_INTENT,
    ClassifiedIntent,
    IntentKind,
    TriggerSource,
)
from joypet_relay.text import normalize


def _pet_name(pet_id: str) -> ClassifiedIntent:
    return ClassifiedIntent(kind=IntentKind.PET_NAME, pet_id=pet_id)


class TestIntentClassifier:
    def setup_method(self):
        """Use the built-in pet and praise tables."""
        config = AppConfig()
        self.classifier = IntentClassifier(
            [(pet.id, pet.aliases) for pet in config.pets], config.praise
        )

    def test_praise(self):
        """Praise words trigger the current pet."""
        assert self.classifier.classify(normalize("かわいいね")) == PRAISE_INTENT
        assert self.classifier.classify(normalize("大好きだよ")) == PRAISE_INTENT

    def test_pet_name(self):
        assert self.classifier.classify(normalize("タロ")) == _pet_name("taro")
        assert self.classifier.classify(normalize("うさこ")) == _pet_name("usako")

    def test_misrecognized_alias(self):
        assert self.classifier.classify(normalize("宇佐子")) == _pet_name("usako")
        assert self.classifier.classify(normalize("太郎")) == _pet_name("taro")

    def test_name_takes_precedence_over_praise(self):
        assert self.classifier.classify(normalize("タロかわいい")) == _pet_name("taro")
        assert self.classifier.classify(normalize("かわいいくろ")) == _pet_name("kuro")

    def test_first_configured_pet_wins(self):
        """Only the first pet in configuration order is reported."""
        text = normalize("うさこもくろもたろも")
        assert self.classifier.classify(text) == _pet_name("usako")

        text = normalize("たろとくろ")
        assert self.classifier.classify(text) == _pet_name("kuro")

    def test_substring_inside_longer_utterance(self):
        assert self.classifier.classify(normalize("ねえクロちゃんこっち")) == _pet_name(
            "kuro"
        )

    def test_no_match(self):
        assert self.classifier.classify(normalize("こんにちは")) == NO_INTENT
        assert self.classifier.classify("") == NO_INTENT

    def test_classify_utterance_normalizes(self):
        assert self.classifier.classify_utterance(" タロ！ ") == _pet_name("taro")

    def test_aliases_are_normalized(self):
        """Aliases written in katakana or full width still match."""
        classifier = IntentClassifier([("mike", ["ミケ", "ＭＩＫＥ"])], ["エライ"])
        assert classifier.classify(normalize("みけ")) == _pet_name("mike")
        assert classifier.classify(normalize("mike")) == _pet_name("mike")
        assert classifier.classify(normalize("えらいね")) == PRAISE_INTENT

    def test_empty_aliases_are_ignored(self):
        classifier = IntentClassifier([("mike", ["", " "])], [""])
        assert classifier.classify(normalize("なんでも")) == NO_INTENT


class TestIntentToTrigger:
    def test_pet_name_carries_override(self):
        event = intent_to_trigger(_pet_name("taro"), arrived_at=12.5)
        assert event is not None
        assert event.source is TriggerSource.SPEECH_NAME
        assert event.pet_id == "taro"
        assert event.arrived_at == 12.5

    def test_praise(self):
        event = intent_to_trigger(PRAISE_INTENT, arrived_at=1.0)
        assert event is not None
        assert event.source is TriggerSource.SPEECH_PRAISE
        assert event.pet_id is None

    def test_no_intent(self):
        assert intent_to_trigger(NO_INTENT, arrived_at=1.0) is None

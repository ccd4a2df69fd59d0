"""
Intent classification for recognized speech.

Pet names are matched before praise words, pets are checked in their
configured order and the first match wins. Matching is plain substring
containment so that recognizer noise around a name does not hide it.
"""

from collections.abc import Iterable, Sequence

from .models import (
    NO_INTENT,
    PRAISE_INTENT,
    ClassifiedIntent,
    IntentKind,
    TriggerEvent,
    TriggerSource,
)
from .text import normalize


def _normalized_keywords(words: Iterable[str]) -> tuple[str, ...]:
    keywords = []
    for word in words:
        keyword = normalize(word)
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return tuple(keywords)


class IntentClassifier:
    """Maps normalized text to a pet-name intent, a praise intent, or nothing."""

    def __init__(
        self,
        pet_aliases: Sequence[tuple[str, Sequence[str]]],
        praise: Sequence[str],
    ) -> None:
        self._pet_aliases = [
            (pet_id, _normalized_keywords(aliases)) for pet_id, aliases in pet_aliases
        ]
        self._praise = _normalized_keywords(praise)

    def classify(self, text: str) -> ClassifiedIntent:
        """
        Classify already-normalized text.

        Args:
            text: Output of ``normalize``

        Returns:
            ``PetName`` for the first pet with a matching alias, else ``Praise``
            if any praise word matches, else the empty intent
        """
        if not text:
            return NO_INTENT

        for pet_id, aliases in self._pet_aliases:
            if any(alias in text for alias in aliases):
                return ClassifiedIntent(kind=IntentKind.PET_NAME, pet_id=pet_id)

        if any(word in text for word in self._praise):
            return PRAISE_INTENT

        return NO_INTENT

    def classify_utterance(self, utterance: str) -> ClassifiedIntent:
        """Normalize a raw recognizer transcript and classify it."""
        return self.classify(normalize(utterance))


def intent_to_trigger(
    intent: ClassifiedIntent, arrived_at: float
) -> TriggerEvent | None:
    """Turn a classified intent into the trigger it produces, if any."""
    if intent.kind is IntentKind.PET_NAME:
        return TriggerEvent(
            source=TriggerSource.SPEECH_NAME, pet_id=intent.pet_id, arrived_at=arrived_at
        )
    if intent.kind is IntentKind.PRAISE:
        return TriggerEvent(source=TriggerSource.SPEECH_PRAISE, arrived_at=arrived_at)
    return None

"""
Sensory producers feeding the trigger arbiter.

Each modality runs independently and only posts triggers into the arbiter's
inbox, so a slow or failed sensor never holds up the others. A sensor that
reports ``SensorUnavailableError`` is disabled for the rest of the session.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from .arbiter import TriggerArbiter
from .errors import SensorUnavailableError
from .expression import SmileDetector
from .intents import IntentClassifier, intent_to_trigger
from .models import (
    ClassifiedIntent,
    PointerEvent,
    SpeechResult,
    TriggerEvent,
    TriggerSource,
    VisionFrame,
)

logger = logging.getLogger(__name__)

SpeechSource = Callable[[], AsyncIterator[SpeechResult]]
VisionSource = Callable[[], AsyncIterator[VisionFrame]]

PRIMARY_BUTTON = 1


def is_stroke(pointer: PointerEvent) -> bool:
    """Touch drags always stroke the pet; mouse moves only with the primary button held."""
    if pointer.kind == "touchmove":
        return True
    return pointer.kind == "mousemove" and pointer.buttons == PRIMARY_BUTTON


def touch_trigger(pointer: PointerEvent, arrived_at: float) -> TriggerEvent | None:
    if not is_stroke(pointer):
        return None
    return TriggerEvent(source=TriggerSource.TOUCH, arrived_at=arrived_at)


class SpeechListener:
    """
    Continuous speech recognition.

    The recognizer stream is restarted every time it ends. Interim and final
    results are classified the same way.
    """

    def __init__(
        self,
        arbiter: TriggerArbiter,
        classifier: IntentClassifier,
        source: SpeechSource,
        restart_delay: float = 0.25,
    ) -> None:
        self._arbiter = arbiter
        self._classifier = classifier
        self._source = source
        self._restart_delay = restart_delay
        self.available = True
        self.restarts = 0

    def handle(self, result: SpeechResult) -> ClassifiedIntent:
        """Classify one recognizer result and post the trigger it produces."""
        intent = self._classifier.classify_utterance(result.text)
        event = intent_to_trigger(intent, self._arbiter.now())
        if event is not None:
            logger.debug("Heard %r -> %s", result.text, intent.kind.value)
            self._arbiter.post(event)
        return intent

    async def run(self) -> None:
        while True:
            try:
                async for result in self._source():
                    self.handle(result)
            except SensorUnavailableError as e:
                self.available = False
                logger.warning("Speech disabled for this session: %s", e)
                return
            except Exception:
                logger.exception("Speech recognizer failed, restarting")

            # End of stream is not an error; start listening again.
            self.restarts += 1
            logger.debug("Speech stream ended, restarting")
            await asyncio.sleep(self._restart_delay)


class VisionSampler:
    """Per-frame smile detection."""

    def __init__(
        self, arbiter: TriggerArbiter, detector: SmileDetector, source: VisionSource
    ) -> None:
        self._arbiter = arbiter
        self._detector = detector
        self._source = source
        self.available = True

    def handle(self, frame: VisionFrame) -> bool:
        """Evaluate one frame and post a smile trigger if it shows one."""
        if not self._detector.process(frame):
            return False
        self._arbiter.post(
            TriggerEvent(source=TriggerSource.SMILE, arrived_at=self._arbiter.now())
        )
        return True

    async def run(self) -> None:
        try:
            async for frame in self._source():
                self.handle(frame)
        except SensorUnavailableError as e:
            self.available = False
            logger.warning("Vision disabled for this session: %s", e)
        except Exception:
            self.available = False
            logger.exception("Vision sampling failed, disabled for this session")

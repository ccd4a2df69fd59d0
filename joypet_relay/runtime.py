"""
Wiring of the JoyPet components from configuration.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from .arbiter import TriggerArbiter
from .config import AppConfig
from .expression import SmileDetector, build_strategy
from .intents import IntentClassifier
from .modalities import SpeechListener, SpeechSource, VisionSampler, VisionSource
from .presentation import RenderFeed
from .registry import PetRegistry


@dataclass
class PetRuntime:
    """Everything one pet session needs, built from one configuration."""

    config: AppConfig
    registry: PetRegistry
    feed: RenderFeed
    arbiter: TriggerArbiter
    classifier: IntentClassifier
    detector: SmileDetector

    def speech_listener(
        self, source: SpeechSource, restart_delay: float = 0.25
    ) -> SpeechListener:
        return SpeechListener(self.arbiter, self.classifier, source, restart_delay)

    def vision_sampler(self, source: VisionSource) -> VisionSampler:
        return VisionSampler(self.arbiter, self.detector, source)


def build_runtime(
    config: AppConfig | None = None, clock: Callable[[], float] = time.monotonic
) -> PetRuntime:
    """Create a fresh session with its own state machine and render feed."""
    config = config or AppConfig()
    registry = PetRegistry(pet.to_pet() for pet in config.pets)
    feed = RenderFeed(messages=config.messages, asset_root=config.asset_root)
    arbiter = TriggerArbiter(
        registry,
        feed,
        default_pet_id=config.default_pet,
        cooldown=config.cooldown,
        return_delay=config.return_delay,
        clock=clock,
    )
    classifier = IntentClassifier(
        [(pet.id, pet.aliases) for pet in config.pets], config.praise
    )
    detector = SmileDetector(build_strategy(config.smile))
    return PetRuntime(
        config=config,
        registry=registry,
        feed=feed,
        arbiter=arbiter,
        classifier=classifier,
        detector=detector,
    )

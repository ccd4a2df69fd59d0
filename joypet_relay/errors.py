"""
Error taxonomy for the JoyPet Relay service.

None of these errors is fatal: unknown pets are rejected without side effects,
asset and sensor failures degrade a single concern for the rest of the session.
"""


class JoyPetError(Exception):
    """Base class for all JoyPet errors."""


class UnknownPetError(JoyPetError, LookupError):
    def __init__(self, pet_id: str) -> None:
        super().__init__(f"Unknown pet: {pet_id!r}")
        self.pet_id = pet_id


class AssetUnavailableError(JoyPetError):
    """An idle image, joy video or sound clip is missing or unloadable."""

    def __init__(self, pet_id: str, kinds: list[str]) -> None:
        super().__init__(f"Assets unavailable for {pet_id!r}: {', '.join(kinds)}")
        self.pet_id = pet_id
        self.kinds = kinds


class SensorUnavailableError(JoyPetError):
    """Camera or microphone denied, or recognition unsupported on the host."""

    def __init__(self, modality: str, reason: str = "") -> None:
        message = f"{modality} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.modality = modality
        self.reason = reason

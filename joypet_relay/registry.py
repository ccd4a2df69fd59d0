"""
Pet registry for the JoyPet Relay service.

The registry is built once at startup from configuration and is read-only
afterwards. Iteration follows configuration order.
"""

from collections.abc import Iterable, Iterator

from .errors import UnknownPetError
from .models import Pet


class PetRegistry:
    """Static mapping from pet identifier to its asset bundle."""

    def __init__(self, pets: Iterable[Pet]) -> None:
        self._pets: dict[str, Pet] = {}
        for pet in pets:
            if pet.id in self._pets:
                raise ValueError(f"Duplicate pet id: {pet.id!r}")
            self._pets[pet.id] = pet

        if not self._pets:
            raise ValueError("At least one pet must be configured")

    def resolve(self, pet_id: str) -> Pet:
        """
        Look up a pet by identifier.

        Raises:
            UnknownPetError: if no pet with this identifier is configured
        """
        try:
            return self._pets[pet_id]
        except KeyError:
            raise UnknownPetError(pet_id) from None

    @property
    def default(self) -> Pet:
        """The first configured pet."""
        return next(iter(self._pets.values()))

    @property
    def ids(self) -> list[str]:
        return list(self._pets)

    def __contains__(self, pet_id: object) -> bool:
        return pet_id in self._pets

    def __iter__(self) -> Iterator[Pet]:
        return iter(self._pets.values())

    def __len__(self) -> int:
        return len(self._pets)

"""
Configuration for the JoyPet Relay service.

Process settings come from the environment (prefix ``JOYPET_``) or a ``.env``
file. The pet table and keyword tables come from a YAML file that is read
once at startup; when no file exists the built-in defaults are used.
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Pet

DEFAULT_CONFIG_PATH = Path("config/pets.yaml")


class PetConfig(BaseModel):
    """One row of the pet table, with the aliases that name the pet."""

    id: str
    idle_image: str
    joy_video: str
    sound: str
    aliases: list[str] = Field(
        default_factory=list,
        description="Substrings that identify the pet in recognized speech",
    )

    def to_pet(self) -> Pet:
        return Pet(
            id=self.id,
            idle_image=self.idle_image,
            joy_video=self.joy_video,
            sound=self.sound,
        )


class SmileConfig(BaseModel):
    strategy: Literal["blendshape", "geometric"] = "blendshape"
    threshold: float | None = Field(
        None, ge=0.0, le=1.0, description="Defaults depend on the strategy"
    )
    jaw_open_threshold: float | None = Field(None, ge=0.0, le=1.0)


class MessageConfig(BaseModel):
    """Captions shown alongside each render."""

    startup: str | None = "こんにちは！"
    select: str | None = None
    returned: str | None = "また遊んでね！"
    joyful: str | None = "喜んでいるよ！"


def _default_pets() -> list[PetConfig]:
    return [
        PetConfig(
            id="usako",
            idle_image="assets/usako/n1.png",
            joy_video="assets/usako/p2.mp4",
            sound="assets/sounds/rabbit.mp3",
            aliases=["うさこ", "ウサコ", "宇佐子", "うさ子", "usako"],
        ),
        PetConfig(
            id="kuro",
            idle_image="assets/kuro/n1.png",
            joy_video="assets/kuro/p2.mp4",
            sound="assets/sounds/rabbit.mp3",
            aliases=["クロ", "くろ", "黒", "kuro"],
        ),
        PetConfig(
            id="taro",
            idle_image="assets/taro/n1.png",
            joy_video="assets/taro/p2.mp4",
            sound="assets/sounds/dog.mp3",
            aliases=["タロ", "たろ", "タロウ", "太郎", "taro"],
        ),
    ]


def _default_praise() -> list[str]:
    return ["かわいい", "可愛い", "おりこう", "大好き", "よし", "おいで", "いい子"]


class AppConfig(BaseModel):
    """Static configuration of pets, keywords and timing."""

    pets: list[PetConfig] = Field(default_factory=_default_pets, min_length=1)
    default_pet: str | None = Field(
        None, description="Pet shown at startup; the first pet when unset"
    )
    praise: list[str] = Field(default_factory=_default_praise)
    cooldown_ms: int = Field(
        800, ge=0, description="Minimum time between accepted triggers"
    )
    return_delay_ms: int = Field(
        3000, ge=0, description="Delay after the joy video ends before going idle"
    )
    smile: SmileConfig = Field(default_factory=SmileConfig)
    messages: MessageConfig = Field(default_factory=MessageConfig)
    asset_root: Path | None = Field(
        None, description="When set, assets are checked for existence below it"
    )

    @model_validator(mode="after")
    def _check_default_pet(self) -> "AppConfig":
        ids = [pet.id for pet in self.pets]
        if self.default_pet is not None and self.default_pet not in ids:
            raise ValueError(f"default_pet {self.default_pet!r} is not a configured pet")
        return self

    @property
    def cooldown(self) -> float:
        return self.cooldown_ms / 1000

    @property
    def return_delay(self) -> float:
        return self.return_delay_ms / 1000


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """
    Load the application configuration from a YAML file.

    Args:
        path: Location of the YAML file

    Returns:
        The parsed configuration, or the defaults when the file does not exist

    Raises:
        ValueError: if the file exists but is not valid configuration
    """
    config_path = Path(path)
    if not config_path.exists():
        return AppConfig()

    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        return AppConfig.model_validate(payload)
    except (yaml.YAMLError, ValidationError) as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e


class Settings(BaseSettings):
    """Process-level settings for the server."""

    config_path: Path = DEFAULT_CONFIG_PATH
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    reload: bool = False

    model_config = SettingsConfigDict(
        env_prefix="JOYPET_",
        env_file=".env",
        extra="ignore",
    )

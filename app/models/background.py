"""
Background fill: the transparent sentinel or an opaque RGB color.
"""
from typing import Annotated, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.modules.compositor.utils import parse_hex_color, to_hex

TRANSPARENT = "transparent"

Channel = Annotated[int, Field(ge=0, le=255)]


class BackgroundSpec(BaseModel):
    """A background fill. ``rgb`` is None for the transparent sentinel."""

    model_config = ConfigDict(frozen=True)

    rgb: Optional[Tuple[Channel, Channel, Channel]] = None

    @classmethod
    def transparent(cls) -> "BackgroundSpec":
        return cls()

    @classmethod
    def parse(cls, value: Optional[str]) -> "BackgroundSpec":
        """
        Build a spec from form input.

        Empty input and 'transparent' (any case) map to the transparent
        sentinel; anything else must be a 6-digit hex color.
        """
        if value is None or not value.strip() or value.strip().lower() == TRANSPARENT:
            return cls.transparent()
        return cls(rgb=parse_hex_color(value))

    @property
    def is_transparent(self) -> bool:
        return self.rgb is None

    @property
    def rgba(self) -> Tuple[int, int, int, int]:
        if self.rgb is None:
            return (0, 0, 0, 0)
        return (*self.rgb, 255)

    def to_hex(self) -> str:
        return TRANSPARENT if self.rgb is None else to_hex(self.rgb)

    def __str__(self) -> str:
        return self.to_hex()


class PresetColor(BaseModel):
    id: str
    name: str
    value: str

    @property
    def spec(self) -> BackgroundSpec:
        return BackgroundSpec.parse(self.value)


PRESET_COLORS: List[PresetColor] = [
    PresetColor(id="transparent", name="Transparent", value=TRANSPARENT),
    PresetColor(id="red", name="Document Red", value="#DB1514"),
    PresetColor(id="blue", name="Document Blue", value="#0000FF"),
    PresetColor(id="custom", name="Custom", value="#FFFFFF"),
]


def preset(preset_id: str) -> PresetColor:
    for color in PRESET_COLORS:
        if color.id == preset_id:
            return color
    raise KeyError(f"Unknown preset color: {preset_id}")

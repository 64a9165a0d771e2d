"""Alpha and blend-mode settings for graphics states."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass
from typing import Optional

DEFAULT_ALPHA_VALUE = 1


class BlendMode(str, enum.Enum):
    """PDF blend modes, valued by their PDF names."""

    HUE = "/Hue"
    COLOR = "/Color"
    NORMAL = "/Normal"
    DARKEN = "/Darken"
    SCREEN = "/Screen"
    OVERLAY = "/Overlay"
    LIGHTEN = "/Lighten"
    MULTIPLY = "/Multiply"
    EXCLUSION = "/Exclusion"
    COLOR_BURN = "/ColorBurn"
    HARD_LIGHT = "/HardLight"
    SOFT_LIGHT = "/SoftLight"
    DIFFERENCE = "/Difference"
    SATURATION = "/Saturation"
    LUMINOSITY = "/Luminosity"
    COLOR_DODGE = "/ColorDodge"


def parse_blend_mode(name: str) -> BlendMode:
    """Blend mode for its PDF name; the empty string means normal."""
    if name == "":
        return BlendMode.NORMAL
    try:
        return BlendMode(name)
    except ValueError:
        raise ValueError("blend mode is unknown") from None


@dataclass
class Transparency:
    """An object alpha with a blend mode."""

    alpha: float
    blend_mode: BlendMode = BlendMode.NORMAL
    ext_g_state_index: int = 0

    @property
    def id(self) -> str:
        """Key identifying equal settings."""
        return f"{self.alpha:.3f}_{BlendMode(self.blend_mode).value}"


def new_transparency(alpha: float, blend_mode: str = "") -> Transparency:
    """Validated Transparency; alpha must lie in [0, 1]."""
    if alpha < 0.0 or alpha > 1.0:
        raise ValueError(f"alpha value is out of range (0.0 - 1.0): {alpha:.3f}")
    return Transparency(alpha=alpha, blend_mode=parse_blend_mode(blend_mode))


class TransparencyMap:
    """Thread-safe cache of transparencies keyed by their id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._table: dict[str, Transparency] = {}

    def find(self, transparency: Transparency) -> Optional[Transparency]:
        """The saved transparency with the same id, or None."""
        with self._lock:
            return self._table.get(transparency.id)

    def save(self, transparency: Transparency) -> Transparency:
        """Store ``transparency`` under its id and return it."""
        with self._lock:
            self._table[transparency.id] = transparency
        return transparency

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)
from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from PIL import Image, ImageDraw

from .errors import SetupError
from .status import IndicatorSignal

LOGGER = logging.getLogger(__name__)

ICON_SIZE = 64

_ICON_COLORS: dict[str, tuple[int, int, int]] = {
    IndicatorSignal.OK.value: (46, 160, 67),
    IndicatorSignal.STALE.value: (128, 128, 128),
    IndicatorSignal.ERR.value: (207, 34, 46),
}


def build_icon_image(color: tuple[int, int, int]) -> Image.Image:
    image = Image.new("RGBA", (ICON_SIZE, ICON_SIZE), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.ellipse((4, 4, 60, 60), fill=color, outline=(255, 255, 255), width=3)
    draw.ellipse((24, 24, 40, 40), fill=(255, 255, 255))
    return image


class IconAssets:
    """The three indicator images staged in a private temporary directory."""

    def __init__(self, tmpdir: tempfile.TemporaryDirectory[str]) -> None:
        self._tmpdir = tmpdir
        self.directory = Path(tmpdir.name)

    @classmethod
    def provision(cls) -> IconAssets:
        try:
            tmpdir = tempfile.TemporaryDirectory(prefix="systemd-status-")
        except OSError as exc:
            raise SetupError(f"Failed to create temporary directory for icons: {exc}") from exc
        assets = cls(tmpdir)
        try:
            for name, color in _ICON_COLORS.items():
                build_icon_image(color).save(assets.path_for(name), format="PNG")
        except OSError as exc:
            assets.cleanup()
            raise SetupError(f"Failed to write icon: {exc}") from exc
        LOGGER.info(
            "Icons staged in %s",
            assets.directory,
            extra={"category": "startup"},
        )
        return assets

    def path_for(self, name: str) -> Path:
        if name not in _ICON_COLORS:
            raise KeyError(name)
        return self.directory / f"{name}.png"

    def load(self, name: str) -> Image.Image:
        with Image.open(self.path_for(name)) as image:
            image.load()
            return image.copy()

    def cleanup(self) -> None:
        self._tmpdir.cleanup()

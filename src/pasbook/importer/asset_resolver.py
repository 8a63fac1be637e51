"""Picks the best resolution of each extracted image family"""

from dataclasses import dataclass
from pathlib import Path

# Families exposed on the pass record, footer images are extracted but unused
ASSET_FAMILIES: tuple[str, ...] = ("logo", "icon", "thumbnail", "strip", "background")
RESOLUTION_SUFFIXES: tuple[str, ...] = ("@3x", "@2x", "")


def resolve_asset(images_dir: Path, family: str) -> Path | None:
    """Return the highest resolution variant of `family` present on disk"""
    for suffix in RESOLUTION_SUFFIXES:
        candidate = images_dir / f"{family}{suffix}.png"
        if candidate.is_file():
            return candidate
    return None


@dataclass(frozen=True)
class ResolvedAssets:
    """Absolute paths of the chosen image of each family"""

    logo: Path | None = None
    icon: Path | None = None
    thumbnail: Path | None = None
    strip: Path | None = None
    background: Path | None = None

    @classmethod
    def from_directory(cls, images_dir: Path) -> "ResolvedAssets":
        """Resolve every family in `images_dir`"""
        return cls(
            **{family: resolve_asset(images_dir, family) for family in ASSET_FAMILIES}
        )

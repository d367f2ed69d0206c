"""GitHub release descriptor parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bifrost.common.errors import ContractError


@dataclass(frozen=True)
class Asset:
    name: str
    url: str


@dataclass(frozen=True)
class Release:
    name: str
    tag_name: str
    draft: bool
    prerelease: bool
    assets: tuple[Asset, ...]

    @property
    def publishable(self) -> bool:
        return not (self.draft or self.prerelease)

    def asset_url(self, name: str) -> str:
        for asset in self.assets:
            if asset.name == name:
                return asset.url
        raise ContractError(f"Release {self.tag_name} has no asset named {name}")


def _parse_asset(raw: Any, idx: int) -> Asset:
    if not isinstance(raw, dict):
        raise ContractError(f"Release asset #{idx} is not an object")
    name = raw.get("name")
    url = raw.get("browser_download_url")
    if not isinstance(name, str) or not isinstance(url, str) or not url:
        raise ContractError(f"Release asset #{idx} lacks name or browser_download_url")
    return Asset(name=name, url=url)


def parse_release(payload: Any) -> Release:
    if not isinstance(payload, dict):
        raise ContractError("Release descriptor is not a JSON object")

    tag_name = payload.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise ContractError("Release descriptor has no tag_name")

    raw_assets = payload.get("assets") or []
    if not isinstance(raw_assets, list):
        raise ContractError("Release descriptor assets must be a list")
    if not raw_assets:
        raise ContractError(f"Release {tag_name} has no assets")

    return Release(
        name=str(payload.get("name") or ""),
        tag_name=tag_name.strip(),
        draft=bool(payload.get("draft", False)),
        prerelease=bool(payload.get("prerelease", False)),
        assets=tuple(_parse_asset(raw, idx) for idx, raw in enumerate(raw_assets)),
    )

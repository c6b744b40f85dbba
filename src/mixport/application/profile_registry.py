"""Read-only catalog of export profiles."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from importlib import resources
from pathlib import Path

from mixport.domain.errors import UnknownProfile
from mixport.domain.profiles import ExportProfile, ProfileCatalog
from mixport.utils.config import load_config_data

LOGGER = logging.getLogger(__name__)

DEFAULT_CATALOG_RESOURCE = "export_profiles.json"


class ProfileRegistry:
    """Immutable profile lookup shared by every worker.

    Nothing mutates the registry after construction, so concurrent reads need no lock.
    """

    def __init__(self, profiles: Iterable[ExportProfile]) -> None:
        catalog = ProfileCatalog(profiles=list(profiles))
        self._profiles: tuple[ExportProfile, ...] = tuple(catalog.profiles)
        self._by_id: dict[str, ExportProfile] = {profile.id: profile for profile in self._profiles}

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, profile_id: object) -> bool:
        return profile_id in self._by_id

    def get(self, profile_id: str) -> ExportProfile:
        try:
            return self._by_id[profile_id]
        except KeyError:
            raise UnknownProfile([profile_id]) from None

    def list(self) -> tuple[ExportProfile, ...]:
        return self._profiles

    def require_all(self, profile_ids: Iterable[str]) -> tuple[ExportProfile, ...]:
        """Resolve every id or raise one ``UnknownProfile`` naming all missing ids."""

        requested = tuple(profile_ids)
        missing = [profile_id for profile_id in requested if profile_id not in self._by_id]
        if missing:
            raise UnknownProfile(missing)
        return tuple(self._by_id[profile_id] for profile_id in requested)

    def platforms(self) -> tuple[str, ...]:
        return tuple(sorted({profile.platform for profile in self._profiles}))


def load_profile_registry(path: Path) -> ProfileRegistry:
    """Load a JSON or YAML catalog with a top-level ``profiles`` list."""

    catalog = ProfileCatalog.model_validate(load_config_data(path))
    LOGGER.info("profile_catalog_loaded", extra={"path": str(path), "profile_count": len(catalog.profiles)})
    return ProfileRegistry(catalog.profiles)


def load_default_registry() -> ProfileRegistry:
    """Load the catalog bundled with the package."""

    raw = resources.files("mixport.data").joinpath(DEFAULT_CATALOG_RESOURCE).read_text(encoding="utf-8")
    return ProfileRegistry(ProfileCatalog.model_validate(json.loads(raw)).profiles)

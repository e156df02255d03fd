# landbot/adapters/profiles.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from ..config import settings
from ..domain.criteria import Profile, ProfilesFile, ScrapingSettings
from ..domain.errors import ProfileExistsError, ProfileNotFoundError, ProfileStoreError

log = logging.getLogger(__name__)


@dataclass
class ProfileStore:
    """
    Search profiles kept in one JSON file:

      {"profiles": {...}, "activeProfile": "...", "scraping": {...}}
    """

    path: Path

    @classmethod
    def from_settings(cls) -> "ProfileStore":
        return cls(path=Path(settings.PROFILES_PATH).expanduser())

    def load(self) -> ProfilesFile:
        if not self.path.exists():
            raise ProfileStoreError(f"Profiles file not found: {self.path}")
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return ProfilesFile.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ProfileStoreError(f"Invalid profiles file {self.path}: {e}") from e

    def save(self, data: ProfilesFile) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        body = data.model_dump(mode="json", by_alias=True, exclude_none=True)
        self.path.write_text(json.dumps(body, indent=2) + "\n", encoding="utf-8")

    def get(self, name: str) -> Profile:
        data = self.load()
        profile = data.profiles.get(name)
        if profile is None:
            raise ProfileNotFoundError(name)
        return profile

    def get_active(self) -> Profile:
        data = self.load()
        return self.get(data.active_profile)

    def list_profiles(self) -> list[str]:
        return list(self.load().profiles.keys())

    def set_active(self, name: str) -> None:
        data = self.load()
        if name not in data.profiles:
            raise ProfileNotFoundError(name)
        data.active_profile = name
        self.save(data)
        log.info("Active profile set to %r", name)

    def create(self, name: str, *, from_profile: str | None = None, description: str | None = None) -> Profile:
        """Copy an existing profile (the active one by default) under a new name."""
        data = self.load()
        if name in data.profiles:
            raise ProfileExistsError(name)

        base_name = from_profile or data.active_profile
        base = data.profiles.get(base_name)
        if base is None:
            raise ProfileNotFoundError(base_name)

        profile = base.model_copy(
            deep=True,
            update={"name": name, "description": description or f"Copy of {base.name}"},
        )
        data.profiles[name] = profile
        self.save(data)
        log.info("Created profile %r from %r", name, base_name)
        return profile

    def scraping_settings(self) -> ScrapingSettings:
        """Browser knobs from the profiles file; defaults when it is missing or unreadable."""
        try:
            return self.load().scraping
        except ProfileStoreError as e:
            log.warning("Using default scraping settings: %s", e)
            return ScrapingSettings()

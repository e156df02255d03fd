from __future__ import annotations


class LandbotError(Exception):
    pass


class SessionLaunchError(LandbotError):
    """The shared browser session could not be started; the run cannot proceed."""


class ProfileStoreError(LandbotError):
    pass


class ProfileNotFoundError(ProfileStoreError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Profile not found: {name!r}")
        self.name = name


class AmbiguousIdError(LandbotError):
    def __init__(self, prefix: str, matches: list[str]) -> None:
        super().__init__(f"Id prefix {prefix!r} matches {len(matches)} properties")
        self.prefix = prefix
        self.matches = matches


class ProfileExistsError(ProfileStoreError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Profile already exists: {name!r}")
        self.name = name

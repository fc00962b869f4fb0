"""Directory allow-list filter."""

from __future__ import annotations

from typing import Iterable


class DirectoryFilter:
    """Skip directories that match none of the allow-list substrings.

    An empty allow-list processes every directory.
    """

    def __init__(self, allowlist: Iterable[str] = ()) -> None:
        self.allowlist: tuple[str, ...] = tuple(allowlist)

    def should_skip(self, directory: str) -> bool:
        if not self.allowlist:
            return False
        return not any(pattern in directory for pattern in self.allowlist)

    def __call__(self, directory: str) -> bool:
        return self.should_skip(directory)

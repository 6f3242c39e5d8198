"""Yes/no confirmation capability injected into the migrator and the tag similarity guard."""

from __future__ import annotations

from typing import Protocol


class Confirm(Protocol):
    def __call__(self, prompt: str) -> bool: ...


def always_decline(prompt: str) -> bool:
    """Non-interactive default: answer no to every question."""
    return False


def always_accept(prompt: str) -> bool:
    return True

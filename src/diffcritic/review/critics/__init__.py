"""Bundled critics and the contract they implement."""

from diffcritic.config import ReviewConfig

from .base import Critic, ReviewInput
from .infra_change import InfraChangeCritic, classify_infra_kind
from .large_diff import LargeDiffCritic
from .missing_test import MissingTestCritic, derive_test_path


def default_critics(config: ReviewConfig | None = None) -> list[Critic]:
    """The bundled critics in registration order."""
    config = config or ReviewConfig()
    return [
        MissingTestCritic(),
        InfraChangeCritic(),
        LargeDiffCritic(
            max_changed_lines=config.max_changed_lines,
            max_changed_files=config.max_changed_files,
        ),
    ]


__all__ = [
    "Critic",
    "ReviewInput",
    "MissingTestCritic",
    "InfraChangeCritic",
    "LargeDiffCritic",
    "classify_infra_kind",
    "derive_test_path",
    "default_critics",
]

"""Review request handlers shared by the HTTP API and the CLI."""

from .review_handler import (
    ApplyPolicy,
    ReviewRunner,
    apply_fixed_code,
    policy_decider,
    read_source_file,
)

__all__ = [
    "ApplyPolicy",
    "ReviewRunner",
    "apply_fixed_code",
    "policy_decider",
    "read_source_file",
]

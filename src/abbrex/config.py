from __future__ import annotations
import os
from dataclasses import dataclass

# characters that make up a word (regex character-class body)
WORD_CHARS: str = "A-Za-z_"

# how many words left/right of an abbreviation form its context
CONTEXT_WIDTH: int = 4

# minimum confidence for expansions of words that are not always abbreviations
THRESHOLD: float = 0.95

# storage DSN: "memory://" or "sqlite:///path/to/stats.sqlite"
STORE_DSN: str = "memory://"

# /* ~~~ weight always-abbreviation normalization by trained example counts ~~~ */
PRIOR_WEIGHTING: bool = False


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Immutable settings handed to an Engine at construction."""
    word_chars: str = WORD_CHARS
    context_width: int = CONTEXT_WIDTH
    threshold: float = THRESHOLD
    store_dsn: str = STORE_DSN
    prior_weighting: bool = PRIOR_WEIGHTING

    def __post_init__(self) -> None:
        if not self.word_chars:
            raise ValueError("word_chars must not be empty")
        if self.context_width < 0:
            raise ValueError(f"context_width must be >= 0, got {self.context_width}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {self.threshold}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Defaults overridden by ABBREX_* environment variables."""
        env = os.environ
        return cls(
            word_chars=env.get("ABBREX_WORD_CHARS", WORD_CHARS),
            context_width=int(env.get("ABBREX_CONTEXT_WIDTH", CONTEXT_WIDTH)),
            threshold=float(env.get("ABBREX_THRESHOLD", THRESHOLD)),
            store_dsn=env.get("ABBREX_DB", STORE_DSN),
            prior_weighting=_env_bool(env.get("ABBREX_PRIOR", str(PRIOR_WEIGHTING))),
        )

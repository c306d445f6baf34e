# rie/config.py

import os
from typing import Mapping, Optional

from dotenv import load_dotenv

from rie.ingestion.commit import RetryPolicy
from rie.types import ImporterConfig

# Load environment variables from the .env file into the system environment
load_dotenv()


def load_config(environ: Optional[Mapping[str, str]] = None) -> ImporterConfig:
    """
    Read importer settings from the environment.

        SUPABASE_URL                Supabase project URL
        SUPABASE_KEY                Supabase API key (service role for server-side imports)
        RIE_MAX_COMMIT_ATTEMPTS     attempts per group before giving up; unset, empty or 0 = unbounded
        RIE_COMMIT_BACKOFF_SECONDS  linear backoff between attempts; default 0

    Raises:
        ValueError: if a numeric setting is malformed or negative.
    """
    env = os.environ if environ is None else environ

    return {
        "supabase_url": env.get("SUPABASE_URL") or None,
        "supabase_key": env.get("SUPABASE_KEY") or None,
        "max_commit_attempts": _max_attempts(env.get("RIE_MAX_COMMIT_ATTEMPTS")),
        "commit_backoff_seconds": _backoff(env.get("RIE_COMMIT_BACKOFF_SECONDS")),
    }


def retry_policy_from_config(
    config: ImporterConfig,
    max_attempts: Optional[int] = None,
    backoff_seconds: Optional[float] = None,
) -> RetryPolicy:
    """Build the RetryPolicy; explicit arguments (CLI flags) win over config."""
    attempts = max_attempts if max_attempts is not None else config.get("max_commit_attempts")
    backoff = backoff_seconds if backoff_seconds is not None else config.get("commit_backoff_seconds", 0.0)

    # 0 means "no bound", matching the environment variable.
    return RetryPolicy(max_attempts=attempts or None, backoff_seconds=backoff)


def _max_attempts(raw: Optional[str]) -> Optional[int]:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"RIE_MAX_COMMIT_ATTEMPTS must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError("RIE_MAX_COMMIT_ATTEMPTS must not be negative")
    return value or None


def _backoff(raw: Optional[str]) -> float:
    if raw is None or not raw.strip():
        return 0.0
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"RIE_COMMIT_BACKOFF_SECONDS must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError("RIE_COMMIT_BACKOFF_SECONDS must not be negative")
    return value

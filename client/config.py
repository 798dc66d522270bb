# client/config.py
# Environment-aware configuration for the dashboard API client

import os
from typing import Literal

# Environment detection - normalize to lowercase
_raw_env = os.environ.get("ENV", "production").lower()
ENV: Literal["local", "staging", "production"] = _raw_env if _raw_env in ("local", "staging", "production") else "production"  # type: ignore

IS_LOCAL = (ENV == "local")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "production")

IS_DEV = IS_LOCAL

# Seconds before a backend request is abandoned
REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "20"))


def validate_api_url(url: str, env: str) -> None:
    """
    Validate API base URL according to environment security rules.

    Raises:
        ValueError: If URL violates security constraints for the environment
    """
    if not url:
        raise ValueError("API base URL cannot be empty")

    # Production/staging must use HTTPS and never localhost
    if env in ("staging", "production"):
        if not url.startswith("https://"):
            raise ValueError(f"Production/staging must use HTTPS. Got: {url}")
        if "127.0.0.1" in url or "localhost" in url:
            raise ValueError(f"Production/staging cannot use localhost URLs. Got: {url}")


def get_api_base_url(env: str = None) -> str:
    """
    API base URL, trailing slash removed.

    Priority:
    1. BACKEND_URL environment variable
    2. API_BASE_URL environment variable
    3. http://127.0.0.1:8000 ONLY when running locally

    Raises:
        RuntimeError: staging/production with no configured URL
        ValueError: configured URL fails validate_api_url
    """
    env = env or ENV

    for name in ("BACKEND_URL", "API_BASE_URL"):
        configured = os.environ.get(name, "").strip()
        if configured:
            url = configured.rstrip("/")
            validate_api_url(url, env)
            return url

    if env == "local":
        return "http://127.0.0.1:8000"

    raise RuntimeError(
        f"Backend URL not configured for {env.upper()} environment. "
        f"Set BACKEND_URL to the backend service URL (HTTPS required)."
    )


if IS_DEV:
    print(f"[CONFIG] Client environment: {ENV}")

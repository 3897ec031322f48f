"""
Client configuration.

Defaults suit a local development stack. Deployments override them through
SNAPPWD_* environment variables.
"""

import os
from dataclasses import dataclass

from snappwd.links import LinkStyle
from snappwd.models import DEFAULT_EXPIRATION, validate_expiration


ENV_PREFIX = "SNAPPWD_"


@dataclass
class Config:
    """Where the storage service lives and how share links look."""
    api_url: str = "http://localhost:8080"
    origin: str = "http://localhost:5173"
    path: str = "/"
    link_style: LinkStyle = LinkStyle.QUERY
    timeout: float = 10.0
    expiration: int = DEFAULT_EXPIRATION

    @classmethod
    def from_env(cls, environ: dict = None) -> "Config":
        """
        Build a config from environment variables.

        Reads SNAPPWD_API_URL, SNAPPWD_ORIGIN, SNAPPWD_PATH,
        SNAPPWD_LINK_STYLE (query or compact), SNAPPWD_TIMEOUT and
        SNAPPWD_EXPIRATION. Unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an unusable value.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str):
            return environ.get(ENV_PREFIX + name) or None

        style = get("LINK_STYLE")
        timeout = get("TIMEOUT")
        expiration = get("EXPIRATION")

        config = cls(
            api_url=get("API_URL") or defaults.api_url,
            origin=get("ORIGIN") or defaults.origin,
            path=get("PATH") or defaults.path,
            link_style=LinkStyle(style.lower()) if style else defaults.link_style,
            timeout=float(timeout) if timeout else defaults.timeout,
            expiration=int(expiration) if expiration else defaults.expiration,
        )

        if config.timeout <= 0:
            raise ValueError(f"{ENV_PREFIX}TIMEOUT must be positive")
        validate_expiration(config.expiration)
        return config

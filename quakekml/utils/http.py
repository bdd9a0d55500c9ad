import logging
from dataclasses import dataclass
from typing import Any

import requests

log = logging.getLogger("http")

@dataclass(frozen=True)
class HttpPolicy:
    user_agent: str = "quake-kml/1.0"
    timeout_seconds: float = 20.0

class HttpClient:
    """
    Minimal client with:
    - explicit User-Agent
    - conservative timeouts
    - no retries (callers decide what to do on failure)
    """

    def __init__(self, policy: HttpPolicy | None = None, session: requests.Session | None = None):
        self.policy = policy or HttpPolicy()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self.policy.user_agent,
                "Accept": "application/json",
            }
        )

    def get_json(self, url: str) -> Any:
        resp = self._session.get(url, timeout=self.policy.timeout_seconds)
        resp.raise_for_status()
        log.debug("GET %s -> %s (%d bytes)", url, resp.status_code, len(resp.content))
        return resp.json()

    def close(self) -> None:
        self._session.close()

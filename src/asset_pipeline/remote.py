from __future__ import annotations

import sys
from typing import Optional

import requests
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential


class ContentTypeResolver:
    """Best-effort HEAD probe used to place extension-less remote assets in a group.

    Any network failure resolves to None; callers treat that as "group unknown".
    """

    def __init__(self, user_agent: str = "asset-pipeline", timeout_sec: float = 5, max_retries: int = 3):
        self.ua = user_agent
        self.timeout = timeout_sec
        self.max_retries = max(int(max_retries), 1)

    def _head(self, url: str) -> requests.Response:
        r = requests.head(url, timeout=self.timeout, headers={"User-Agent": self.ua}, allow_redirects=True)
        r.raise_for_status()
        return r

    def resolve(self, url: str) -> Optional[str]:
        if url.startswith("//"):
            url = "https:" + url
        print(
            f"[WARN] probing content type of {url}; declare an extension to avoid a network call",
            file=sys.stderr,
        )
        head = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )(self._head)
        try:
            resp = head(url)
        except (requests.RequestException, RetryError) as e:
            print(f"[WARN] content type probe failed: {url} -> {e}", file=sys.stderr)
            return None
        ctype = (resp.headers.get("Content-Type") or "").lower()
        return ctype or None

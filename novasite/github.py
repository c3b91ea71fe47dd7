from __future__ import annotations

import sys
import time
from typing import Callable, Iterator, Optional

import requests

API_URL = "https://api.github.com"
USER_AGENT = "novasite"
REQUEST_TIMEOUT = 30
MAX_RETRIES = 3
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
JSON_MEDIA_TYPE = "application/vnd.github+json"


class GitHubError(RuntimeError):
    pass


def retry_after(response: requests.Response) -> Optional[float]:
    """Seconds to wait before retrying a rate-limited response, or None."""
    if response.status_code not in (403, 429):
        return None
    header = response.headers.get("Retry-After")
    if header:
        try:
            return max(0.0, float(header))
        except ValueError:
            return 60.0
    if response.headers.get("X-RateLimit-Remaining") == "0":
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return max(0.0, int(reset) - time.time())
        return 60.0
    if response.status_code == 429:
        return 60.0
    return None


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_url: str = API_URL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.owns_session = session is None
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.api_url = api_url.rstrip("/")
        self.sleep = sleep

    def close(self) -> None:
        if self.owns_session:
            self.session.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(self, url: str, params: Optional[dict] = None, accept: str = JSON_MEDIA_TYPE) -> requests.Response:
        for attempt in range(MAX_RETRIES + 1):
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers={"Accept": accept},
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.exceptions.RequestException as exc:
                raise GitHubError(f"GET {url} failed: {exc}") from exc
            wait = retry_after(response)
            if wait is None:
                break
            print(f"Request quota exhausted for request GET {url}", file=sys.stderr)
            if attempt >= MAX_RETRIES:
                break
            print(f"Retry count is {attempt + 1}, retrying after {wait:.0f} seconds!", file=sys.stderr)
            self.sleep(wait)
        if not 200 <= response.status_code < 300:
            raise GitHubError(f"GET {url} returned HTTP {response.status_code}")
        return response

    def paginate(self, path: str, params: Optional[dict] = None) -> Iterator[dict]:
        url: Optional[str] = f"{self.api_url}{path}"
        params = {"per_page": 100, **(params or {})}
        while url:
            response = self.request(url, params=params)
            try:
                items = response.json()
            except ValueError as exc:
                raise GitHubError(f"GET {url} returned invalid JSON") from exc
            if not isinstance(items, list):
                raise GitHubError(f"GET {url} did not return a list")
            yield from items
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            params = None

    def list_commits(self, repository: str, path: str) -> Iterator[dict]:
        return self.paginate(f"/repos/{repository}/commits", {"path": path})

    def get_raw_content(self, repository: str, path: str, ref: str) -> str:
        url = f"{self.api_url}/repos/{repository}/contents/{path}"
        return self.request(url, params={"ref": ref}, accept=RAW_MEDIA_TYPE).text


def fetch_text(url: str, session: Optional[requests.Session] = None) -> str:
    if session is None:
        with requests.Session() as own_session:
            return fetch_text(url, own_session)
    try:
        response = session.get(url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as exc:
        raise GitHubError(f"GET {url} failed: {exc}") from exc
    if not 200 <= response.status_code < 300:
        raise GitHubError(f"GET {url} returned HTTP {response.status_code}")
    return response.text

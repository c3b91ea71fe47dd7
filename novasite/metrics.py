from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass
from typing import Iterator

from .github import GitHubClient, GitHubError

RESULTS = ("pass", "skip", "timeout", "unresolved", "fail", "crash")


@dataclass(frozen=True)
class Metrics:
    results: dict[str, int]
    total: int

    def percent(self, result: str) -> float:
        if not self.total:
            return 0.0
        return self.results.get(result, 0) / self.total * 100


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str
    date: dt.datetime
    metrics: Metrics


def parse_metrics(text: str, source: str) -> Metrics:
    try:
        data = json.loads(text)
        results = {name: int(data["results"].get(name, 0)) for name in RESULTS}
        total = int(data["total"])
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise GitHubError(f"Invalid metrics document at {source}: {exc}") from exc
    return Metrics(results, total)


def parse_timestamp(value: str) -> dt.datetime:
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(dt.timezone.utc)


def fetch_metrics(client: GitHubClient, repository: str, path: str) -> Iterator[Commit]:
    """Yield the metrics document of every commit that touched ``path``."""
    for item in client.list_commits(repository, path):
        sha = item["sha"]
        info = item.get("commit") or {}
        author = info.get("author") or info.get("committer") or {}
        if not author.get("date"):
            raise GitHubError(f"Commit {sha} has no date")
        text = client.get_raw_content(repository, path, sha)
        yield Commit(
            sha=sha,
            message=info.get("message", ""),
            date=parse_timestamp(author["date"]),
            metrics=parse_metrics(text, f"{repository}@{sha}:{path}"),
        )


def history(commits: Iterator[Commit]) -> list[Commit]:
    """Order commits oldest first; a lone commit is doubled so it charts as a line."""
    ordered = sorted(commits, key=lambda commit: commit.date)
    if len(ordered) == 1:
        ordered.append(ordered[0])
    return ordered

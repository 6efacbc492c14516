"""HTTP client for the search API and the console used by the commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator, Mapping
from typing import Any, TextIO
from urllib.parse import quote, urlencode

import requests

DEFAULT_TIMEOUT = 30.0
BROWSE_PAGE_SIZE = 1000

_GREEN = "\x1b[0;32m"
_RED = "\x1b[0;31m"
_RESET = "\x1b[0m"


class AlgoliaError(Exception):
    """An error reported by the search API or raised while talking to it."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class Console:
    """Input and output streams of a command, with prompting helpers."""

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        *,
        stdin_tty: bool | None = None,
        stdout_tty: bool | None = None,
        color: bool = False,
    ) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.stdin_tty = self.stdin.isatty() if stdin_tty is None else stdin_tty
        self.stdout_tty = self.stdout.isatty() if stdout_tty is None else stdout_tty
        self.color = color

    @property
    def can_prompt(self) -> bool:
        return self.stdin_tty and self.stdout_tty

    def _read_line(self) -> str:
        line = self.stdin.readline()
        if not line:
            raise EOFError("no input available")
        return line.rstrip("\r\n")

    def confirm(self, message: str) -> bool:
        """Ask a yes/no question; anything but yes means no."""
        self.stderr.write(f"? {message} (y/N) ")
        self.stderr.flush()
        return self._read_line().strip().lower() in ("y", "yes")

    def ask(self, message: str, default: str = "") -> str:
        """Ask for a line of text, returning ``default`` on an empty answer."""
        hint = f"({default}) " if default else ""
        self.stderr.write(f"? {message} {hint}")
        self.stderr.flush()
        answer = self._read_line().strip()
        return answer or default

    def success_icon(self) -> str:
        return f"{_GREEN}✓{_RESET}" if self.color else "✓"

    def failure_icon(self) -> str:
        return f"{_RED}X{_RESET}" if self.color else "X"

    def write(self, text: str) -> None:
        self.stdout.write(text)


def _query(**params: bool | None) -> dict[str, str]:
    """Encode the boolean options that are set as query-string values."""
    return {
        key: ("true" if value else "false")
        for key, value in params.items()
        if value is not None
    }


def _payload(item: Any) -> dict[str, Any]:
    to_dict = getattr(item, "to_dict", None)
    return to_dict() if callable(to_dict) else dict(item)


def _encode_param(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, separators=(",", ":"))


class SearchClient:
    """Client for one application of the search API."""

    def __init__(
        self,
        app_id: str,
        api_key: str,
        *,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.app_id = app_id
        self.base_url = (base_url or f"https://{app_id}.algolia.net").rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._headers = {
            "X-Algolia-Application-Id": app_id,
            "X-Algolia-API-Key": api_key,
            "Content-Type": "application/json",
        }

    def init_index(self, name: str) -> Index:
        return Index(self, name)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON response."""
        try:
            response = self._session.request(
                method,
                self.base_url + path,
                params=params,
                json=body,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AlgoliaError(str(exc)) from exc
        if not response.ok:
            message = response.text
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict) and data.get("message"):
                message = data["message"]
            raise AlgoliaError(message, response.status_code)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise AlgoliaError(f"invalid JSON response: {exc}", response.status_code) from exc


class Index:
    """One index of an application."""

    def __init__(self, client: SearchClient, name: str) -> None:
        self.client = client
        self.name = name

    def _path(self, *parts: str) -> str:
        segments = [quote(self.name, safe="")] + [quote(part, safe="") for part in parts]
        return "/1/indexes/" + "/".join(segments)

    def search(self, query: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        pairs = [("query", query)]
        pairs.extend((key, _encode_param(value)) for key, value in (params or {}).items())
        return self.client.request("POST", self._path("query"), body={"params": urlencode(pairs)})

    def _browse(self, kind: str) -> Iterator[dict[str, Any]]:
        page = 0
        while True:
            result = self.client.request(
                "POST",
                self._path(kind, "search"),
                body={"query": "", "page": page, "hitsPerPage": BROWSE_PAGE_SIZE},
            )
            yield from result.get("hits") or []
            page += 1
            if page >= (result.get("nbPages") or 0):
                return

    def browse_rules(self) -> Iterator[dict[str, Any]]:
        return self._browse("rules")

    def browse_synonyms(self) -> Iterator[dict[str, Any]]:
        return self._browse("synonyms")

    def get_rule(self, rule_id: str) -> dict[str, Any]:
        return self.client.request("GET", self._path("rules", rule_id))

    def delete_rule(self, rule_id: str, forward_to_replicas: bool | None = None) -> dict[str, Any]:
        return self.client.request(
            "DELETE",
            self._path("rules", rule_id),
            params=_query(forwardToReplicas=forward_to_replicas),
        )

    def save_rules(
        self,
        rules: list[Any],
        forward_to_replicas: bool | None = None,
        clear_existing_rules: bool | None = None,
    ) -> dict[str, Any]:
        return self.client.request(
            "POST",
            self._path("rules", "batch"),
            params=_query(
                forwardToReplicas=forward_to_replicas,
                clearExistingRules=clear_existing_rules,
            ),
            body=[_payload(rule) for rule in rules],
        )

    def clear_rules(self) -> dict[str, Any]:
        return self.client.request("POST", self._path("rules", "clear"))

    def get_synonym(self, synonym_id: str) -> dict[str, Any]:
        return self.client.request("GET", self._path("synonyms", synonym_id))

    def delete_synonym(
        self, synonym_id: str, forward_to_replicas: bool | None = None
    ) -> dict[str, Any]:
        return self.client.request(
            "DELETE",
            self._path("synonyms", synonym_id),
            params=_query(forwardToReplicas=forward_to_replicas),
        )

    def save_synonym(self, synonym: Any, forward_to_replicas: bool | None = None) -> dict[str, Any]:
        payload = _payload(synonym)
        return self.client.request(
            "PUT",
            self._path("synonyms", str(payload.get("objectID", ""))),
            params=_query(forwardToReplicas=forward_to_replicas),
            body=payload,
        )

    def save_synonyms(
        self,
        synonyms: list[Any],
        forward_to_replicas: bool | None = None,
        replace_existing_synonyms: bool | None = None,
    ) -> dict[str, Any]:
        return self.client.request(
            "POST",
            self._path("synonyms", "batch"),
            params=_query(
                forwardToReplicas=forward_to_replicas,
                replaceExistingSynonyms=replace_existing_synonyms,
            ),
            body=[_payload(synonym) for synonym in synonyms],
        )

    def clear_synonyms(self) -> dict[str, Any]:
        return self.client.request("POST", self._path("synonyms", "clear"))

    def get_settings(self) -> dict[str, Any]:
        return self.client.request("GET", self._path("settings"), params={"getVersion": "2"})

    def set_settings(
        self, settings: Mapping[str, Any], forward_to_replicas: bool | None = None
    ) -> dict[str, Any]:
        return self.client.request(
            "PUT",
            self._path("settings"),
            params=_query(forwardToReplicas=forward_to_replicas),
            body=dict(settings),
        )


def print_json(console: Console, value: Any) -> None:
    console.write(json.dumps(value, separators=(",", ":"), ensure_ascii=False) + "\n")


def run_search(
    client: SearchClient,
    index_name: str,
    params: Mapping[str, Any],
    console: Console,
) -> dict[str, Any]:
    """Search an index, print the response as JSON and return it."""
    extra = dict(params)
    query = extra.get("query")
    if isinstance(query, str):
        del extra["query"]
    else:
        query = ""
    result = client.init_index(index_name).search(query, extra)
    print_json(console, result)
    return result
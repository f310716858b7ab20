"""
Backend-agnostic response object returned by every session backend.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any


class BaseResponse:
    """A lightweight HTTP response decoupled from any specific backend.

    Header names are stored lower-cased; when a header repeats, the first
    value is kept.

    Args:
        content: Raw response body as bytes.
        headers: Optional header mapping or sequence of header pairs.
        status: HTTP status code.
        encoding: Text encoding used when decoding the body.
        url: Final request URL, after redirects.
    """

    __slots__ = ("content", "headers", "status", "encoding", "url")

    def __init__(
        self,
        *,
        content: bytes,
        headers: Mapping[str, str] | Sequence[tuple[str, str]] | None = None,
        status: int = 200,
        encoding: str = "utf-8",
        url: str = "",
    ) -> None:
        self.content = content
        self.headers = self._fold_headers(headers)
        self.status = status
        self.encoding = encoding
        self.url = url

    @property
    def text(self) -> str:
        """Returns the decoded body, replacing undecodable bytes."""
        try:
            return self.content.decode(self.encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parses the body as JSON.

        Returns:
            Any: The parsed JSON value.

        Raises:
            json.JSONDecodeError: If the content is not valid JSON.
        """
        return json.loads(self.text)

    @property
    def ok(self) -> bool:
        """Whether the status code is in the 2xx range."""
        return 200 <= self.status < 300

    @staticmethod
    def _fold_headers(
        headers: Mapping[str, str] | Sequence[tuple[str, str]] | None,
    ) -> dict[str, str]:
        if not headers:
            return {}
        items = headers.items() if isinstance(headers, Mapping) else headers
        folded: dict[str, str] = {}
        for key, value in items:
            folded.setdefault(key.lower(), value or "")
        return folded

    def __repr__(self) -> str:
        return f"<BaseResponse status={self.status} len={len(self.content)}>"

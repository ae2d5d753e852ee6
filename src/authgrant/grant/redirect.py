"""Parsed view of the callback URL an identity provider redirects to."""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlsplit


def _parse_pairs(component: str) -> dict[str, str]:
    # dict() keeps the last occurrence of a repeated key.
    return dict(parse_qsl(component, keep_blank_values=True))


@dataclass(frozen=True)
class RedirectComponents:
    """Query and fragment key/value pairs of a callback URL.

    Each source is a plain string-to-string mapping; when a key repeats within
    one source the last occurrence wins.

    Example::

        components = RedirectComponents.from_url(
            "myapp://callback?code=abc&state=xyz#error=none"
        )
        assert components.query_values == {"code": "abc", "state": "xyz"}
    """

    query_values: dict[str, str] = field(default_factory=dict)
    fragment_values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str) -> RedirectComponents:
        """Split *url* into its query and fragment parameters."""
        parts = urlsplit(url)
        return cls(
            query_values=_parse_pairs(parts.query),
            fragment_values=_parse_pairs(parts.fragment),
        )

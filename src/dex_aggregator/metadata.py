"""Token metadata lookup.

Analytics resolves a token's symbol once, on the token's first price update.
The lookup is optional: a missing source, an unknown token or a failed HTTP
call all resolve to None and the caller substitutes its placeholder symbol.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional

import requests

logger = logging.getLogger(__name__)


class TokenMetadataSource(ABC):
    @abstractmethod
    def symbol(self, token: str) -> Optional[str]:
        """Symbol for `token`, or None when unavailable."""


class StaticTokenMetadata(TokenMetadataSource):
    """Fixed token -> symbol table."""

    def __init__(self, symbols: Optional[Mapping[str, str]] = None) -> None:
        self._symbols: Dict[str, str] = dict(symbols or {})

    def set_symbol(self, token: str, symbol: str) -> None:
        self._symbols[token] = symbol

    def symbol(self, token: str) -> Optional[str]:
        return self._symbols.get(token)


class HttpTokenMetadata(TokenMetadataSource):
    """Symbol lookup against a JSON endpoint.

    `url_template` is formatted with the token id, e.g.
    ``"https://tokens.example/api/{token}"``; the response body must be a JSON
    object with a string ``symbol`` field. Successful answers are cached.
    """

    def __init__(
        self,
        url_template: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
    ) -> None:
        if "{token}" not in url_template:
            raise ValueError("url_template must contain '{token}'")
        self.url_template = url_template
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def symbol(self, token: str) -> Optional[str]:
        with self._lock:
            cached = self._cache.get(token)
        if cached is not None:
            return cached

        url = self.url_template.format(token=token)
        try:
            r = self._session.get(url, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("symbol lookup for %s failed: %s", token, e)
            return None

        sym = body.get("symbol") if isinstance(body, dict) else None
        if not isinstance(sym, str) or not sym:
            logger.warning("symbol lookup for %s returned no symbol", token)
            return None
        with self._lock:
            self._cache[token] = sym
        return sym

    def close(self) -> None:
        self._session.close()


__all__ = ["TokenMetadataSource", "StaticTokenMetadata", "HttpTokenMetadata"]

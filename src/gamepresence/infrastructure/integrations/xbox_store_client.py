"""Microsoft Store autosuggest client - find the store entry for a game title."""

import logging
from dataclasses import dataclass
from typing import Any, cast

import httpx
from rapidfuzz.distance import Levenshtein

from gamepresence.config.settings import XboxSettings
from gamepresence.domain.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSuggestion:
    """One autosuggest hit.

    The store hands out protocol-relative URLs ("//store-images...") and images
    with resize params; the properties below clean that up.
    """

    source: str
    title: str
    url: str
    raw_image_url: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StoreSuggestion":
        return cls(
            source=payload.get("Source", ""),
            title=payload.get("Title", ""),
            url=payload.get("Url", ""),
            raw_image_url=payload.get("ImageUrl", ""),
        )

    @property
    def image_url(self) -> str:
        return f"https:{self.raw_image_url.split('?', 1)[0]}"

    @property
    def store_url(self) -> str:
        return f"https:{self.url}"

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "source": self.source,
            "imageUrl": self.image_url,
            "storeUrl": self.store_url,
        }


def best_match(query: str, suggestions: list[StoreSuggestion]) -> StoreSuggestion | None:
    """Closest game title by edit distance; ties keep store order."""
    games = [s for s in suggestions if s.source == "Game"]
    if not games:
        return None
    return min(games, key=lambda s: Levenshtein.distance(query, s.title))


class XboxStoreClient:
    """HTTP client for the Microsoft Store autosuggest endpoint."""

    def __init__(self, settings: XboxSettings) -> None:
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.http_timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def autosuggest(self, query: str) -> StoreSuggestion | None:
        """Look up the best matching game for a title.

        Raises:
            ExternalServiceError: If the store request fails
        """
        client = await self._get_client()
        try:
            response = await client.get(
                self.settings.autosuggest_url,
                params={
                    "market": "en-us",
                    "sources": "DCatAll-Products",
                    "query": query,
                },
            )
            response.raise_for_status()
            payload = cast(dict[str, Any], response.json())
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Store autosuggest error: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceError(f"Store autosuggest failed: {e}") from e

        suggestions = [
            StoreSuggestion.from_payload(suggest)
            for result_set in payload.get("ResultSets") or []
            for suggest in result_set.get("Suggests") or []
        ]
        match = best_match(query, suggestions)
        logger.debug(
            f"Autosuggest '{query}': {len(suggestions)} suggestions, "
            f"best={match.title if match else None}"
        )
        return match

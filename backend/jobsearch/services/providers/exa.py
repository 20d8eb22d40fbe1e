import httpx
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from jobsearch.errors import RateLimitError, RetrievalError
from jobsearch.middleware.metrics import record_provider_call, record_provider_error
from jobsearch.services.providers.base import RawDocument, SearchProvider

logger = logging.getLogger(__name__)


def _parse_published_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _format_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%Y-%m-%dT%H:%M:%S.000Z")


class ExaSearchProvider(SearchProvider):
    """
    Exa semantic search over job boards.

    Wraps the /search and /findSimilar REST endpoints, always asking for
    page text inline so postings can be validated without a second fetch.
    The underlying httpx client is created once and shared by every call.
    """

    source = "exa"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.exa.ai",
        timeout: float = 30.0,
        max_characters: int = 5000,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.max_characters = max_characters
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _contents(self) -> Dict[str, Any]:
        return {"text": {"maxCharacters": self.max_characters, "includeHtmlTags": False}}

    async def search(
        self,
        query: str,
        num_results: int,
        search_type: str = "neural",
        include_domains: Sequence[str] = (),
        start_published_date: Optional[datetime] = None,
        end_published_date: Optional[datetime] = None,
        include_text: Sequence[str] = (),
        exclude_text: Sequence[str] = (),
    ) -> List[RawDocument]:
        payload: Dict[str, Any] = {
            "query": query,
            "type": search_type,
            "numResults": num_results,
            "contents": self._contents(),
        }
        if include_domains:
            payload["includeDomains"] = list(include_domains)
        if start_published_date:
            payload["startPublishedDate"] = _format_date(start_published_date)
        if end_published_date:
            payload["endPublishedDate"] = _format_date(end_published_date)
        if include_text:
            payload["includeText"] = list(include_text)
        if exclude_text:
            payload["excludeText"] = list(exclude_text)

        return await self._post("/search", payload, operation="search")

    async def find_similar(
        self,
        url: str,
        num_results: int,
        include_domains: Sequence[str] = (),
        exclude_text: Sequence[str] = (),
    ) -> List[RawDocument]:
        payload: Dict[str, Any] = {
            "url": url,
            "numResults": num_results,
            "excludeSourceDomain": True,
            "contents": self._contents(),
        }
        if include_domains:
            payload["includeDomains"] = list(include_domains)
        if exclude_text:
            payload["excludeText"] = list(exclude_text)

        return await self._post("/findSimilar", payload, operation="find_similar")

    async def _post(self, path: str, payload: Dict[str, Any], operation: str) -> List[RawDocument]:
        start_time = time.perf_counter()
        try:
            response = await self.client.post(
                path,
                json=payload,
                headers={"x-api-key": self.api_key},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            record_provider_error(self.source, operation)
            if e.response.status_code == 429:
                raise RateLimitError(f"Exa rate limit exceeded on {path}") from e
            raise RetrievalError(
                f"Exa API error on {path}: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            record_provider_error(self.source, operation)
            raise RetrievalError(f"Exa request to {path} failed: {e}") from e
        finally:
            record_provider_call(self.source, operation, time.perf_counter() - start_time)

        documents = []
        for result in data.get("results", []):
            document = self._parse_result(result)
            if document:
                documents.append(document)
        return documents

    def _parse_result(self, data: dict) -> Optional[RawDocument]:
        url = data.get("url")
        if not url:
            logger.debug("Skipping Exa result without URL")
            return None
        return RawDocument(
            url=url,
            title=data.get("title") or "",
            text=data.get("text") or "",
            published_date=_parse_published_date(data.get("publishedDate")),
        )

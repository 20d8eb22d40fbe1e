from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, Sequence


@dataclass
class RawDocument:
    """A page returned by the search provider, before validation."""

    url: str
    title: str = ""
    text: str = ""
    published_date: Optional[datetime] = None


class SearchProvider(ABC):
    """Base class for search providers"""

    source: str = "unknown"

    @abstractmethod
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
        """Run one query against the provider, returning pages with text"""
        pass

    @abstractmethod
    async def find_similar(
        self,
        url: str,
        num_results: int,
        include_domains: Sequence[str] = (),
        exclude_text: Sequence[str] = (),
    ) -> List[RawDocument]:
        """Return pages similar to the given URL, excluding its own domain"""
        pass


class TextGenerator(Protocol):
    """Protocol for single-turn text generation."""

    async def generate_text(self, prompt: str, max_tokens: int) -> str:
        """Return the model's reply to the prompt."""
        ...

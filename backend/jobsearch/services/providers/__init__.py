from jobsearch.services.providers.base import (
    RawDocument,
    SearchProvider,
    TextGenerator,
)
from jobsearch.services.providers.exa import ExaSearchProvider
from jobsearch.services.providers.openai_generator import OpenAITextGenerator

__all__ = [
    "RawDocument",
    "SearchProvider",
    "TextGenerator",
    "ExaSearchProvider",
    "OpenAITextGenerator",
]

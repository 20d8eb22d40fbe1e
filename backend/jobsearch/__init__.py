"""Job search service: Exa retrieval, OpenAI enrichment, FastAPI API."""

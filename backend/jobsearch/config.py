from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/jobs.db"
    exa_api_key: str = ""
    openai_api_key: str = ""
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Exa search provider
    exa_base_url: str = "https://api.exa.ai"
    exa_max_characters: int = 5000

    # OpenAI text generation
    openai_model: str = "gpt-4o-mini"
    provider_timeout_seconds: float = 30.0

    # Query builder
    search_recency_days: int = 30
    max_technology_terms: int = 3

    # Posting validator
    validator_min_signals: int = 3
    validator_min_content_length: int = 200
    validator_substantial_content_length: int = 500

    # Field extraction: "heuristic" or "generative"
    extraction_mode: str = "generative"
    extraction_input_chars: int = 4000
    extraction_max_tokens: int = 150

    # Scoring
    generative_scoring: bool = True
    scoring_max_tokens: int = 10

    # Pipeline
    batch_size: int = 5
    default_num_results: int = 20
    similar_min_score: int = 8
    similar_seed_jobs: int = 3
    similar_per_seed: int = 3

    class Config:
        env_file = ".env"

    def missing_credentials(self) -> List[str]:
        """Names of the required environment variables that are unset."""
        missing = []
        if not self.exa_api_key:
            missing.append("EXA_API_KEY")
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.database_url:
            missing.append("DATABASE_URL")
        return missing


@lru_cache
def get_settings() -> Settings:
    return Settings()

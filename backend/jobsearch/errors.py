"""
Error taxonomy for the job search service.

Each error carries the HTTP status and the user-facing tip the API returns
when it escapes a request handler:

    ConfigurationError  - missing credentials / connection string (500)
    RetrievalError      - search provider failed for every strategy (500)
    RateLimitError      - upstream provider throttled us (429)
    PersistenceError    - database write failed (500 for the search row;
                          job rows recover with an unsaved representation)
    ExtractionError     - one field could not be extracted (recovered locally)
    ScoringError        - generative score unusable (recovered locally)
"""


class JobSearchError(Exception):
    """Base class for service errors."""

    status_code = 500
    title = "Search Failed"
    tip = "Try a simpler search query or contact support if the issue persists"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ConfigurationError(JobSearchError):
    title = "API Configuration Error"
    tip = "Ensure EXA_API_KEY, OPENAI_API_KEY and DATABASE_URL are properly set"


class RetrievalError(JobSearchError):
    title = "Failed to search jobs"
    tip = "Try a more specific search query or check your API keys"


class RateLimitError(RetrievalError):
    status_code = 429
    title = "Rate Limit Exceeded"
    tip = "Try searching with fewer results or wait 60 seconds"


class PersistenceError(JobSearchError):
    title = "Failed to save search"
    tip = "Please check your database connection"


class ExtractionError(JobSearchError):
    title = "Extraction failed"


class ScoringError(JobSearchError):
    title = "Scoring failed"

"""
Field Extractor - structured fields from job posting text

Two strategies share one interface:

- heuristic: regex and keyword matching over the page text and URL; no
  network calls, used when cost matters or no generator is configured
- generative: one text-generation call per field with a fixed instruction,
  temperature 0, input truncated to a bounded prefix

All fields of one posting are extracted concurrently. A field that fails
(provider error, timeout, empty reply) falls back to its sentinel value and
never fails the posting.

Usage:
    extractor = FieldExtractor(text_generator=generator, mode="generative")
    fields = await extractor.extract_all(document, preferences)
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from jobsearch.errors import ExtractionError
from jobsearch.schemas import Preferences
from jobsearch.services.providers.base import RawDocument, TextGenerator

logger = logging.getLogger(__name__)

NOT_SPECIFIED = "Not specified"

FIELDS = (
    "company",
    "location",
    "salary",
    "experienceLevel",
    "jobType",
    "skills",
    "applyMethod",
    "benefits",
    "remotePolicy",
)

FIELD_FALLBACKS = {
    "company": "",
    "location": "",
    "salary": NOT_SPECIFIED,
    "experienceLevel": NOT_SPECIFIED,
    "jobType": NOT_SPECIFIED,
    "skills": "",
    "applyMethod": NOT_SPECIFIED,
    "benefits": "",
    "remotePolicy": NOT_SPECIFIED,
}

FIELD_PROMPTS = {
    "company": "Extract the hiring company name from this job posting. Return ONLY the company name, nothing else.",
    "location": 'Extract the job location. Return ONLY the location (city, state/country) OR "Remote" OR "Hybrid", nothing else.',
    "salary": 'Extract the salary or compensation information. Return ONLY the range or amount, or "Not specified" if not mentioned.',
    "experienceLevel": 'Extract the required experience level. Return ONLY one of: "Entry-level", "Mid-level", "Senior", "Lead", or "Not specified".',
    "jobType": 'Extract the employment type. Return ONLY one of: "Full-time", "Part-time", "Contract", "Freelance", "Internship", or "Not specified".',
    "skills": "Extract the top 6 required skills or technologies. Return them as a comma-separated list, nothing else.",
    "applyMethod": 'How does a candidate apply? Return ONLY one of: "Online application", "Email", "Company website", or "Not specified".',
    "benefits": 'Extract the key benefits offered. Return the top 5 as a comma-separated list, or "None mentioned".',
    "remotePolicy": 'What is the remote work policy? Return ONLY one of: "Fully remote", "Hybrid", "On-site", or "Not specified".',
}

# Replies that mean the model found nothing
EMPTY_REPLIES = {"", "not specified", "none mentioned", "none", "n/a", "unknown"}

FIELD_LABEL = re.compile(
    r"^(?:company|location|salary|experience(?: level)?|job type|skills|"
    r"apply method|benefits|remote policy)\s*:\s*",
    re.IGNORECASE,
)

# Skill display name -> synonyms matched on word boundaries
SKILLS_TAXONOMY = {
    "Python": ["python", "python3"],
    "Java": ["java"],
    "JavaScript": ["javascript", "js", "es6"],
    "TypeScript": ["typescript"],
    "Go": ["golang"],
    "Rust": ["rust"],
    "C#": ["c#", ".net", "dotnet"],
    "React": ["react", "reactjs", "react.js", "next.js"],
    "Node.js": ["node.js", "nodejs"],
    "SQL": ["sql", "postgresql", "postgres", "mysql"],
    "AWS": ["aws", "amazon web services"],
    "GCP": ["gcp", "google cloud"],
    "Azure": ["azure"],
    "Docker": ["docker", "containers"],
    "Kubernetes": ["kubernetes", "k8s"],
    "Git": ["git"],
    "Agile": ["agile", "scrum"],
    "Machine Learning": ["machine learning", "ml"],
    "AI": ["ai", "artificial intelligence", "llm"],
    "DevOps": ["devops"],
    "CI/CD": ["ci/cd", "continuous integration"],
}

BENEFIT_KEYWORDS = {
    "Health insurance": ["health insurance", "medical", "dental"],
    "Equity": ["equity", "stock options", "rsu"],
    "Bonus": ["bonus"],
    "Paid time off": ["pto", "paid time off", "vacation"],
    "Retirement plan": ["401k", "401(k)", "retirement", "pension"],
    "Flexible hours": ["flexible hours", "flexible working"],
    "Learning budget": ["learning budget", "training", "professional development"],
}

LARGE_COMPANIES = [
    "google", "microsoft", "apple", "amazon", "meta", "netflix",
    "tesla", "uber", "airbnb", "spotify", "salesforce",
]

# "no remote work", "remote is not available"
NO_REMOTE = re.compile(
    r"\b(?:no|not|non)[- ](?:a |open to )?(?:fully remote|remote|work from home)\b"
    r"|\bremote (?:work )?(?:is )?not (?:available|possible|offered)\b",
    re.IGNORECASE,
)

LOCATION_PATTERNS = [
    re.compile(r"location:\s*([^,\n]+(?:,\s*[A-Z]{2})?)", re.IGNORECASE),
    re.compile(r"based in\s+([^,\n.]+)", re.IGNORECASE),
    re.compile(r"office:\s*([^,\n]+)", re.IGNORECASE),
    re.compile(r"located in\s+([^,\n.]+)", re.IGNORECASE),
]

SALARY_PATTERNS = [
    re.compile(r"[$£€]\s?\d+(?:,\d{3})*(?:\.\d+)?\s*[kK]?(?:\s*(?:-|–|to)\s*[$£€]?\s?\d+(?:,\d{3})*(?:\.\d+)?\s*[kK]?)?"),
    re.compile(r"(?:USD|GBP|EUR)\s*\d+(?:,\d{3})*(?:\s*(?:-|–|to)\s*\d+(?:,\d{3})*)?", re.IGNORECASE),
    re.compile(r"salary:?\s*\d+(?:,\d{3})*(?:\s*(?:-|–|to)\s*\d+(?:,\d{3})*)?", re.IGNORECASE),
]


@dataclass
class ExtractedFields:
    company: str = ""
    location: str = ""
    salary: str = NOT_SPECIFIED
    experience_level: str = NOT_SPECIFIED
    job_type: str = NOT_SPECIFIED
    skills: str = ""
    apply_method: str = NOT_SPECIFIED
    benefits: List[str] = field(default_factory=list)
    remote_policy: str = NOT_SPECIFIED
    company_size: str = "Unknown"


# ==================== Heuristic extraction ====================

def _contains_term(text: str, term: str) -> bool:
    pattern = r"(?<![\w.#])" + re.escape(term) + r"(?![\w#])"
    return re.search(pattern, text) is not None


def extract_company(document: RawDocument) -> str:
    url = (document.url or "").lower()
    title = document.title or ""

    match = re.search(r"(?:boards|job-boards)\.greenhouse\.io/([^/?#]+)", url)
    if match:
        return match.group(1).replace("-", " ").title()

    match = re.search(r"jobs\.lever\.co/([^/?#]+)", url)
    if match:
        return match.group(1).replace("-", " ").title()

    match = re.search(r"jobs\.ashbyhq\.com/([^/?#]+)", url)
    if match:
        return match.group(1).replace("-", " ").title()

    match = re.search(r"\bat\s+(.+?)(?:\s*[-–|]|$)", title, re.IGNORECASE)
    if match:
        return match.group(1).strip()

    return ""


def offers_remote(text: str) -> bool:
    lowered = NO_REMOTE.sub("", text.lower())
    return "remote" in lowered or "work from home" in lowered


def extract_location(text: str, preferences: Optional[Preferences] = None) -> str:
    lowered = text.lower()
    if offers_remote(text):
        return "Remote"

    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()

    if preferences and preferences.location and preferences.location.lower() in lowered:
        return preferences.location.strip()
    return ""


def extract_salary(text: str) -> str:
    for pattern in SALARY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return NOT_SPECIFIED


def extract_skills(text: str, limit: int = 6) -> str:
    section = re.search(r"(?:skills|requirements|qualifications)[\s\S]{0,800}", text, re.IGNORECASE)
    haystack = (section.group(0) if section else text).lower()

    found = [
        skill for skill, synonyms in SKILLS_TAXONOMY.items()
        if any(_contains_term(haystack, synonym) for synonym in synonyms)
    ]
    return ", ".join(found[:limit])


def extract_experience_level(text: str) -> str:
    lowered = text.lower()
    if re.search(r"\b(lead|principal|staff)\b", lowered):
        return "Lead"
    if re.search(r"\bsenior\b|\bsr\.?\s", lowered):
        return "Senior"
    if re.search(r"\b(entry[- ]level|junior|graduate)\b", lowered):
        return "Entry-level"
    if re.search(r"\bmid[- ]level\b", lowered):
        return "Mid-level"
    return NOT_SPECIFIED


def extract_job_type(text: str) -> str:
    lowered = text.lower()
    for label, terms in (
        ("Internship", ["internship"]),
        ("Part-time", ["part-time", "part time"]),
        ("Full-time", ["full-time", "full time", "permanent"]),
        ("Contract", ["contract role", "contract position", "contractor", "fixed-term"]),
        ("Freelance", ["freelance"]),
    ):
        if any(term in lowered for term in terms):
            return label
    return NOT_SPECIFIED


def extract_apply_method(text: str) -> str:
    lowered = text.lower()
    if re.search(r"(?:email|send)\s+(?:your\s+)?(?:cv|resume)", lowered) or re.search(r"[\w.+-]+@[\w-]+\.[\w.]+", lowered):
        return "Email"
    if "apply now" in lowered or "apply online" in lowered or "submit your application" in lowered:
        return "Online application"
    if "careers page" in lowered or "our website" in lowered:
        return "Company website"
    return NOT_SPECIFIED


def extract_benefits(text: str, limit: int = 5) -> str:
    lowered = text.lower()
    found = [
        benefit for benefit, terms in BENEFIT_KEYWORDS.items()
        if any(term in lowered for term in terms)
    ]
    return ", ".join(found[:limit])


def extract_remote_policy(text: str) -> str:
    lowered = NO_REMOTE.sub("", text.lower())
    if "fully remote" in lowered or "100% remote" in lowered or "remote-first" in lowered:
        return "Fully remote"
    if "hybrid" in lowered:
        return "Hybrid"
    if "on-site" in lowered or "onsite" in lowered or "in-office" in lowered:
        return "On-site"
    if "remote" in lowered or "work from home" in lowered:
        return "Fully remote"
    return NOT_SPECIFIED


def infer_company_size(company: str, text: str) -> str:
    company_lower = (company or "").lower()
    lowered = text.lower()

    if any(name in company_lower for name in LARGE_COMPANIES):
        return "Large"
    if "startup" in lowered or "early stage" in lowered or "early-stage" in lowered:
        return "Startup"
    if "fortune 500" in lowered or "enterprise" in lowered:
        return "Large"
    return "Unknown"


HEURISTICS: Dict[str, Callable[[RawDocument, Optional[Preferences]], str]] = {
    "company": lambda doc, prefs: extract_company(doc),
    "location": lambda doc, prefs: extract_location(doc.text, prefs),
    "salary": lambda doc, prefs: extract_salary(doc.text),
    "experienceLevel": lambda doc, prefs: extract_experience_level(f"{doc.title}\n{doc.text}"),
    "jobType": lambda doc, prefs: extract_job_type(doc.text),
    "skills": lambda doc, prefs: extract_skills(doc.text),
    "applyMethod": lambda doc, prefs: extract_apply_method(doc.text),
    "benefits": lambda doc, prefs: extract_benefits(doc.text),
    "remotePolicy": lambda doc, prefs: extract_remote_policy(doc.text),
}


def build_field_prompt(content: str, field_name: str, input_chars: int = 4000) -> str:
    instruction = FIELD_PROMPTS.get(field_name)
    if not instruction:
        raise ExtractionError(f"Unknown field: {field_name}")
    return f"{instruction}\n\nJob posting excerpt:\n{content[:input_chars]}"


def _clean_reply(reply: str) -> str:
    lines = [line.strip() for line in (reply or "").splitlines() if line.strip()]
    if not lines:
        return ""
    first = lines[0].strip('"').strip()
    # Models sometimes echo the field label
    return FIELD_LABEL.sub("", first).strip()


class FieldExtractor:
    """
    Extracts every posting field with the configured strategy.

    Attributes:
        text_generator: TextGenerator used in generative mode
        mode: "generative" or "heuristic"; generative without a generator
            behaves as heuristic
        input_chars: Prefix of the posting sent to the generator
        max_tokens: Reply budget per field
    """

    def __init__(
        self,
        text_generator: Optional[TextGenerator] = None,
        mode: str = "generative",
        input_chars: int = 4000,
        max_tokens: int = 150,
    ):
        self.text_generator = text_generator
        self.mode = mode
        self.input_chars = input_chars
        self.max_tokens = max_tokens

    @property
    def generative(self) -> bool:
        return self.mode == "generative" and self.text_generator is not None

    async def _generate_field(self, document: RawDocument, field_name: str) -> str:
        prompt = build_field_prompt(document.text, field_name, self.input_chars)
        try:
            reply = await self.text_generator.generate_text(prompt, self.max_tokens)
        except Exception as e:
            raise ExtractionError(f"Generating {field_name} failed: {e}") from e
        return _clean_reply(reply)

    async def extract_field(
        self,
        document: RawDocument,
        field_name: str,
        preferences: Optional[Preferences] = None,
    ) -> str:
        """
        Extract one field, returning its fallback value on any failure.
        """
        fallback = FIELD_FALLBACKS.get(field_name, "")
        try:
            if self.generative:
                value = await self._generate_field(document, field_name)
            else:
                value = HEURISTICS[field_name](document, preferences)
        except (ExtractionError, KeyError) as e:
            logger.warning(f"Extracting {field_name} from {document.url} failed: {e}")
            return fallback
        except Exception as e:
            logger.error(f"Unexpected error extracting {field_name} from {document.url}: {e}")
            return fallback

        if value.strip().lower() in EMPTY_REPLIES:
            return fallback
        return value

    async def extract_all(
        self,
        document: RawDocument,
        preferences: Optional[Preferences] = None,
    ) -> ExtractedFields:
        """Extract all fields concurrently; completes only when every field has."""
        values = await asyncio.gather(
            *(self.extract_field(document, name, preferences) for name in FIELDS)
        )
        by_name = dict(zip(FIELDS, values))

        benefits = [b.strip() for b in by_name["benefits"].split(",") if b.strip()]
        return ExtractedFields(
            company=by_name["company"],
            location=by_name["location"],
            salary=by_name["salary"],
            experience_level=by_name["experienceLevel"],
            job_type=by_name["jobType"],
            skills=by_name["skills"],
            apply_method=by_name["applyMethod"],
            benefits=benefits,
            remote_policy=by_name["remotePolicy"],
            company_size=infer_company_size(by_name["company"], document.text),
        )

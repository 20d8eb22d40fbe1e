from typing import List, Sequence, TypeVar

T = TypeVar("T")


def normalize_url(url: str) -> str:
    return (url or "").strip().lower().rstrip("/")


def title_company_key(title: str, company: str) -> str:
    return f"{(title or '').strip().lower()}|{(company or '').strip().lower()}"


def deduplicate_jobs(jobs: Sequence[T]) -> List[T]:
    """
    Drop repeated postings, keeping the first occurrence.

    A job is a duplicate when its normalized URL or its (title, company)
    pair was already seen. Jobs need ``url``, ``title`` and ``company``
    attributes. Order of the survivors is preserved, so running it again on
    its own output returns the same list.
    """
    seen = set()
    unique: List[T] = []

    for job in jobs:
        url_key = f"url:{normalize_url(job.url)}"
        pair_key = f"pair:{title_company_key(job.title, job.company)}"

        if url_key in seen or pair_key in seen:
            continue

        seen.add(url_key)
        seen.add(pair_key)
        unique.append(job)

    return unique

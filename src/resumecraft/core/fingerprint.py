from __future__ import annotations

import hashlib


def request_fingerprint(resume_data_uri: str, job_description: str) -> str:
    """Cache key for a (resume, job description) pair.

    Equivalent to ``sha256(resume_data_uri + job_description)``; used only to
    deduplicate requests, so no salt is applied.
    """
    digest = hashlib.sha256()
    digest.update(resume_data_uri.encode("utf-8"))
    digest.update(job_description.encode("utf-8"))
    return digest.hexdigest()
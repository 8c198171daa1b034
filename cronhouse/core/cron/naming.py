"""
Execution identifiers for the task-execution service (e.g. "Nightly Backup" -> "cron-nightly-backup-<sha256 prefix>").

The service restricts identifier charset and length; both come from
IdentifierPolicy so they can follow whatever the configured service accepts.
"""
import hashlib
import re
import unicodedata
from dataclasses import dataclass


@dataclass(frozen=True)
class IdentifierPolicy:
    """Naming constraints of the task-execution service."""
    prefix: str = "cron"
    # Regex character-class body of characters allowed in the slug
    allowed_chars: str = "a-z0-9"
    separator: str = "-"
    max_length: int = 255
    hash_length: int = 8

    def __post_init__(self):
        if not 4 <= self.hash_length <= 64:
            raise ValueError("hash_length must be between 4 and 64")
        if self.max_length < self._fixed_length() + 1:
            raise ValueError(
                f"max_length {self.max_length} leaves no room for the job name "
                f"(prefix and hash need {self._fixed_length()})"
            )

    def _fixed_length(self) -> int:
        fixed = self.hash_length + len(self.separator)
        if self.prefix:
            fixed += len(self.prefix) + len(self.separator)
        return fixed


def slugify_name(name: str, policy: IdentifierPolicy) -> str:
    """Strip diacritics, lowercase, and collapse disallowed runs into the separator."""
    n = unicodedata.normalize("NFKD", name.strip())
    n = "".join(c for c in n if not unicodedata.combining(c)).lower()
    sep = policy.separator
    slug = re.sub(f"[^{policy.allowed_chars}]+", sep, n)
    return slug.strip(sep) or "job"


def execution_identifier(name: str, policy: IdentifierPolicy = IdentifierPolicy()) -> str:
    """
    Deterministic, namespaced identifier for a job name.

    The slug keeps identifiers readable; the SHA-256 suffix over the raw name
    keeps names that slug to the same text (e.g. "a b" and "a-b") apart.
    """
    if not name or not name.strip():
        raise ValueError("job name must be non-empty")
    digest = hashlib.sha256(name.encode("utf-8")).hexdigest()[: policy.hash_length]
    budget = policy.max_length - policy._fixed_length()
    slug = slugify_name(name, policy)[:budget].rstrip(policy.separator) or "job"
    parts = [policy.prefix, slug, digest] if policy.prefix else [slug, digest]
    return policy.separator.join(parts)

from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field
from sourcemind.errors import InvalidInput

LanguageBreakdown = Dict[str, int]


class RepositoryIdentifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @classmethod
    def parse(cls, value: str) -> "RepositoryIdentifier":
        """
        Parses an `owner/name` string. Exactly one separator, both parts non-empty.
        """
        parts = (value or "").strip().split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise InvalidInput("Please format as 'owner/repo'")
        return cls(owner=parts[0].strip(), name=parts[1].strip())

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class RepositoryOwner(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None


class RepositoryMetadata(BaseModel):
    """
    Snapshot of the GitHub repository record. Unknown upstream fields are dropped.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    description: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    language: Optional[str] = None
    html_url: str
    owner: RepositoryOwner
    updated_at: str
    languages: LanguageBreakdown = Field(default_factory=dict)

    def with_languages(self, languages: LanguageBreakdown) -> "RepositoryMetadata":
        return self.model_copy(update={"languages": dict(languages)})


def language_shares(languages: LanguageBreakdown) -> List[Tuple[str, float]]:
    """
    Returns (language, percent) pairs ordered by byte count, largest first.
    """
    total = sum(languages.values())
    if total <= 0:
        return []
    ordered = sorted(languages.items(), key=lambda item: item[1], reverse=True)
    return [(lang, count * 100.0 / total) for lang, count in ordered]

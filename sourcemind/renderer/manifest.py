from pydantic import BaseModel, Field
from sourcemind.models.analysis import AnalysisResult
from sourcemind.models.repository import LanguageBreakdown, RepositoryMetadata

class RenderManifest(BaseModel):
    metadata: RepositoryMetadata
    languages: LanguageBreakdown = Field(default_factory=dict)
    analysis: AnalysisResult
    theme: str = "dark"  # dark, light
    typography: str = "Inter"

def create_manifest(
    metadata: RepositoryMetadata,
    languages: LanguageBreakdown,
    analysis: AnalysisResult,
    theme: str = "dark"
) -> RenderManifest:
    """
    Wraps a finished analysis run with rendering preferences.
    """
    return RenderManifest(
        metadata=metadata,
        languages=languages,
        analysis=analysis,
        theme=theme,
    )

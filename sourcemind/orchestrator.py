import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional
from sourcemind.errors import MissingCredential, SourceMindError, UnexpectedError
from sourcemind.models.analysis import AnalysisResult
from sourcemind.models.repository import LanguageBreakdown, RepositoryIdentifier, RepositoryMetadata
from sourcemind.probes.github import GithubProbe
from sourcemind.refinery.engine import AnalysisEngine
from sourcemind.settings.credentials import CredentialStore

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred during analysis"


class LoadingState(str, Enum):
    IDLE = "IDLE"
    FETCHING_METADATA = "FETCHING_METADATA"
    ANALYZING_WITH_AI = "ANALYZING_WITH_AI"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


class RepoAnalysis:
    """
    Runs one repository through GitHub fetch -> Gemini analysis and tracks the state.

    On an AI failure the fetched metadata and languages stay available so a
    caller can still show them next to the error.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        engine: Optional[AnalysisEngine] = None,
        probe_factory: Optional[Callable[[str], GithubProbe]] = None,
    ):
        self.credentials = credentials
        self.engine = engine or AnalysisEngine()
        self.probe_factory = probe_factory or (lambda token: GithubProbe(token=token))
        self.listeners: List[Callable[["LoadingState"], None]] = []

        self.state = LoadingState.IDLE
        self.error: Optional[str] = None
        self.failure: Optional[SourceMindError] = None
        self.metadata: Optional[RepositoryMetadata] = None
        self.languages: Optional[LanguageBreakdown] = None
        self.analysis: Optional[AnalysisResult] = None

    def subscribe(self, listener: Callable[["LoadingState"], None]):
        self.listeners.append(listener)

    def _transition(self, state: LoadingState):
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state
        for listener in self.listeners:
            listener(state)

    def _fail(self, error: BaseException):
        if not isinstance(error, SourceMindError):
            logger.error("Unexpected failure during analysis", exc_info=error)
            error = UnexpectedError(f"{UNEXPECTED_ERROR} ({type(error).__name__}).")
        self.failure = error
        self.error = error.message
        self._transition(LoadingState.ERROR)

    def reset(self):
        self.error = None
        self.failure = None
        self.metadata = None
        self.languages = None
        self.analysis = None
        self._transition(LoadingState.IDLE)

    async def analyze(self, repo_input: str) -> LoadingState:
        """
        Raises MissingCredential or InvalidInput before touching any state.
        Every later failure ends in LoadingState.ERROR with `self.error` set.
        """
        if not self.credentials.has_usable_key():
            raise MissingCredential("A Google Gemini API Key is required.")
        target = RepositoryIdentifier.parse(repo_input)

        self.reset()
        self._transition(LoadingState.FETCHING_METADATA)

        probe = self.probe_factory(self.credentials.github_token)
        # return_exceptions keeps one failure channel per call; none cancels the others
        repo_outcome, langs_outcome, readme_outcome = await asyncio.gather(
            probe.fetch_repository(target.owner, target.name),
            probe.fetch_languages(target.owner, target.name),
            probe.fetch_readme(target.owner, target.name),
            return_exceptions=True,
        )
        for outcome in (repo_outcome, langs_outcome, readme_outcome):
            if isinstance(outcome, BaseException):
                self._fail(outcome)
                return self.state

        self.metadata = repo_outcome
        self.languages = langs_outcome

        self._transition(LoadingState.ANALYZING_WITH_AI)
        try:
            result = await self.engine.analyze(
                self.credentials.gemini_api_key,
                readme_outcome,
                repo_outcome.with_languages(langs_outcome),
            )
        except Exception as e:
            self._fail(e)
            return self.state

        self.analysis = result
        self._transition(LoadingState.COMPLETE)
        return self.state

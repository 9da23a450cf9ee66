import json
import logging
import os
from typing import List, Optional
from pydantic_ai import Agent, NativeOutput, capture_run_messages
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider
from dotenv import load_dotenv
from sourcemind.errors import AnalysisRequestFailed, EmptyResponse, MalformedResponse
from sourcemind.models.analysis import AnalysisResult
from sourcemind.models.repository import RepositoryMetadata

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.getenv("SOURCEMIND_MODEL") or "gemini-flash-latest"
README_CHAR_LIMIT = 25000

# --- Prompts ---

SYSTEM_PROMPT = """
You are SourceMind, an elite AI Technical Architect.
Analyze a GitHub repository from its README and metadata.

**CRITICAL OUTPUT REQUIREMENT:**
Reconstruct the likely file structure of the project. For each key file or module:
1. **Path**: where it probably lives (e.g. 'src/models/user.ts').
2. **Function**: what the file does.
3. **Dependencies**: internal modules or external libraries it likely relies on.
4. **Issues**: design flaws, performance bottlenecks or maintenance risks specific to it.

Also propose 3-4 essential blueprint files that would replicate the core functionality,
and assess the security posture of the project.
"""


def build_prompt(readme_text: str, metadata: RepositoryMetadata) -> str:
    """
    User prompt for one repository. The README is cut to README_CHAR_LIMIT characters.
    """
    return "\n".join([
        f"Target: {metadata.full_name}",
        f"Description: {metadata.description}",
        f"Stars: {metadata.stargazers_count}",
        f"Forks: {metadata.forks_count}",
        f"Primary Language: {metadata.language}",
        f"Languages: {json.dumps(metadata.languages)}",
        "",
        "README Context:",
        readme_text[:README_CHAR_LIMIT],
        "",
        "Provide a JSON response strictly following the schema.",
    ])


def last_reply_text(messages: List[ModelMessage]) -> str:
    """Text of the most recent model response, or "" if it had none."""
    for message in reversed(messages):
        if isinstance(message, ModelResponse):
            return "".join(p.content for p in message.parts if isinstance(p, TextPart))
    return ""


class AnalysisEngine:
    """
    Sends one repository to Gemini and returns the validated AnalysisResult.

    AnalysisResult is passed as native structured output, so Gemini receives
    it as the response schema and pydantic-ai validates the reply against the
    same model. No retries and no caching: every call hits the model.
    """

    def __init__(self, model_name: Optional[str] = None, model: Optional[Model] = None):
        self.model_name = model_name or DEFAULT_MODEL
        self.model = model

    def _build_model(self, api_key: str) -> Model:
        if self.model is not None:
            return self.model
        return GoogleModel(self.model_name, provider=GoogleProvider(api_key=api_key))

    async def analyze(self, api_key: str, readme_text: str, metadata: RepositoryMetadata) -> AnalysisResult:
        agent = Agent(
            self._build_model(api_key),
            output_type=NativeOutput(AnalysisResult),
            system_prompt=SYSTEM_PROMPT,
            retries=0,
        )
        with capture_run_messages() as messages:
            try:
                result = await agent.run(build_prompt(readme_text, metadata))
            except ModelHTTPError as e:
                # the body can echo request details, keep it out of the user message
                logger.error("Gemini request failed with status %s", e.status_code)
                logger.debug("Gemini error body: %s", e.body)
                raise AnalysisRequestFailed(f"Gemini request failed ({e.status_code}).", e.status_code) from e
            except UnexpectedModelBehavior as e:
                text = last_reply_text(messages)
                if not text.strip():
                    logger.error("Gemini returned no content: %s", e)
                    raise EmptyResponse("SourceMind received no data from Gemini.") from e
                logger.error("Failed to parse Gemini JSON: %s", text)
                raise MalformedResponse("Failed to parse analysis results.") from e

        return result.output

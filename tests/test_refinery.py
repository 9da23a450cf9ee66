import asyncio
import json
import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models.function import FunctionModel
from pydantic_ai.profiles import ModelProfile
from sourcemind.errors import AnalysisRequestFailed, EmptyResponse, MalformedResponse
from sourcemind.models.repository import RepositoryMetadata
from sourcemind.refinery.engine import README_CHAR_LIMIT, AnalysisEngine, build_prompt, last_reply_text


def scripted_model(reply, prompts: list, params: list = None):
    """
    FunctionModel that answers `reply` (or raises it when it is an exception)
    and records the user prompts and request parameters it was given.
    """
    def respond(messages, info):
        for message in messages:
            for part in getattr(message, "parts", []):
                if isinstance(part, UserPromptPart):
                    prompts.append(part.content)
        if params is not None:
            params.append(info.model_request_parameters)
        if isinstance(reply, Exception):
            raise reply
        return ModelResponse(parts=[TextPart(content=reply)])

    # Gemini supports JSON-schema constrained output; the fake has to declare it too
    return FunctionModel(respond, profile=ModelProfile(supports_json_schema_output=True))


@pytest.fixture
def metadata(repo_payload):
    return RepositoryMetadata.model_validate(repo_payload).with_languages({"Go": 900, "Shell": 100})


def test_prompt_contents(metadata):
    prompt = build_prompt("# Hello", metadata)
    assert "octocat/Hello-World" in prompt
    assert "1500" in prompt
    assert '{"Go": 900, "Shell": 100}' in prompt
    assert "# Hello" in prompt


def test_prompt_truncates_readme(metadata):
    prompt = build_prompt("x" * (README_CHAR_LIMIT + 500), metadata)
    assert "x" * README_CHAR_LIMIT in prompt
    assert "x" * (README_CHAR_LIMIT + 1) not in prompt


def test_schema_sent_as_native_output(metadata, analysis_payload):
    params = []
    engine = AnalysisEngine(model=scripted_model(json.dumps(analysis_payload), [], params))
    asyncio.run(engine.analyze("test-key", "# Hello", metadata))

    request = params[0]
    assert request.output_mode == "native"
    assert request.output_object is not None
    schema = request.output_object.json_schema
    assert "innovationScore" in schema["properties"]
    assert "securityAnalysis" in schema["required"]


def test_analyze_returns_validated_result(metadata, analysis_payload):
    prompts = []
    engine = AnalysisEngine(model=scripted_model(json.dumps(analysis_payload), prompts))
    result = asyncio.run(engine.analyze("test-key", "# Hello", metadata))

    assert result.innovation_score == 72
    assert result.complexity.value == "Medium"
    assert len(prompts) == 1
    assert "Hello-World" in prompts[0]


def test_analyze_missing_field(metadata, analysis_payload):
    del analysis_payload["repoStructure"]
    prompts = []
    engine = AnalysisEngine(model=scripted_model(json.dumps(analysis_payload), prompts))
    with pytest.raises(MalformedResponse):
        asyncio.run(engine.analyze("test-key", "# Hello", metadata))
    # no retry
    assert len(prompts) == 1


def test_analyze_malformed_is_not_echoed(metadata, caplog):
    engine = AnalysisEngine(model=scripted_model("I cannot comply with that request.", []))
    with pytest.raises(MalformedResponse) as exc:
        asyncio.run(engine.analyze("test-key", "# Hello", metadata))
    assert exc.value.message == "Failed to parse analysis results."
    assert "cannot comply" in caplog.text


def test_analyze_empty_reply(metadata):
    engine = AnalysisEngine(model=scripted_model("", []))
    with pytest.raises(EmptyResponse):
        asyncio.run(engine.analyze("test-key", "# Hello", metadata))


def test_gemini_http_error_is_sanitized(metadata):
    failure = ModelHTTPError(
        status_code=400,
        model_name="gemini-flash-latest",
        body={"error": {"message": "API key not valid. key=AIza-secret", "status": "INVALID_ARGUMENT"}},
    )
    engine = AnalysisEngine(model=scripted_model(failure, []))
    with pytest.raises(AnalysisRequestFailed) as exc:
        asyncio.run(engine.analyze("AIza-secret", "# Hello", metadata))

    assert exc.value.message == "Gemini request failed (400)."
    assert exc.value.status_code == 400
    assert "AIza-secret" not in exc.value.message


def test_every_call_hits_the_model(metadata, analysis_payload):
    prompts = []
    engine = AnalysisEngine(model=scripted_model(json.dumps(analysis_payload), prompts))
    asyncio.run(engine.analyze("test-key", "# Hello", metadata))
    asyncio.run(engine.analyze("test-key", "# Hello", metadata))
    assert len(prompts) == 2


def test_last_reply_text():
    messages = [
        ModelRequest(parts=[UserPromptPart(content="hi")]),
        ModelResponse(parts=[TextPart(content="first")]),
        ModelResponse(parts=[TextPart(content="{"), TextPart(content="}")]),
    ]
    assert last_reply_text(messages) == "{}"
    assert last_reply_text(messages[:1]) == ""

from __future__ import annotations

import http.client
import io
import json
import urllib.error

import pytest

from plan_generation import text_generator
from plan_generation.errors import GenerationError
from plan_generation.text_generator import (
    GeminiTextGenerator,
    OllamaTextGenerator,
    build_text_generator,
    extract_json,
)


def test_extract_json_from_fenced_block():
    text = 'Here you go:\n```json\n{"scenes": [1, 2]}\n```\nDone.'
    assert extract_json(text) == {"scenes": [1, 2]}


def test_extract_json_from_raw_array():
    assert extract_json('  [{"a": 1}]  ') == [{"a": 1}]


@pytest.mark.parametrize("text", ["", "   ", "no json here", "```json\n{broken\n```"])
def test_extract_json_rejects_unusable_text(text):
    with pytest.raises(GenerationError):
        extract_json(text)


class FakeResponse:
    def __init__(self, payload: dict) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        return None


def test_ollama_posts_chat_request(monkeypatch):
    captured = {}

    def fake_urlopen(request, timeout):
        captured["url"] = request.full_url
        captured["body"] = json.loads(request.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse({"message": {"content": '{"sceneTitle": "A"}'}})

    monkeypatch.setattr(text_generator.urllib.request, "urlopen", fake_urlopen)
    generator = OllamaTextGenerator(base_url="http://ollama:11434/", model_name="llama3", timeout=5)

    result = generator.generate_structured("prompt text", "system text")

    assert result == {"sceneTitle": "A"}
    assert captured["url"] == "http://ollama:11434/api/chat"
    assert captured["timeout"] == 5
    assert captured["body"]["model"] == "llama3"
    assert captured["body"]["format"] == "json"
    assert captured["body"]["stream"] is False
    assert captured["body"]["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "prompt text"},
    ]
    assert generator.last_raw == '{"sceneTitle": "A"}'


def test_ollama_transport_errors_become_generation_errors(monkeypatch):
    def unreachable(request, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(text_generator.urllib.request, "urlopen", unreachable)
    with pytest.raises(GenerationError, match="Failed to reach Ollama"):
        OllamaTextGenerator().generate_structured("p", "s")


def test_ollama_http_errors_include_detail(monkeypatch):
    def server_error(request, timeout):
        raise urllib.error.HTTPError(request.full_url, 500, "boom", {}, io.BytesIO(b"model not found"))

    monkeypatch.setattr(text_generator.urllib.request, "urlopen", server_error)
    with pytest.raises(GenerationError, match="model not found"):
        OllamaTextGenerator().generate_structured("p", "s")


class BrokenResponse(FakeResponse):
    def __init__(self, error: Exception) -> None:
        super().__init__({})
        self._error = error

    def read(self) -> bytes:
        raise self._error


@pytest.mark.parametrize(
    "error",
    [
        TimeoutError("timed out"),
        ConnectionResetError("connection reset by peer"),
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        http.client.IncompleteRead(b"{\"mess"),
    ],
)
def test_ollama_read_failures_become_generation_errors(monkeypatch, error):
    monkeypatch.setattr(text_generator.urllib.request, "urlopen", lambda request, timeout: BrokenResponse(error))
    with pytest.raises(GenerationError, match="Ollama connection"):
        OllamaTextGenerator().generate_structured("p", "s")


class FakeGeminiModel:
    instances: list = []

    def __init__(self, model_name, system_instruction=None, generation_config=None):
        self.model_name = model_name
        self.system_instruction = system_instruction
        self.generation_config = generation_config
        FakeGeminiModel.instances.append(self)

    def generate_content(self, prompt):
        if prompt == "fail":
            raise ValueError("quota exceeded")
        return type("Response", (), {"text": '```json\n[{"sceneTitle": "A"}]\n```'})()


def test_gemini_caches_models_per_instruction(monkeypatch):
    FakeGeminiModel.instances = []
    monkeypatch.setattr(text_generator.genai, "configure", lambda api_key: None)
    monkeypatch.setattr(text_generator.genai, "GenerativeModel", FakeGeminiModel)
    generator = GeminiTextGenerator(api_key="key", model_name="gemini-test", temperature=0.1)

    assert generator.generate_structured("p1", "plan") == [{"sceneTitle": "A"}]
    generator.generate_structured("p2", "plan")
    generator.generate_structured("p3", "convert")

    assert [model.system_instruction for model in FakeGeminiModel.instances] == ["plan", "convert"]
    assert FakeGeminiModel.instances[0].generation_config == {
        "response_mime_type": "application/json",
        "temperature": 0.1,
    }
    with pytest.raises(GenerationError, match="quota exceeded"):
        generator.generate_structured("fail", "plan")


def test_build_ollama_generator_from_env(monkeypatch):
    monkeypatch.setattr(text_generator, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setenv("LLM_PROVIDER", "ollama")
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434")
    monkeypatch.delenv("LLM_MODEL", raising=False)

    generator = build_text_generator()

    assert isinstance(generator, OllamaTextGenerator)
    assert generator.base_url == "http://gpu-box:11434"
    assert generator.model_name == text_generator.DEFAULT_OLLAMA_MODEL


def test_build_rejects_unknown_provider():
    with pytest.raises(RuntimeError, match="Unknown LLM provider"):
        build_text_generator(provider="openai")


def test_build_gemini_requires_api_key(monkeypatch):
    monkeypatch.setattr(text_generator, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="GEMINI_API_KEY"):
        build_text_generator(provider="gemini")

"""Text-generation collaborators returning structured JSON (Gemini or Ollama)."""
from __future__ import annotations

import http.client
import json
import logging
import os
import re
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from dotenv import load_dotenv

from .errors import GenerationError

LOGGER = logging.getLogger(__name__)

JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", re.DOTALL)

DEFAULT_PROVIDER = "gemini"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_OLLAMA_MODEL = "qwen2.5"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_TIMEOUT_SEC = 120
PROVIDERS = ("gemini", "ollama")


def extract_json(text: str) -> Any:
    """
    Extracts a JSON value (object or array) from a model response.
    Fenced ```json blocks are tried first, then the whole text.

    Raises:
        GenerationError: If the text is empty or holds no valid JSON.
    """
    if not text or not text.strip():
        raise GenerationError("Empty response from text generator")

    candidates: List[str] = [match.group(1).strip() for match in JSON_BLOCK_RE.finditer(text)]
    candidates.append(text.strip())

    last_error: Exception | None = None
    for candidate in candidates:
        for cleaned in (candidate, candidate.replace("\r", "")):
            try:
                return json.loads(cleaned)
            except json.JSONDecodeError as exc:
                last_error = exc
    raise GenerationError(f"Could not parse JSON from model response: {last_error}")


class TextGenerator:
    """Interface of a structured text-generation collaborator."""

    name = "base"

    def __init__(self) -> None:
        self.last_prompt: Optional[str] = None
        self.last_raw: Optional[str] = None

    def generate_structured(self, prompt: str, system_instruction: str) -> Any:
        """Return the parsed JSON answer to `prompt`. Raises GenerationError."""
        raise NotImplementedError


class GeminiTextGenerator(TextGenerator):
    """Google Gemini via google-generativeai, JSON response mime type."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_GEMINI_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        super().__init__()
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.temperature = temperature
        self._models: Dict[str, genai.GenerativeModel] = {}

    def _model_for(self, system_instruction: str) -> genai.GenerativeModel:
        model = self._models.get(system_instruction)
        if model is None:
            model = genai.GenerativeModel(
                self.model_name,
                system_instruction=system_instruction,
                generation_config={
                    "response_mime_type": "application/json",
                    "temperature": self.temperature,
                },
            )
            self._models[system_instruction] = model
        return model

    def generate_structured(self, prompt: str, system_instruction: str) -> Any:
        self.last_prompt = prompt
        try:
            response = self._model_for(system_instruction).generate_content(prompt)
            raw_text = response.text
        except Exception as exc:  # noqa: BLE001 - the SDK raises many error types
            raise GenerationError(f"Gemini request failed ({self.model_name}): {exc}") from exc
        self.last_raw = raw_text
        return extract_json(raw_text)


class OllamaTextGenerator(TextGenerator):
    """Local Ollama server through its `/api/chat` endpoint."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        model_name: str = DEFAULT_OLLAMA_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: int = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout

    def generate_structured(self, prompt: str, system_instruction: str) -> Any:
        self.last_prompt = prompt
        payload = json.dumps(
            {
                "model": self.model_name,
                "messages": [
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                "format": "json",
                "stream": False,
                "options": {"temperature": self.temperature},
            }
        ).encode("utf-8")
        request = urllib.request.Request(
            f"{self.base_url}/api/chat",
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise GenerationError(f"Ollama HTTP error {exc.code}: {detail}") from exc
        except urllib.error.URLError as exc:
            raise GenerationError(f"Failed to reach Ollama at {self.base_url}: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise GenerationError(f"Ollama connection to {self.base_url} failed: {exc!r}") from exc

        try:
            content = json.loads(body).get("message", {}).get("content", "")
        except (json.JSONDecodeError, AttributeError) as exc:
            raise GenerationError(f"Unexpected Ollama response: {body[:200]}") from exc
        self.last_raw = content
        return extract_json(content)


def build_text_generator(
    provider: str | None = None,
    model_name: str | None = None,
) -> TextGenerator:
    """
    Builds the configured text generator.
    Loads `.env` files first; provider and model fall back to LLM_PROVIDER
    and LLM_MODEL.

    Raises:
        RuntimeError: If the provider is unknown or GEMINI_API_KEY is missing.
    """
    root_dir = Path(__file__).resolve().parents[1]
    load_dotenv(root_dir / ".env")
    load_dotenv()

    resolved_provider = (provider or os.getenv("LLM_PROVIDER", DEFAULT_PROVIDER)).strip().lower()
    resolved_model = model_name or os.getenv("LLM_MODEL")
    temperature = float(os.getenv("LLM_TEMPERATURE", str(DEFAULT_TEMPERATURE)))

    if resolved_provider == "ollama":
        return OllamaTextGenerator(
            base_url=os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL),
            model_name=resolved_model or DEFAULT_OLLAMA_MODEL,
            temperature=temperature,
            timeout=int(os.getenv("LLM_TIMEOUT_SEC", str(DEFAULT_TIMEOUT_SEC))),
        )
    if resolved_provider != "gemini":
        raise RuntimeError(f"Unknown LLM provider '{resolved_provider}'. Expected one of {PROVIDERS}.")

    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise RuntimeError("Missing GEMINI_API_KEY. Add it to .env or environment variables.")
    return GeminiTextGenerator(
        api_key=api_key,
        model_name=resolved_model or os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        temperature=temperature,
    )

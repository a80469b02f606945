from __future__ import annotations

from typing import Any, Dict, List

import pytest

from plan_generation.errors import GenerationError
from plan_generation.text_generator import TextGenerator


class DummyGenerator(TextGenerator):
    """Replays canned answers in call order. Exceptions in the queue are raised."""

    name = "dummy"

    def __init__(self, responses: List[Any]) -> None:
        super().__init__()
        self._responses = list(responses)
        self.calls: List[Dict[str, str]] = []

    def generate_structured(self, prompt: str, system_instruction: str) -> Any:
        self.last_prompt = prompt
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction})
        if not self._responses:
            raise GenerationError("No canned response left")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


SAMPLE_DOCUMENT = """---
title: Getting Started
summary: A short tour of the tool
---

# Getting Started

Welcome to the tour.

## Install

> Installing takes one command.

1. Download the package
2. Run the installer

## Usage

| Command | Effect |
|---|---|
| run | Starts it |
| stop | Stops it |

→ Open the terminal and type run
"""


@pytest.fixture
def sample_document_text() -> str:
    return SAMPLE_DOCUMENT


@pytest.fixture
def dummy_generator_factory():
    return DummyGenerator

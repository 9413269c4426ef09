"""
Shared fixtures: a scripted completion service and small processing configs.
"""

import asyncio

import pytest

from labdigest.ai.completion_service import (
    CompletionFailure,
    CompletionService,
    CompletionSuccess,
    FailureKind,
)
from labdigest.config import ProcessingConfig

SUMMARY_RESPONSE = "Summary sentence one. Summary sentence two. Summary sentence three."
KEY_CONCEPTS_RESPONSE = "- Photosynthesis\n- Chlorophyll\n\n3. Light reactions"
TOPIC_RESPONSE = "Plant Energy Conversion"
FINAL_RESPONSE = "Executive summary of the whole document."


def default_responder(prompt: str) -> str:
    """Answer each prompt kind with a fixed, recognizable response."""
    if prompt.startswith("Extract 3-5 key concepts"):
        return KEY_CONCEPTS_RESPONSE
    if prompt.startswith("Extract the main topic"):
        return TOPIC_RESPONSE
    if prompt.startswith("Create a comprehensive summary"):
        return FINAL_RESPONSE
    return SUMMARY_RESPONSE


class ScriptedCompletionService(CompletionService):
    """
    In-memory completion service.

    Records every prompt in order. When fail_on_call is set, the call with
    that 1-based number returns a CompletionFailure instead of text.
    """

    name = "scripted"

    def __init__(self, responder=default_responder, fail_on_call=None,
                 failure_kind=FailureKind.TIMEOUT, delay=0.0):
        self.responder = responder
        self.fail_on_call = fail_on_call
        self.failure_kind = failure_kind
        self.delay = delay
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_call == len(self.prompts):
            return CompletionFailure(self.failure_kind, "scripted failure", backend=self.name)
        return CompletionSuccess(self.responder(prompt))


@pytest.fixture
def service():
    return ScriptedCompletionService()


@pytest.fixture
def small_config():
    """Small budgets so tests can exercise splitting with short texts."""
    return ProcessingConfig(
        min_section_chars=100,
        max_section_chars=300,
        section_overlap_chars=50,
        split_ratio=0.8,
        max_chunk_chars=200,
        overlap_sentences=2,
    )


# Three Markdown sections, each body longer than min_section_chars
THREE_SECTION_DOC = (
    "# Intro\n"
    + "Photosynthesis converts light into chemical energy. " * 3 + "\n"
    + "# Methods\n"
    + "Leaves were sampled every hour during the day. " * 3 + "\n"
    + "## Results\n"
    + "Oxygen output peaked near midday in every sample. " * 3 + "\n"
)


@pytest.fixture
def three_section_doc():
    return THREE_SECTION_DOC

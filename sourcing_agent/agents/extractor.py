"""
Page Data Extractor - One-shot vision query turning a rendered page into JSON.

Captures the screenshot (plus cleaned markup when enabled) and asks Gemini
for the caller's JSON shape. Decode failures come back as ExtractionError,
never as exceptions.
"""

import base64
import json
from typing import Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from playwright.async_api import Page

from sourcing_agent.core.schemas import ExtractionError, ExtractionOk, ExtractionResult
from sourcing_agent.utils.constants import EXTRACTION_MODEL, MARKUP_TEXT_LIMIT, get_google_api_key
from sourcing_agent.utils.helpers import AgentLogger, extract_llm_text, markup_to_text, strip_code_fence
from sourcing_agent.utils.prompts import build_extraction_prompt


def create_extraction_llm(model: str = EXTRACTION_MODEL) -> ChatGoogleGenerativeAI:
    return ChatGoogleGenerativeAI(
        model=model,
        temperature=0,
        google_api_key=get_google_api_key(),
        response_mime_type="application/json",
    )


def parse_extraction_text(text: str) -> ExtractionResult:
    """
    Decode a model answer into JSON.

    Args:
        text: Raw answer, optionally wrapped in a ```json fence

    Returns:
        ExtractionOk with the decoded data, or ExtractionError
    """
    cleaned = strip_code_fence(text) or "{}"
    try:
        return ExtractionOk(data=json.loads(cleaned))
    except json.JSONDecodeError as e:
        return ExtractionError(error=str(e), raw_text=text or "")


class PageDataExtractor:
    def __init__(self, llm: Optional[ChatGoogleGenerativeAI] = None, include_markup: bool = True):
        self._llm = llm
        self.include_markup = include_markup

    @property
    def llm(self) -> ChatGoogleGenerativeAI:
        if self._llm is None:
            self._llm = create_extraction_llm()
        return self._llm

    async def extract(self, page: Page, extraction_prompt: str, logger: AgentLogger) -> ExtractionResult:
        """
        Run a single extraction against the page as it is now.

        Args:
            page: Live page that should already show the target results
            extraction_prompt: Caller's description of the JSON shape
            logger: Agent logger; receives the failure entry on bad JSON
        """
        screenshot = await page.screenshot(type="png")
        screenshot_b64 = base64.b64encode(screenshot).decode("utf-8")

        markup = ""
        if self.include_markup:
            markup = markup_to_text(await page.content(), max_length=MARKUP_TEXT_LIMIT)

        prompt = build_extraction_prompt(page.url, extraction_prompt, markup)
        message = HumanMessage(content=[
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{screenshot_b64}"}},
        ])

        response = await self.llm.ainvoke([message])
        result = parse_extraction_text(extract_llm_text(response.content))

        if isinstance(result, ExtractionError):
            logger.log("Data extraction failed", "error", result.error)
        return result

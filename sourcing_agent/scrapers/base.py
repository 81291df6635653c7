"""
Source scraper base - Turn loop + one extraction, specialized per marketplace.

A source supplies its goal template, start URL, extraction prompt and a
record normalizer. `search()` never raises: any failure is logged under
the scraper's agent name and yields an empty list.
"""

from typing import Callable, List, Optional

from pydantic import ValidationError

from sourcing_agent.agents.computer_use import ComputerUseAgent
from sourcing_agent.agents.decision import DecisionStep
from sourcing_agent.agents.extractor import PageDataExtractor
from sourcing_agent.agents.policies import SentinelPhrasePolicy
from sourcing_agent.core.browser import BrowserSession
from sourcing_agent.core.schemas import ExtractionError, ExtractionResult, LogCallback, ScrapedRecord
from sourcing_agent.utils.constants import DEFAULT_MAX_RESULTS, DEFAULT_MAX_TURNS, SOURCE_START_URLS
from sourcing_agent.utils.helpers import AgentLogger


class SourceScraper:
    source: str = ""
    agent_name: str = ""
    result_key: str = ""
    listing_noun: str = "listings"
    goal_template: str = ""
    extraction_template: str = ""

    def __init__(
        self,
        log_callback: Optional[LogCallback] = None,
        decision_step: Optional[DecisionStep] = None,
        extractor: Optional[PageDataExtractor] = None,
        max_turns: int = DEFAULT_MAX_TURNS,
        browser_factory: Callable[[], BrowserSession] = BrowserSession,
    ):
        self.log_callback = log_callback
        self.decision_step = decision_step
        self.extractor = extractor
        self.max_turns = max_turns
        self.browser_factory = browser_factory
        self.logger = AgentLogger(self.agent_name, log_callback)

    @property
    def start_url(self) -> str:
        return SOURCE_START_URLS[self.source]

    def build_goal(self, query: str) -> str:
        return self.goal_template.format(query=query)

    def build_extraction_prompt(self, max_results: int) -> str:
        return self.extraction_template.format(max_results=max_results)

    def create_agent(self) -> ComputerUseAgent:
        """A fresh agent (and so a fresh browser session) per search."""
        return ComputerUseAgent(
            self.agent_name,
            decision_step=self.decision_step,
            max_turns=self.max_turns,
            log_callback=self.log_callback,
            completion_policy=SentinelPhrasePolicy(),
            browser_factory=self.browser_factory,
            extractor=self.extractor,
        )

    def normalize(self, record: ScrapedRecord) -> ScrapedRecord:
        return record

    def records_from_extraction(
        self,
        extraction: ExtractionResult,
        max_results: Optional[int] = None,
    ) -> List[ScrapedRecord]:
        """
        Validate extracted listings in page order; malformed items are skipped.

        Stops once max_results valid records are collected, so items past the
        cap are neither validated nor counted as skipped.
        """
        if isinstance(extraction, ExtractionError):
            return []

        data = extraction.data
        items = data.get(self.result_key) if isinstance(data, dict) else None
        if not isinstance(items, list):
            self.logger.log("No listings extracted", "idle", f"Response had no '{self.result_key}' list")
            return []

        records: List[ScrapedRecord] = []
        skipped = 0
        for item in items:
            if max_results is not None and len(records) >= max_results:
                break
            try:
                records.append(ScrapedRecord.model_validate(item))
            except ValidationError:
                skipped += 1

        if skipped:
            self.logger.log("Skipped malformed listings", "analyzing", f"{skipped} item(s) failed validation")
        return records

    async def search(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> List[ScrapedRecord]:
        """
        Search the marketplace and extract up to max_results listings.

        Args:
            query: Free-text product/supplier query
            max_results: Cap on returned records

        Returns:
            Normalized records; empty on any failure
        """
        try:
            agent = self.create_agent()
            _task, extraction = await agent.run_task_and_extract(
                self.build_goal(query),
                self.start_url,
                self.build_extraction_prompt(max_results),
            )
            records = [self.normalize(r) for r in self.records_from_extraction(extraction, max_results)]
            if isinstance(extraction, ExtractionError):
                return records

            self.logger.log("Extraction complete", "completed", f"Found {len(records)} {self.listing_noun}")
            return records
        except Exception as e:
            print(f"❌ {self.agent_name} scraping error: {e}")
            self.logger.log("Scraping failed", "error", str(e))
            return []

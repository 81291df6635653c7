from typing import Dict, Type

from sourcing_agent.core.schemas import ScrapedRecord
from sourcing_agent.scrapers.base import SourceScraper
from sourcing_agent.utils.constants import DEFAULT_CURRENCY, SOURCE_ALIBABA, SOURCE_THOMASNET
from sourcing_agent.utils.prompts import (
    ALIBABA_EXTRACTION_TEMPLATE,
    ALIBABA_GOAL_TEMPLATE,
    THOMASNET_EXTRACTION_TEMPLATE,
    THOMASNET_GOAL_TEMPLATE,
)


class AlibabaScraper(SourceScraper):
    """Product listings with prices and MOQ; currency as reported, USD when absent."""
    source = SOURCE_ALIBABA
    agent_name = "Alibaba Scraper"
    result_key = "products"
    listing_noun = "products"
    goal_template = ALIBABA_GOAL_TEMPLATE
    extraction_template = ALIBABA_EXTRACTION_TEMPLATE


class ThomasNetScraper(SourceScraper):
    """Supplier directory listings; ThomasNet is US-based so currency is always USD."""
    source = SOURCE_THOMASNET
    agent_name = "ThomasNet Scraper"
    result_key = "suppliers"
    listing_noun = "suppliers"
    goal_template = THOMASNET_GOAL_TEMPLATE
    extraction_template = THOMASNET_EXTRACTION_TEMPLATE

    def normalize(self, record: ScrapedRecord) -> ScrapedRecord:
        return record.model_copy(update={"currency": DEFAULT_CURRENCY})


SCRAPERS: Dict[str, Type[SourceScraper]] = {
    SOURCE_ALIBABA: AlibabaScraper,
    SOURCE_THOMASNET: ThomasNetScraper,
}

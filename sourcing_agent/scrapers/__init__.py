"""Marketplace-specific scrapers."""

from sourcing_agent.scrapers.base import SourceScraper
from sourcing_agent.scrapers.sites import SCRAPERS, AlibabaScraper, ThomasNetScraper

__all__ = ["SourceScraper", "AlibabaScraper", "ThomasNetScraper", "SCRAPERS"]

"""One scrape run from search to saved dataset."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from safeplate.config import ScrapeConfig
from safeplate.dedup import merge_datasets
from safeplate.driver.page_driver import PageDriver
from safeplate.models import InspectionRecord
from safeplate.pagination import CrawlResult, PaginationController
from safeplate.store import load_records, save_records

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a run.

    Attributes:
        crawl: The raw crawl result, including any halt.
        records: The merged dataset as saved, or [] for an empty run.
        output_path: Where the dataset was written, or None if nothing was.
    """

    crawl: CrawlResult
    records: list[InspectionRecord]
    output_path: Path | None = None

    @property
    def empty(self) -> bool:
        return not self.crawl.records


def run_pipeline(
    driver: PageDriver,
    config: ScrapeConfig,
    stop_event: threading.Event | None = None,
) -> PipelineResult:
    """Crawl, merge with the existing dataset and save.

    The existing dataset is read before the crawl starts, so an unreadable
    file is reported before any scraping is done. A run that scraped nothing
    leaves the dataset file untouched. A halted crawl still merges and saves
    the records gathered before the halt.

    Raises:
        DataFormatAssumptionException: If the existing dataset is invalid.
    """
    prior = load_records(config.output)
    controller = PaginationController(
        driver,
        county=config.county,
        max_pages=config.max_pages,
        max_duplicate_pages=config.max_duplicate_pages,
        advance_timeout_ms=config.advance_timeout_ms,
        verification_timeout_ms=config.verification_timeout_ms,
        stop_event=stop_event,
    )
    crawl = controller.crawl(config.city, config.date_range)

    if not crawl.records:
        logger.error(
            "No data scraped; leaving the dataset unchanged",
            extra={"stop_reason": crawl.stop_reason.value},
        )
        return PipelineResult(crawl=crawl, records=[])

    if crawl.halted:
        logger.warning(
            f"Saving {len(crawl.records)} records gathered before the crawl halted"
        )

    merged = merge_datasets(prior, crawl.records)
    output_path = save_records(config.output, merged)
    return PipelineResult(crawl=crawl, records=merged, output_path=output_path)

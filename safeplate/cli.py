"""safeplate CLI: scrape, merge and summarize inspection datasets.

Usage:
    safeplate scrape                            # Scrape Des Moines, last 12 months
    safeplate scrape --city Ankeny --start 2024-01-01 --end 2024-12-31
    safeplate scrape --config run.json -v       # Settings from a JSON file
    safeplate merge old.json new.json -o out.json
    safeplate summary raw-data.json
    safeplate classify 3-501.16 6-301.14
"""

from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from pathlib import Path

import click

from safeplate.common.exceptions import (
    DataFormatAssumptionException,
    TransientException,
)
from safeplate.config import ScrapeConfig, load_config
from safeplate.dedup import merge_datasets
from safeplate.driver.playwright_driver import PlaywrightPageDriver, SiteLayout
from safeplate.models import InspectionRecord
from safeplate.pipeline import run_pipeline
from safeplate.severity import classify_code
from safeplate.store import load_records, save_records
from safeplate.summary import format_summary, summarize

EXIT_EMPTY_RUN = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo_summary(records: list[InspectionRecord]) -> None:
    click.echo("")
    for line in format_summary(summarize(records)):
        click.echo(line)


def _parse_day(
    ctx: click.Context, param: click.Parameter, value: datetime | None
) -> date | None:
    return value.date() if value is not None else None


@click.group()
@click.version_option(package_name="safeplate")
def cli() -> None:
    """safeplate: food-safety inspection scraper."""


@cli.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON settings file; options below override it.",
)
@click.option("--city", default=None, help="City to search.")
@click.option(
    "--start",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    callback=_parse_day,
    default=None,
    help="First inspection date (YYYY-MM-DD).",
)
@click.option(
    "--end",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    callback=_parse_day,
    default=None,
    help="Last inspection date (YYYY-MM-DD).",
)
@click.option("--county", default=None, help="County stamped on records.")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Dataset file to merge into and rewrite.",
)
@click.option(
    "--headless/--headed",
    default=None,
    help="Run the browser without a window.",
)
@click.option("--max-pages", type=int, default=None, help="Page ceiling.")
@click.option(
    "--max-duplicate-pages",
    type=int,
    default=None,
    help="Consecutive all-duplicate pages that halt the crawl.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def scrape(
    config_path: Path | None,
    city: str | None,
    start: date | None,
    end: date | None,
    county: str | None,
    output: Path | None,
    headless: bool | None,
    max_pages: int | None,
    max_duplicate_pages: int | None,
    verbose: bool,
) -> None:
    """Scrape routine inspections and merge them into the dataset.

    Exits with status 2 when the run scrapes nothing.
    """
    _configure_logging(verbose)

    try:
        config = load_config(config_path)
        date_range = None
        if start is not None or end is not None:
            date_range = {
                "start": start or config.date_range.start,
                "end": end or config.date_range.end,
            }
        config = config.with_overrides(
            city=city,
            date_range=date_range,
            county=county,
            output=output,
            headless=headless,
            max_pages=max_pages,
            max_duplicate_pages=max_duplicate_pages,
        )
    except DataFormatAssumptionException as e:
        raise click.ClickException(e.message) from e

    click.echo(f"City:   {config.city}")
    click.echo(
        f"Dates:  {config.date_range.start.isoformat()} to "
        f"{config.date_range.end.isoformat()}"
    )
    click.echo(f"Output: {config.output}")

    _run_scrape(config)


def _run_scrape(config: ScrapeConfig) -> None:
    try:
        with PlaywrightPageDriver.open(
            headless=config.headless,
            timeout_ms=config.timeout_ms,
            layout=SiteLayout(base_url=config.base_url),
        ) as driver:
            result = run_pipeline(driver, config)
    except TransientException as e:
        raise click.ClickException(f"Browser interaction failed: {e}") from e
    except DataFormatAssumptionException as e:
        raise click.ClickException(str(e)) from e

    if result.crawl.halted:
        click.echo(f"Crawl halted: {result.crawl.failure}", err=True)

    if result.empty:
        click.echo("No data scraped.", err=True)
        sys.exit(EXIT_EMPTY_RUN)

    click.echo(
        f"Scraped {len(result.crawl.records)} records "
        f"({result.crawl.pages_scraped} pages); "
        f"{len(result.records)} establishments saved to {result.output_path}"
    )
    _echo_summary(result.records)


@cli.command()
@click.argument(
    "prior", type=click.Path(dir_okay=False, path_type=Path)
)
@click.argument(
    "new", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Where to write the merged dataset.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def merge(prior: Path, new: Path, output: Path, verbose: bool) -> None:
    """Merge NEW into PRIOR, keeping each establishment's latest inspection.

    A missing PRIOR file is treated as an empty dataset.
    """
    _configure_logging(verbose)
    try:
        merged = merge_datasets(load_records(prior), load_records(new))
    except DataFormatAssumptionException as e:
        raise click.ClickException(str(e)) from e

    path = save_records(output, merged)
    click.echo(f"Wrote {len(merged)} establishments to {path}")


@cli.command()
@click.argument(
    "dataset", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
def summary(dataset: Path) -> None:
    """Print the risk distribution and city breakdown of DATASET."""
    try:
        records = load_records(dataset)
    except DataFormatAssumptionException as e:
        raise click.ClickException(str(e)) from e
    for line in format_summary(summarize(records)):
        click.echo(line)


@cli.command()
@click.argument("codes", nargs=-1, required=True)
def classify(codes: tuple[str, ...]) -> None:
    """Show tier, points and matching table for each violation CODE."""
    for code in codes:
        result = classify_code(code)
        table = result.table or "prefix fallback"
        click.echo(f"{code}: {result.tier.value}, {result.points} points ({table})")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

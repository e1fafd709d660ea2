"""
Main entry point for the Amazon scraping pipeline.
Coordinates review extraction, product extraction and CSV download.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import hydra
from omegaconf import DictConfig

from .config import ScraperConfig
from .core.browser_factory import BrowserFactory
from .core.models import ProductRecord, ScrapeSession, utc_timestamp
from .core.page_agent import PageAgent, StaticPageAgent
from .core.selenium_agent import SeleniumPageAgent
from .exceptions import InvalidProductUrlError, ScrapeAbortedError, ScraperError
from .export import products_to_csv, reviews_to_csv, write_csv_export
from .extraction.product import extract_product
from .logging_config import configure_logging
from .pagination import ReviewPaginator
from .storage import ScrapeStore
from .urls import build_reviews_url, is_amazon_url, is_reviews_page, parse_asin
from .utils.io import ensure_output_directory, make_filename_safe

logger = logging.getLogger(__name__)


class AmazonScrapingPipeline:
    """Orchestrates the review, product and download commands."""

    def __init__(self, config: ScraperConfig, store: Optional[ScrapeStore] = None):
        """Initialize pipeline with configuration."""
        self.config = config
        self.store = store or ScrapeStore(config.storage.path)

    def run(self) -> None:
        """Execute the enabled commands in order."""
        pipeline = self.config.pipeline
        logger.info("🎯 AMAZON SCRAPING PIPELINE STARTED")
        logger.info("=" * 60)
        self._print_configuration()

        try:
            if pipeline.extract_reviews:
                self._run_phase("EXTRACT REVIEWS", self.extract_reviews)
            if pipeline.extract_product:
                self._run_phase("EXTRACT PRODUCT INFO", self.extract_product_info)
            if pipeline.download:
                self._run_phase("DOWNLOAD CSV", self.download_csv)
        except KeyboardInterrupt:
            logger.warning("\n⚠️ Pipeline interrupted by user")

        logger.info("\n" + "=" * 60)
        logger.info("🏁 PIPELINE COMPLETE")
        logger.info("=" * 60)

    def _print_configuration(self) -> None:
        pipeline = self.config.pipeline
        logger.info("Pipeline Configuration:")
        logger.info(f"  URL: {self.config.url or '-'}")
        logger.info(f"  Extract reviews: {'✓' if pipeline.extract_reviews else '✗'}")
        logger.info(f"  Extract product: {'✓' if pipeline.extract_product else '✗'}")
        logger.info(f"  Download CSV: {'✓' if pipeline.download else '✗'}")
        logger.info("")

    def _run_phase(self, title: str, step) -> None:
        logger.info("\n" + "=" * 60)
        logger.info(title)
        logger.info("=" * 60)
        try:
            step()
            self.print_stats()
        except ScraperError as e:
            logger.error(f"❌ {title.title()} failed: {e}")

    @contextmanager
    def _open_agent(self, start_url: str) -> Iterator[PageAgent]:
        """Page agent for one command; a saved page when ``html_file`` is set."""
        if self.config.html_file:
            yield StaticPageAgent.from_file(self.config.html_file, start_url)
            return

        browser = self.config.browser
        driver = BrowserFactory.create_driver(browser)
        try:
            yield SeleniumPageAgent(
                driver,
                poll_interval=self.config.pagination.poll_interval,
                expand_click_delay=browser.expand_click_delay,
                expand_settle_delay=browser.expand_settle_delay,
            )
        finally:
            driver.quit()

    def _require_url(self) -> str:
        url = self.config.url
        if not is_amazon_url(url):
            raise InvalidProductUrlError(f"Please provide an Amazon URL (got {url!r})")
        return url

    def extract_reviews(self) -> Optional[ScrapeSession]:
        """
        Scrape every review page of the configured product into the store.

        Returns:
            The stored session, or None when the run was aborted
        """
        url = self._require_url()
        asin = parse_asin(url)
        if not asin:
            raise InvalidProductUrlError(f"Could not find product ASIN in URL: {url}")

        reviews_url = build_reviews_url(asin)
        start_url = url if is_reviews_page(url) else reviews_url
        logger.info(f"ASIN: {asin}")

        session = ScrapeSession(asin=asin, product_url=url, reviews_url=reviews_url)
        with self._open_agent(start_url) as agent:
            if agent.current_url != start_url:
                agent.navigate(start_url)
                agent.pause(self.config.pagination.page_load_delay)

            paginator = ReviewPaginator(
                agent,
                self.config.pagination,
                progress=lambda message: logger.info(f"📄 {message}"),
            )
            try:
                paginator.run(session)
            except ScrapeAbortedError as e:
                logger.error(
                    f"Aborted after {e.session.total_reviews if e.session else 0} reviews; "
                    "nothing was stored"
                )
                return None

        self.store.add_session(session)
        logger.info(
            f"✅ Complete! {session.total_reviews} reviews from "
            f"{session.pages_scraped} pages ({session.outcome.value})"
        )
        return session

    def extract_product_info(self) -> ProductRecord:
        """Scrape the configured product detail page into the store."""
        url = self._require_url()
        asin = parse_asin(url, strict=True)
        if not asin:
            raise InvalidProductUrlError(f"Could not extract ASIN from product URL: {url}")

        with self._open_agent(url) as agent:
            if agent.current_url != url:
                agent.navigate(url)
            agent.expand_sections()
            product = extract_product(
                agent.document(),
                asin,
                url,
                include_materials_care=self.config.export.include_materials_care,
            )

        self.store.add_product_info(product)
        logger.info(f"✅ Product info extracted for {asin}: {product.title or 'untitled'}")
        return product

    def download_csv(self) -> list:
        """
        Write the stored products and reviews to timestamped CSV files.

        Returns:
            Paths of the files written
        """
        if self.store.is_empty():
            logger.warning("No data to download")
            return []

        export = self.config.export
        output_dir = ensure_output_directory(export.output_dir)
        prefix = make_filename_safe(export.prefix)
        timestamp = utc_timestamp().replace(":", "-").replace(".", "-")
        written = []

        product_info = self.store.product_info()
        if product_info:
            text = products_to_csv(product_info, export.include_materials_care)
            written.append(write_csv_export(text, output_dir / f"{prefix}_productInfo_{timestamp}.csv"))

        sessions = self.store.sessions()
        if sessions:
            text = reviews_to_csv(sessions)
            written.append(write_csv_export(text, output_dir / f"{prefix}_reviews_{timestamp}.csv"))
            total = sum(s.total_reviews for s in sessions)
            logger.info(f"Downloaded {total} reviews from {len(sessions)} products")

        if export.clear_after_download:
            self.store.clear()
        return written

    def print_stats(self) -> None:
        stats = self.store.stats()
        logger.info(
            f"📊 Store: {stats['products']} review sessions, "
            f"{stats['product_info']} product info entries, {stats['reviews']} reviews"
        )


@hydra.main(version_base=None, config_path="conf", config_name="scraper")
def main(cfg: DictConfig) -> None:
    """
    Main entry point for the Amazon scraping pipeline.

    Args:
        cfg: Hydra configuration object
    """
    config = ScraperConfig.from_dictconfig(cfg)
    configure_logging(config.logging)
    pipeline = AmazonScrapingPipeline(config)
    pipeline.run()


if __name__ == "__main__":
    main()

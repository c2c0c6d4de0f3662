#!/usr/bin/env python3
"""
Main entry point for the immigration crawler.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from immigration_crawler import __version__
from immigration_crawler.crawler.fetcher import WebFetcher, FetchError
from immigration_crawler.crawler.scheduler import CrawlerScheduler
from immigration_crawler.storage.database import DatabaseManager, DatabaseError
from immigration_crawler.utils.config import Config, ConfigError, load_config
from immigration_crawler.utils.logger import setup_logging, log_system_info
from immigration_crawler.utils.monitoring import initialize_monitoring


class CrawlerApp:
    """Main application class for the immigration crawler."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Config, dry_run: bool = False) -> int:
        """Run one crawl pass."""
        self.logger.info("=== IMMIGRATION CRAWLER STARTING ===")
        self.logger.info(f"Allowed domains: {config.crawler.allowed_domains}")
        self.logger.info(f"Seeds: {len(config.crawler.seed_urls)}, feeds: {len(config.crawler.rss_feeds)}, "
                         f"sitemaps: {len(config.crawler.sitemaps)}")
        self.logger.info(f"Max depth: {config.crawler.max_depth}")
        self.logger.info(f"Max pages per run: {config.crawler.max_pages_per_run}")
        self.logger.info(f"Politeness delay: {config.crawler.per_domain_delay}s")
        self.logger.info(f"Database type: {config.database.type}")

        database = DatabaseManager(config.database, config.redis)
        try:
            await database.initialize()

            async with WebFetcher(
                user_agent=config.crawler.user_agent,
                request_timeout=config.crawler.request_timeout,
                max_redirects=config.crawler.max_redirects
            ) as fetcher:
                if dry_run:
                    self.logger.info("DRY RUN MODE: No actual crawling will be performed")
                    await self._dry_run(config, fetcher, database)
                    return 0

                monitor = initialize_monitoring(
                    config.monitoring.metrics_enabled, config.monitoring.prometheus_port
                )
                monitor.metrics.start_server()

                scheduler = CrawlerScheduler(config, fetcher, database, monitor=monitor)
                await scheduler.run()

        except DatabaseError as e:
            self.logger.error(f"Fatal storage error: {e}", exc_info=True)
            return 1

        finally:
            await database.close()
            self.logger.info("=== IMMIGRATION CRAWLER FINISHED ===")

        return 0

    async def _dry_run(self, config: Config, fetcher: WebFetcher, database: DatabaseManager):
        """Check the store and fetch the first seed without crawling."""
        self.logger.info(f"Store holds {await database.count_urls()} URLs")

        if config.crawler.seed_urls:
            test_url = config.crawler.seed_urls[0]
            try:
                result = await fetcher.fetch(test_url)
                self.logger.info(f"Test fetch successful: {result.status_code} {result.content_type}")
            except FetchError as e:
                self.logger.warning(f"Test fetch failed: {e}")

        self.logger.info("Dry run completed")


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Immigration law and policy crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                           # Run with default config.yaml
  python main.py --config my_config.yaml  # Run with custom config
  python main.py --max-pages 50           # Limit this run to 50 pages
  python main.py --dry-run                # Test configuration only
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Override crawler.max_pages_per_run'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Test configuration without actually crawling'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit logs as JSON lines'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Immigration Crawler {__version__}'
    )

    args = parser.parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    if args.max_pages is not None:
        if args.max_pages < 1:
            print("Error: --max-pages must be at least 1")
            return 1
        config.crawler.max_pages_per_run = args.max_pages

    setup_logging(config.logging, enable_json=args.json_logs)
    log_system_info()

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config, dry_run=args.dry_run))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())

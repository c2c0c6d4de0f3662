"""
Monitoring and metrics collection for the immigration crawler.
"""

import time
import logging
from typing import Dict, Any

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


RUN_COUNTERS = {
    'discovered': 'Candidate URLs offered to admission',
    'enqueued': 'URLs admitted to the frontier',
    'fetched': 'URLs fetched or attempted',
    'kept': 'Pages kept as relevant',
    'rejected': 'Pages rejected as not relevant',
    'failed': 'URLs whose fetch failed',
    'feed_items': 'Links read from feeds',
    'sitemap_urls': 'Locations read from sitemaps',
}


class MetricsCollector:
    """Prometheus metrics on a registry owned by this instance."""

    def __init__(self, enable_server: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.enable_server = enable_server
        self.prometheus_port = prometheus_port
        self.registry = CollectorRegistry()

        self.counters: Dict[str, Counter] = {
            name: Counter(f'crawler_{name}', description, registry=self.registry)
            for name, description in RUN_COUNTERS.items()
        }
        self.queue_size = Gauge(
            'crawler_queue_size',
            'Number of URLs in the frontier',
            registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus HTTP exporter if enabled."""
        if not self.enable_server:
            return
        start_http_server(self.prometheus_port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")

    def value(self, name: str) -> float:
        """Current value of a counter or the queue gauge."""
        if name == 'queue_size':
            return self.registry.get_sample_value('crawler_queue_size') or 0.0
        return self.registry.get_sample_value(f'crawler_{name}_total') or 0.0


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()

    def record(self, stat_name: str, amount: int = 1):
        """Increment the counter mirroring a RunStats field."""
        counter = self.metrics.counters.get(stat_name)
        if counter is None:
            self.logger.debug(f"No metric for stat {stat_name}")
            return
        if amount:
            counter.inc(amount)

    def update_queue_size(self, size: int):
        self.metrics.queue_size.set(size)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        runtime = time.time() - self.start_time
        values = {name: self.metrics.value(name) for name in RUN_COUNTERS}
        values['queue_size'] = self.metrics.value('queue_size')

        return {
            'runtime_seconds': runtime,
            'metrics': values,
            'rates': {
                'fetched_per_minute': values['fetched'] / (runtime / 60) if runtime > 0 else 0,
            }
        }


def initialize_monitoring(enable_server: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Build a monitor with its own registry."""
    return CrawlerMonitor(MetricsCollector(enable_server, prometheus_port))

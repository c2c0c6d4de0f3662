"""
Configuration management for the immigration crawler.
"""

import yaml
import logging
import soupsieve
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field


class ConfigError(ValueError):
    """Raised when the configuration file is missing a section or holds bad values."""
    pass


@dataclass
class CrawlerConfig:
    """Configuration for discovery sources and crawl limits."""
    user_agent: str
    allowed_domains: List[str]
    seed_urls: List[str] = field(default_factory=list)
    rss_feeds: List[str] = field(default_factory=list)
    sitemaps: List[str] = field(default_factory=list)
    max_depth: int = 2
    max_pages_per_run: int = 200
    per_domain_delay: float = 1.0
    request_timeout: float = 30.0
    max_redirects: int = 5
    save_every: int = 25


@dataclass
class ScoreRules:
    """
    Keyword scoring tables.

    domain_bonus maps a hostname to the integer added to every URL on it.
    contains_bonus maps a substring to the weight added when the lower-cased
    URL contains it. contains_penalty maps a substring to the weight subtracted
    when the lower-cased URL contains it. Every matching entry counts.
    """
    domain_bonus: Dict[str, int] = field(default_factory=dict)
    contains_bonus: Dict[str, int] = field(default_factory=dict)
    contains_penalty: Dict[str, int] = field(default_factory=dict)


@dataclass
class FilterConfig:
    """Configuration for admission and relevance scoring."""
    score_threshold: int = 3
    english_only: bool = False
    language_prefixes: Dict[str, str] = field(default_factory=dict)
    path_prefixes: Dict[str, List[str]] = field(default_factory=dict)
    main_content_selectors: List[str] = field(
        default_factory=lambda: ["main", "[role='main']", "#main-content", "article"]
    )
    immigration_terms: List[str] = field(default_factory=list)
    drop_extensions: List[str] = field(default_factory=list)
    drop_path_contains: List[str] = field(default_factory=list)
    drop_query_params_prefix: List[str] = field(default_factory=list)
    score_rules: ScoreRules = field(default_factory=ScoreRules)


@dataclass
class DatabaseConfig:
    """Configuration for the URL store."""
    type: str = "file"
    file: Dict[str, Any] = field(default_factory=lambda: {"path": "data/urls.json"})


@dataclass
class RedisConfig:
    """Configuration for Redis."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    key_prefix: str = "crawler:url:"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig
    filter: FilterConfig = field(default_factory=FilterConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _int_table(name: str, raw: Optional[Dict[str, Any]]) -> Dict[str, int]:
    """Validate a substring/domain -> integer weight table."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{name} must be a mapping, got {type(raw).__name__}")

    table = {}
    for key, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name}[{key!r}] must be an integer, got {value!r}")
        table[str(key)] = value
    return table


def _section(config_data: Dict[str, Any], name: str, cls, required: bool = False):
    """Build one dataclass section, turning unknown keys into ConfigError."""
    raw = config_data.get(name)
    if raw is None:
        if required:
            raise ConfigError(f"Missing required configuration section: {name}")
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration section {name} must be a mapping")
    try:
        return cls(**raw)
    except TypeError as e:
        raise ConfigError(f"Invalid {name} configuration: {e}") from e


def build_config(config_data: Dict[str, Any]) -> Config:
    """Build and validate a Config from an already parsed mapping."""
    if not isinstance(config_data, dict):
        raise ConfigError("Configuration root must be a mapping")

    filter_data = dict(config_data.get('filter') or {})
    rules = filter_data.pop('score_rules', None) or {}
    if not isinstance(rules, dict):
        raise ConfigError("filter.score_rules must be a mapping")

    crawler_config = _section(config_data, 'crawler', CrawlerConfig, required=True)
    try:
        filter_config = FilterConfig(**filter_data)
    except TypeError as e:
        raise ConfigError(f"Invalid filter configuration: {e}") from e

    filter_config.score_rules = ScoreRules(
        domain_bonus=_int_table('score_rules.domain_bonus', rules.get('domain_bonus')),
        contains_bonus=_int_table('score_rules.contains_bonus', rules.get('contains_bonus')),
        contains_penalty=_int_table('score_rules.contains_penalty', rules.get('contains_penalty')),
    )

    config = Config(
        crawler=crawler_config,
        filter=filter_config,
        database=_section(config_data, 'database', DatabaseConfig),
        redis=_section(config_data, 'redis', RedisConfig),
        logging=_section(config_data, 'logging', LoggingConfig),
        monitoring=_section(config_data, 'monitoring', MonitoringConfig),
    )
    validate_config(config)
    return config


def validate_config(config: Config):
    """Validate configuration values."""
    crawler = config.crawler

    if not crawler.allowed_domains:
        raise ConfigError("At least one allowed domain must be provided")

    if not (crawler.seed_urls or crawler.rss_feeds or crawler.sitemaps):
        raise ConfigError("At least one seed URL, feed or sitemap must be provided")

    if crawler.max_depth < 0:
        raise ConfigError("max_depth must be non-negative")

    if crawler.max_pages_per_run < 1:
        raise ConfigError("max_pages_per_run must be at least 1")

    if crawler.per_domain_delay < 0:
        raise ConfigError("per_domain_delay must be non-negative")

    if crawler.request_timeout <= 0:
        raise ConfigError("request_timeout must be positive")

    if crawler.save_every < 1:
        raise ConfigError("save_every must be at least 1")

    for domain, prefix in config.filter.language_prefixes.items():
        if not isinstance(prefix, str) or not prefix.startswith('/'):
            raise ConfigError(f"language_prefixes[{domain!r}] must be a path starting with '/'")

    for domain, prefixes in config.filter.path_prefixes.items():
        if not isinstance(prefixes, list):
            raise ConfigError(f"path_prefixes[{domain!r}] must be a list of paths")

    for selector in config.filter.main_content_selectors:
        try:
            soupsieve.compile(selector)
        except soupsieve.SelectorSyntaxError as e:
            raise ConfigError(f"Invalid main_content_selectors entry {selector!r}: {e}") from e

    if config.database.type not in ['file', 'redis']:
        raise ConfigError("Database type must be 'file' or 'redis'")

    logging.getLogger(__name__).debug("Configuration validation passed")


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as file:
            try:
                config_data = yaml.safe_load(file)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {self.config_path}: {e}") from e

        self._config = build_config(config_data or {})
        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config()

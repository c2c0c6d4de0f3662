import pytest

from immigration_crawler.utils.config import ConfigError, build_config, load_config


MINIMAL = """
crawler:
  user_agent: "TestCrawler/1.0"
  allowed_domains: ["www.canada.ca"]
  seed_urls: ["https://www.canada.ca/en/immigration-refugees-citizenship.html"]
"""


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_minimal_file_gets_defaults(tmp_path):
    config = load_config(write(tmp_path, MINIMAL))

    assert config.crawler.allowed_domains == ["www.canada.ca"]
    assert config.crawler.max_depth == 2
    assert config.crawler.per_domain_delay == 1.0
    assert config.filter.score_threshold == 3
    assert config.filter.english_only is False
    assert config.filter.score_rules.domain_bonus == {}
    assert config.database.type == "file"
    assert config.database.file["path"] == "data/urls.json"
    assert config.logging.json is False
    assert config.monitoring.metrics_enabled is False


def test_full_filter_section(tmp_path):
    text = MINIMAL + """
filter:
  score_threshold: 4
  english_only: true
  language_prefixes: {www.canada.ca: /en/}
  path_prefixes: {www.canada.ca: [/en/immigration-refugees-citizenship/]}
  immigration_terms: [visa, permit]
  drop_query_params_prefix: [utm_]
  score_rules:
    domain_bonus: {www.canada.ca: 2}
    contains_bonus: {/services/: 1}
    contains_penalty: {/news/: 2}
database:
  type: redis
"""
    config = load_config(write(tmp_path, text))

    assert config.filter.score_threshold == 4
    assert config.filter.language_prefixes == {"www.canada.ca": "/en/"}
    assert config.filter.score_rules.contains_penalty == {"/news/": 2}
    assert config.database.type == "redis"


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/config.yaml")


def test_unparseable_yaml(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write(tmp_path, "crawler: [unclosed"))


def test_missing_crawler_section():
    with pytest.raises(ConfigError, match="crawler"):
        build_config({"filter": {}})


def test_unknown_key_is_rejected():
    with pytest.raises(ConfigError, match="crawler"):
        build_config({"crawler": {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"],
                                  "max_speed": 11}})


@pytest.mark.parametrize("weight", ["two", 1.5, True])
def test_score_weights_must_be_integers(weight):
    data = {
        "crawler": {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"]},
        "filter": {"score_rules": {"contains_bonus": {"/visa": weight}}},
    }
    with pytest.raises(ConfigError, match="must be an integer"):
        build_config(data)


@pytest.mark.parametrize("crawler, message", [
    ({"allowed_domains": []}, "allowed domain"),
    ({"seed_urls": []}, "seed URL"),
    ({"max_depth": -1}, "max_depth"),
    ({"per_domain_delay": -0.5}, "per_domain_delay"),
    ({"save_every": 0}, "save_every"),
])
def test_invalid_crawler_values(crawler, message):
    section = {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"]}
    section.update(crawler)
    with pytest.raises(ConfigError, match=message):
        build_config({"crawler": section})


def test_language_prefix_must_be_a_path():
    data = {
        "crawler": {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"]},
        "filter": {"language_prefixes": {"a": "en"}},
    }
    with pytest.raises(ConfigError, match="language_prefixes"):
        build_config(data)


def test_bad_database_type():
    data = {
        "crawler": {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"]},
        "database": {"type": "cassandra"},
    }
    with pytest.raises(ConfigError, match="Database type"):
        build_config(data)


def test_bad_content_selector_fails_at_load():
    data = {
        "crawler": {"user_agent": "x", "allowed_domains": ["a"], "seed_urls": ["https://a/"]},
        "filter": {"main_content_selectors": ["main", "div[role="]},
    }
    with pytest.raises(ConfigError, match="main_content_selectors"):
        build_config(data)

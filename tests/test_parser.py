from immigration_crawler.crawler.parser import ContentParser

from conftest import html_page


PAGE = html_page("""
<header><a href="/en/header-link">Header</a></header>
<nav><a href="/en/nav-link">Menu</a></nav>
<main>
  <h1>Study permits</h1>
  <p>Apply for a   study
     permit before you travel.</p>
  <script>var tracking = "ignore me";</script>
  <a href="/en/study-permit/apply">Apply</a>
  <a href="apply">Relative</a>
  <a href="https://ircc.canada.ca/english/helpcentre/">Help</a>
  <a href="/en/study-permit/apply">Apply again</a>
  <a href="mailto:info@example.gc.ca">Email</a>
  <a href="tel:+18882424242">Call</a>
  <a href="#section-2">Jump</a>
  <aside><a href="/en/aside-link">Related</a></aside>
</main>
<footer><a href="/en/footer-link">Footer</a></footer>
""")


def test_extracts_main_content_text_and_links():
    content = ContentParser().extract("https://www.canada.ca/en/study/", PAGE, ["main"])

    assert content.text == "Study permits Apply for a study permit before you travel. Apply Relative Help Apply again Email Call Jump"
    assert content.links == [
        "https://www.canada.ca/en/study-permit/apply",
        "https://www.canada.ca/en/study/apply",
        "https://ircc.canada.ca/english/helpcentre/",
    ]


def test_first_matching_selector_wins():
    html = html_page('<article><a href="/a">A</a></article><div id="main-content"><a href="/b">B</a></div>')
    content = ContentParser().extract("https://example.gc.ca/", html, ["main", "#main-content", "article"])
    assert content.links == ["https://example.gc.ca/b"]
    assert content.text == "B"


def test_falls_back_to_body():
    html = html_page('<div><p>Work permits</p><a href="/work">Work</a></div><footer>Footer</footer>')
    content = ContentParser().extract("https://example.gc.ca/en/", html, ["main"])
    assert content.text == "Work permits Work"
    assert content.links == ["https://example.gc.ca/work"]


def test_default_selectors_used_when_none_given():
    html = html_page('<div role="main"><a href="/in">In</a></div><div><a href="/out">Out</a></div>')
    content = ContentParser(["[role='main']"]).extract("https://example.gc.ca/", html)
    assert content.links == ["https://example.gc.ca/in"]


def test_empty_document():
    content = ContentParser().extract("https://example.gc.ca/", "", ["main"])
    assert content.text == ""
    assert content.links == []

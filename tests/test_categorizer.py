"""
Categorizer rule order, defaults and purity.
"""
from conftest import make_result

from insights_engine.services.categorizer import (
    ACADEMIC_RESEARCH,
    BUSINESS_UPDATES,
    INSIGHT_CATEGORIES,
    INVESTMENTS,
    PARTNERSHIPS,
    PATENT_IP,
    PRODUCT_ANNOUNCEMENTS,
    STARTUP_INNOVATION,
    SUPPLY_CHAIN,
    categorize_result,
    categorize_results,
)


def test_patent_source_wins_over_everything():
    result = make_result(source="Patents", title="Startup raises funding for partnership")
    assert categorize_result(result) == PATENT_IP


def test_patent_keyword_beats_partnership_keyword():
    result = make_result(source="News", title="Patent granted after strategic partnership")
    assert categorize_result(result) == PATENT_IP


def test_academic_sources_are_research():
    for source in ("IEEE", "Google Scholar", "GoogleScholar", "PubMed", "arXiv"):
        assert categorize_result(make_result(source=source, title="Battery cathodes")) == ACADEMIC_RESEARCH


def test_academic_keyword_from_news():
    result = make_result(source="News", title="University study on electrolyzers")
    assert categorize_result(result) == ACADEMIC_RESEARCH


def test_keyword_rules_in_order():
    cases = [
        ("Shell partners with Siemens", PARTNERSHIPS),
        ("Company raised $40M, an acquisition", INVESTMENTS),
        ("Partnership and acquisition announced", PARTNERSHIPS),
        ("Funding round for a startup", INVESTMENTS),
        ("Tech startup founder interview", STARTUP_INNOVATION),
        ("Startup launches new product", STARTUP_INNOVATION),
        ("Firm unveils new plant", PRODUCT_ANNOUNCEMENTS),
        ("Supplier logistics under pressure", SUPPLY_CHAIN),
        ("New manufacturing plant opens", PRODUCT_ANNOUNCEMENTS),
    ]
    for title, expected in cases:
        assert categorize_result(make_result(source="News", title=title)) == expected, title


def test_abstract_is_considered():
    result = make_result(source="News", title="Quarterly update", abstract="A joint venture was signed")
    assert categorize_result(result) == PARTNERSHIPS


def test_default_is_business_updates():
    result = make_result(source="News", title="Quarterly earnings call recap")
    assert categorize_result(result) == BUSINESS_UPDATES


def test_case_insensitive():
    result = make_result(source="News", title="MERGER TALKS")
    assert categorize_result(result) == INVESTMENTS


def test_categorize_result_is_pure():
    result = make_result(source="News", title="Startup news")
    first = categorize_result(result)
    assert categorize_result(result) == first
    assert result.insight_category is None


def test_every_outcome_is_a_known_category():
    titles = ["", "patent", "study", "alliance", "ipo", "accelerator", "launch", "inventory", "weather"]
    for title in titles:
        assert categorize_result(make_result(source="News", title=title)) in INSIGHT_CATEGORIES


def test_categorize_results_keeps_existing_unless_overwrite():
    tagged = make_result(source="News", title="Patent filed", insight_category=BUSINESS_UPDATES)
    untagged = make_result(source="News", id="2", title="Patent filed")

    categorize_results([tagged, untagged])
    assert tagged.insight_category == BUSINESS_UPDATES
    assert untagged.insight_category == PATENT_IP

    categorize_results([tagged], overwrite=True)
    assert tagged.insight_category == PATENT_IP

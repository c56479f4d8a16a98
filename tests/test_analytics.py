"""
Chart series, executive snapshot and competitive landscape.
"""
from conftest import make_result

from insights_engine.services.analytics import (
    build_chart_data,
    determine_stage,
    executive_snapshot,
    extract_competitive_landscape,
)


def test_chart_data_counts():
    results = [
        make_result("PubMed", "1", date="2024 Mar"),
        make_result("PubMed", "2", date="2022-01-01"),
        make_result("ClinicalTrials", "3", date="2024-06-01", phase="PHASE3"),
        make_result("News", "4", date="Unknown"),
    ]
    data = build_chart_data(results)
    assert data["publicationTrend"] == [
        {"year": "2022", "publications": 1},
        {"year": "2024", "publications": 2},
    ]
    assert {"name": "PubMed", "value": 2} in data["sourceBreakdown"]
    assert data["studyTypeDistribution"] == [{"name": "PHASE3", "value": 1}]


def test_snapshot_thresholds():
    results = (
        [make_result("News", f"n{i}") for i in range(6)]
        + [make_result("IndustryNews", "in1")]
        + [make_result("ClinicalTrials", f"c{i}") for i in range(4)]
        + [make_result("Patents", f"p{i}") for i in range(5)]
    )
    assert executive_snapshot(results) == {
        "market_momentum": "High",
        "competitive_intensity": "Intense",
        "commercial_readiness": "Advanced",
        "ip_innovation": "Strong",
    }
    assert executive_snapshot([]) == {
        "market_momentum": "Low",
        "competitive_intensity": "Limited",
        "commercial_readiness": "Early Stage",
        "ip_innovation": "Emerging",
    }


def test_stage_rules_first_match_wins():
    text = "siemens is scaling a pilot plant and expects revenue"
    assert determine_stage(text, "siemens") == {"index": 7, "name": "Commercial"}
    assert determine_stage("siemens runs a pilot", "siemens") == {"index": 2, "name": "Pilot"}
    assert determine_stage("siemens", "siemens") == {"index": 0, "name": "Research"}


def test_landscape_uses_word_boundaries_and_cap():
    results = [make_result("News", "1", "Bridge design review", abstract="Agents and engineering")]
    assert extract_competitive_landscape(results) == []

    synthesis = " ".join(["shell", "bp", "chevron", "eni", "siemens", "abb", "tesla", "vestas", "linde", "catl"])
    landscape = extract_competitive_landscape([], synthesis)
    assert len(landscape) == 8
    assert landscape[0]["name"] == "Shell"
    assert landscape[0]["geography"] == "Netherlands/EU"


def test_landscape_title_cases_multiword_names():
    results = [make_result("News", "1", "Plug Power opens electrolyzer facility")]
    company = extract_competitive_landscape(results)[0]
    assert company["name"] == "Plug Power"
    assert company["stage_name"] == "Production"

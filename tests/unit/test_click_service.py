"""
Unit tests for click analytics: channel and Sub ID shares, daily totals and
the comparison between imported clicks and clicks declared on ad spends.
Run: pytest tests/unit/test_click_service.py -v
"""
import pytest

from app.schemas.ad_spend import AdSpend
from app.schemas.click import ClickRow
from app.services.click_service import ClickService
from app.utils.tables import SORT_ASC


@pytest.fixture
def clicks():
    return [
        ClickRow(date="2024-01-02", channel="Instagram", sub_id="A", clicks=10),
        ClickRow(date="02/01/2024", channel=None, sub_id="A-", clicks="5"),
        {"date": "2024-01-01", "channel": "Instagram", "sub_id": None, "clicks": 5},
    ]


def test_total_clicks(clicks):
    assert ClickService.total_clicks(clicks) == 20


def test_by_channel_defaults_to_others(clicks):
    shares = ClickService.by_channel(clicks, 20)
    assert [(s.name, s.count) for s in shares] == [("Instagram", 15), ("Others", 5)]
    assert shares[0].percentage == pytest.approx(75)


def test_by_sub_id_normalizes_tags(clicks):
    shares = ClickService.by_sub_id(clicks, 20)
    assert [(s.name, s.count) for s in shares] == [("A", 15), ("Sem Sub ID", 5)]


def test_daily_sorting(clicks):
    asc = ClickService.daily(clicks, SORT_ASC)
    assert [(d.day, d.count) for d in asc] == [("2024-01-01", 5), ("2024-01-02", 15)]
    desc = ClickService.daily(clicks)
    assert desc[0].day == "2024-01-02"


def test_comparison_against_ad_spends(clicks):
    spends = [
        AdSpend(date="2024-01-02", amount=10, sub_id="A", clicks=20),
        AdSpend(date="2024-01-02", amount=5, sub_id=None, clicks=3),
    ]
    comparison = {c.sub_id: c for c in ClickService.comparison(clicks, spends)}

    assert comparison["A"].csv_clicks == 15
    assert comparison["A"].ads_clicks == 20
    assert comparison["A"].diff == 5
    assert comparison["A"].diff_percent == pytest.approx(100 * 5 / 15)
    assert comparison["Geral"].csv_clicks == 0
    assert comparison["Geral"].diff_percent == 0
    assert comparison["Sem Sub ID"].ads_clicks == 0


def test_summarize_empty():
    summary = ClickService.summarize([])
    assert summary.total_clicks == 0
    assert summary.by_channel == []
    assert summary.comparison == []

import math
from datetime import datetime
from zoneinfo import ZoneInfo

from r6tracker.analytics.rankings import RANKING_METRICS, build_rankings
from r6tracker.analytics.windows import resolve_window
from r6tracker.domain.contracts import AggregateSummary, PlayerFailure, PlayerRef, PlayerReport

TZ = ZoneInfo("America/Fortaleza")
WINDOW = resolve_window("today", now=datetime(2026, 10, 18, 12, tzinfo=TZ), tz=TZ)


def report(name, **kw):
    kills, deaths = kw.get("kills", 0), kw.get("deaths", 0)
    if "kd" not in kw:
        kw["kd"] = kills / deaths if deaths else (math.inf if kills else 0.0)
    return PlayerReport(
        player=PlayerRef("g1", name),
        source_url=f"https://r6.tracker.network/r6siege/profile/ubi/{name}/overview",
        summary=AggregateSummary(**kw),
        window=WINDOW,
    )


def names(board):
    return [e.player.username for e in board]


def test_boards_for_every_metric_sorted_descending():
    results = [
        report("alpha", kills=10, deaths=5, wins=1, headshot_pct=30.0),
        report("bravo", kills=30, deaths=20, wins=3, headshot_pct=50.0),
        report("charlie", kills=20, deaths=40, wins=2, headshot_pct=10.0),
    ]
    rankings = build_rankings(results)
    assert set(rankings) == set(RANKING_METRICS)
    assert names(rankings["kills"]) == ["bravo", "charlie", "alpha"]
    assert names(rankings["deaths"]) == ["charlie", "bravo", "alpha"]
    assert names(rankings["kd"]) == ["alpha", "bravo", "charlie"]
    assert names(rankings["headshot_pct"]) == ["bravo", "alpha", "charlie"]
    assert names(rankings["wins"]) == ["bravo", "charlie", "alpha"]
    assert rankings["kills"][0].value == 30


def test_failures_are_excluded_and_counted():
    results = [
        report("alpha", kills=10, deaths=5),
        PlayerFailure(player=PlayerRef("g1", "ghost"), reason="fetch failed (blocked) after 6 attempts"),
        report("bravo", kills=3, deaths=5),
    ]
    rankings = build_rankings(results)
    assert rankings.considered == 2
    assert rankings.failed == 1
    assert rankings.total == 3
    for metric in rankings:
        assert "ghost" not in names(rankings[metric])


def test_infinite_kd_left_out_of_kd_board_only():
    results = [report("deathless", kills=7, deaths=0), report("normal", kills=4, deaths=2)]
    rankings = build_rankings(results)
    assert names(rankings["kd"]) == ["normal"]
    assert names(rankings["kills"]) == ["deathless", "normal"]


def test_truncates_to_top_n():
    results = [report(f"p{i}", kills=i, deaths=1) for i in range(8)]
    rankings = build_rankings(results, top_n=5)
    assert names(rankings["kills"]) == ["p7", "p6", "p5", "p4", "p3"]
    assert all(len(rankings[m]) <= 5 for m in rankings)


def test_ties_break_on_kills_then_username():
    results = [
        report("Zulu", wins=2, kills=10, deaths=10),
        report("alpha", wins=2, kills=10, deaths=10),
        report("Mike", wins=2, kills=15, deaths=10),
    ]
    rankings = build_rankings(results)
    assert names(rankings["wins"]) == ["Mike", "alpha", "Zulu"]


def test_empty_input_gives_empty_boards():
    rankings = build_rankings([])
    assert rankings.total == 0
    assert all(rankings[m] == [] for m in rankings)

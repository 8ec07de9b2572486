from r6tracker.data_collection.candidates import normalize_platform, profile_url, resolve_candidates


def test_first_candidate_is_overview_page():
    urls = resolve_candidates("SomePlayer")
    assert urls[0] == "https://r6.tracker.network/r6siege/profile/ubi/SomePlayer/overview"
    assert len(urls) == len(set(urls))
    assert len(urls) >= 3


def test_platform_aliases():
    assert normalize_platform("PS5") == "psn"
    assert normalize_platform("xbox") == "xbl"
    assert normalize_platform("") == "ubi"
    assert normalize_platform(None, default="psn") == "psn"
    assert normalize_platform("unknown-console") == "ubi"
    assert all("/psn/" in u for u in resolve_candidates("p", "playstation"))


def test_username_is_url_encoded():
    urls = resolve_candidates(" Some Player/1 ")
    assert "Some%20Player%2F1" in urls[0]


def test_profile_url_matches_first_candidate():
    assert profile_url("abc", "xbl") == resolve_candidates("abc", "xbl")[0]

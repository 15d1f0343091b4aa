from bingo_stats import compute_head_to_head


def test_record_is_symmetric(make_series):
    matches = make_series("ana", "bo", "WWLWL")

    ana = compute_head_to_head("ana", matches)
    bo = compute_head_to_head("bo", matches)

    assert len(ana) == 1
    assert (ana[0].opponent.id, ana[0].wins, ana[0].losses, ana[0].total) == ("bo", 3, 2, 5)
    assert (bo[0].opponent.id, bo[0].wins, bo[0].losses, bo[0].total) == ("ana", 2, 3, 5)


def test_third_party_win_is_shared_but_not_a_loss_to_others(make_match, make_series):
    matches = make_series("ana", "bo", "WL")
    matches.append(make_match("trio", "2025-02-01", ["ana", "bo", "cy"], "cy"))

    records = {r.opponent.id: r for r in compute_head_to_head("ana", matches)}

    assert (records["bo"].wins, records["bo"].losses, records["bo"].total) == (1, 1, 3)
    assert records["bo"].draws == 1
    assert (records["cy"].wins, records["cy"].losses, records["cy"].total) == (0, 1, 1)


def test_sorted_by_total_then_first_seen(make_match):
    matches = [
        make_match("1", "2025-01-01", ["ana", "cy"], "ana"),
        make_match("2", "2025-01-02", ["ana", "bo"], "bo"),
        make_match("3", "2025-01-03", ["ana", "dee"], "dee"),
        make_match("4", "2025-01-04", ["ana", "dee"], "ana"),
    ]

    order = [r.opponent.id for r in compute_head_to_head("ana", matches)]

    assert order == ["dee", "cy", "bo"]


def test_matches_without_the_player_are_ignored(make_match):
    matches = [make_match("1", "2025-01-01", ["bo", "cy"], "bo")]
    assert compute_head_to_head("ana", matches) == []

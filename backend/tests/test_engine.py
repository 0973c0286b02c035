"""Tests for the pure scoring, ranking and statistics functions.

No database involved: vote rows are plain namespaces carrying the same
attributes as the ``votes`` table.
"""

import uuid
from types import SimpleNamespace

import pytest

from top1000.core.exceptions import InputError
from top1000.services.ranking import (
    FilterOptions,
    GameTally,
    count_categories,
    group_votes,
    page_count,
    paginate,
    rank_tallies,
    validate_paging,
)
from top1000.services.scoring import VoteWeight


def make_vote(game_id, position, comment=None, gender=None, age=0, **fields):
    row = {
        "game_id": game_id,
        "position": position,
        "comment": comment,
        "gender": gender,
        "age": age,
        "gamer": False,
        "journalist": False,
        "scientist": False,
        "critic": False,
        "wasted": False,
    }
    for dimension in ("genres", "gameplay", "perspectives", "settings", "topics", "platforms"):
        row[f"game_{dimension}"] = []
    row.update(fields)
    return SimpleNamespace(**row)


# ============================================================================
# SCORING
# ============================================================================

class TestVoteWeight:
    """Position -> weight mapping."""

    def test_end_points(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        assert weight(1) == 10
        assert weight(30) == 1

    def test_monotonically_non_increasing(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        values = [weight(p) for p in range(1, 31)]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_matches_linear_formula(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        m = (1 - 10) / 29
        n = (30 * 10 - 1) / 29
        for position in (2, 7, 15, 29):
            assert weight(position) == pytest.approx(n + m * position)

    def test_positions_beyond_last_counted_place_weigh_one(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        assert weight(31) == 1
        assert weight(100) == 1

    def test_positions_below_one_clamped_to_max(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        assert weight(0) == 10

    def test_single_vote_per_user(self):
        weight = VoteWeight(votes_per_user=1, max_weight=10)
        assert weight(1) == 10
        assert weight(5) == 10

    def test_defaults_from_settings(self):
        weight = VoteWeight()
        assert weight.votes_per_user == 30
        assert weight.max_weight == 10

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            VoteWeight(votes_per_user=0, max_weight=10)
        with pytest.raises(ValueError):
            VoteWeight(votes_per_user=30, max_weight=0)


# ============================================================================
# FILTER OPTIONS
# ============================================================================

class TestFilterOptions:
    """Demographic filter validation and matching."""

    def test_empty_filter_matches_everything(self):
        filters = FilterOptions()
        assert filters.is_empty
        assert filters.matches(make_vote(uuid.uuid4(), 1, gender="male", age=4))
        assert filters.cache_suffix() == "all"

    def test_matches_on_all_fields(self):
        filters = FilterOptions(gender="female", age=3, group="critic")
        assert filters.matches(make_vote(uuid.uuid4(), 1, gender="female", age=3, critic=True))
        assert not filters.matches(make_vote(uuid.uuid4(), 1, gender="male", age=3, critic=True))
        assert not filters.matches(make_vote(uuid.uuid4(), 1, gender="female", age=2, critic=True))
        assert not filters.matches(make_vote(uuid.uuid4(), 1, gender="female", age=3))

    def test_cache_suffix_distinguishes_filters(self):
        assert FilterOptions(gender="male").cache_suffix() != FilterOptions(age=2).cache_suffix()
        assert FilterOptions(gender="male", age=2).cache_suffix() == "gmale:a2"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"gender": "robot"},
            {"age": 0},
            {"age": 10},
            {"group": "speedrunner"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(InputError):
            FilterOptions(**kwargs)


# ============================================================================
# AGGREGATION
# ============================================================================

class TestGrouping:
    """Group-by-game accumulation and ordering."""

    def test_scores_summed_per_game(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        game_x = uuid.uuid4()
        tallies = group_votes([make_vote(game_x, 1), make_vote(game_x, 30)], weight)

        assert len(tallies) == 1
        assert tallies[0].score == 11
        assert tallies[0].votes == 2

    def test_comments_in_insertion_order_without_empty(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        game = uuid.uuid4()
        votes = [
            make_vote(game, 1, comment="first"),
            make_vote(game, 2, comment=None),
            make_vote(game, 3, comment=""),
            make_vote(game, 4, comment="first"),
        ]
        tallies = group_votes(votes, weight)
        assert tallies[0].comments == ["first", "first"]

    def test_predicate_skips_rows(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        game = uuid.uuid4()
        votes = [make_vote(game, 1, gender="male"), make_vote(game, 1, gender="female")]
        tallies = group_votes(votes, weight, FilterOptions(gender="female").matches)
        assert tallies[0].votes == 1

    def test_sum_of_votes_equals_matching_rows(self):
        weight = VoteWeight(votes_per_user=30, max_weight=10)
        games = [uuid.uuid4() for _ in range(4)]
        votes = [
            make_vote(games[i % 4], (i % 30) + 1, gender="male" if i % 3 else "female")
            for i in range(50)
        ]
        filters = FilterOptions(gender="male")
        tallies = group_votes(votes, weight, filters.matches)
        assert sum(t.votes for t in tallies) == sum(1 for v in votes if filters.matches(v))

    def test_rank_by_score_then_id_string(self):
        ids = sorted((uuid.uuid4() for _ in range(3)), key=str)
        tallies = [
            GameTally(game_id=ids[2], score=5.0),
            GameTally(game_id=ids[1], score=9.0),
            GameTally(game_id=ids[0], score=5.0),
        ]
        ranked = rank_tallies(tallies)
        assert [t.game_id for t in ranked] == [ids[1], ids[0], ids[2]]
        for a, b in zip(ranked, ranked[1:]):
            assert a.score > b.score or (a.score == b.score and str(a.game_id) < str(b.game_id))


# ============================================================================
# PAGINATION
# ============================================================================

class TestPagination:
    """Paging bounds and page count."""

    def test_page_count_uses_limit(self):
        assert page_count(0, 20) == 0
        assert page_count(1, 20) == 1
        assert page_count(20, 20) == 1
        assert page_count(21, 20) == 2
        assert page_count(21, 5) == 5

    def test_slices_requested_page(self):
        tallies = [GameTally(game_id=uuid.uuid4(), score=float(100 - i)) for i in range(12)]
        page, pages = paginate(tallies, 3, 5)
        assert pages == 3
        assert page == tallies[10:12]

    def test_page_past_end_is_empty(self):
        tallies = [GameTally(game_id=uuid.uuid4(), score=1.0)]
        page, pages = paginate(tallies, 2, 5)
        assert page == []
        assert pages == 1

    def test_empty_ranking(self):
        assert paginate([], 1, 20) == ([], 0)

    @pytest.mark.parametrize(
        "page,limit",
        [(0, 20), (100000, 20), (1, 4), (1, 101)],
    )
    def test_out_of_bounds_rejected(self, page, limit):
        with pytest.raises(InputError):
            validate_paging(page, limit)

    def test_bounds_inclusive(self):
        validate_paging(1, 5)
        validate_paging(99999, 100)


# ============================================================================
# STATISTICS
# ============================================================================

class TestCountCategories:
    """Tag counting per dimension."""

    def test_counts_each_tag_once_per_vote(self):
        game_a, game_b = uuid.uuid4(), uuid.uuid4()
        votes = [
            make_vote(game_a, 1, game_genres=["Action"], game_platforms=["DOS", "Windows"]),
            make_vote(game_b, 2, game_genres=["Adventure"], game_platforms=["DOS"]),
        ]
        stats = count_categories(votes)

        assert {"name": "Action", "count": 1} in stats["genres"]
        assert stats["platforms"] == [
            {"name": "DOS", "count": 2},
            {"name": "Windows", "count": 1},
        ]
        assert set(stats) == {
            "genres", "gameplay", "perspectives", "settings", "topics", "platforms", "decades",
        }

    def test_decades_from_release_year(self):
        votes = [
            make_vote(uuid.uuid4(), 1, game_year=1993),
            make_vote(uuid.uuid4(), 2, game_year=1998),
            make_vote(uuid.uuid4(), 3, game_year=1985),
            make_vote(uuid.uuid4(), 4, game_year=2000),
            make_vote(uuid.uuid4(), 5, game_year=0),
        ]
        stats = count_categories(votes)

        assert stats["decades"] == [
            {"name": "1990s", "count": 2},
            {"name": "1980s", "count": 1},
            {"name": "2000s", "count": 1},
        ]

    def test_ties_ordered_by_name(self):
        votes = [make_vote(uuid.uuid4(), 1, game_topics=["Zombies", "Aliens"])]
        stats = count_categories(votes)
        assert [e["name"] for e in stats["topics"]] == ["Aliens", "Zombies"]

    def test_predicate_applies(self):
        votes = [
            make_vote(uuid.uuid4(), 1, gender="female", game_genres=["Action"]),
            make_vote(uuid.uuid4(), 1, gender="male", game_genres=["Racing"]),
        ]
        stats = count_categories(votes, FilterOptions(gender="male").matches)
        assert stats["genres"] == [{"name": "Racing", "count": 1}]

    def test_no_votes(self):
        stats = count_categories([])
        assert all(entries == [] for entries in stats.values())

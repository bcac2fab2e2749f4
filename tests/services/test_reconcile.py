"""Tests for merge-upsert reconciliation."""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from korastats_sync.services.mappers.entity import PERSON_MAPPERS
from korastats_sync.services.mappers.team import map_team, summarize_team_stats
from korastats_sync.services.mappers.tournament import map_tournament
from korastats_sync.services.sync.reconcile import (
    POLICIES,
    merge_season_array,
    reconcile,
    season_key,
)

NOW = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(hours=6)


def _team_entry(season, wins_home, wins_away):
    return {
        "league": {"id": 840, "name": "Saudi Pro League", "season": season},
        "fixtures": {
            "played": {"home": 5, "away": 5, "total": 10},
            "wins": {"home": wins_home, "away": wins_away, "total": wins_home + wins_away},
        },
        "goals": {
            "for_": {"total": {"home": 10, "away": 8, "total": 18}},
            "against": {"total": {"home": 3, "away": 4, "total": 7}},
        },
        "clean_sheet": {"home": 2, "away": 1, "total": 3},
    }


def _team_doc(season, wins_home=3, wins_away=2):
    entry = _team_entry(season, wins_home, wins_away)
    return {
        "korastats_id": 10,
        "name": "Al Hilal",
        "tournament_stats": [entry],
        "stats_summary": summarize_team_stats([entry]),
        "tournaments": [{"id": 840, "season": season}],
    }


class TestSeasonKey:
    @pytest.mark.parametrize(
        "element, expected",
        [
            ({"league": {"id": 840, "season": 2024}}, (840, 2024)),
            ({"id": 840, "season": 2024}, (840, 2024)),
            ({"tournament_id": 840, "season": "2024/2025"}, (840, "2024/2025")),
            ({"year": 2024, "rounds": []}, (None, 2024)),
            ({"rounds": []}, None),
            ("not a dict", None),
        ],
    )
    def test_shapes(self, element, expected):
        assert season_key(element) == expected


class TestMergeSeasonArray:
    def test_replaces_matching_and_appends_new(self):
        existing = [{"id": 1, "season": 2023, "v": "a"}, {"id": 1, "season": 2024, "v": "b"}]
        incoming = [{"id": 1, "season": 2024, "v": "B"}, {"id": 2, "season": 2024, "v": "c"}]

        assert merge_season_array(existing, incoming) == [
            {"id": 1, "season": 2023, "v": "a"},
            {"id": 1, "season": 2024, "v": "B"},
            {"id": 2, "season": 2024, "v": "c"},
        ]

    def test_duplicate_incoming_keys_keep_last(self):
        incoming = [{"id": 1, "season": 2024, "v": 1}, {"id": 1, "season": 2024, "v": 2}]
        assert merge_season_array([], incoming) == [{"id": 1, "season": 2024, "v": 2}]

    def test_keyless_elements_are_not_duplicated(self):
        existing = [{"note": "x"}]
        assert merge_season_array(existing, [{"note": "x"}, {"note": "y"}]) == [
            {"note": "x"},
            {"note": "y"},
        ]

    def test_inputs_are_not_mutated(self):
        existing = [{"id": 1, "season": 2024, "v": "a"}]
        incoming = [{"id": 1, "season": 2024, "v": "b"}]
        merge_season_array(existing, incoming)
        assert existing == [{"id": 1, "season": 2024, "v": "a"}]


class TestReconcile:
    def test_new_document(self):
        doc = reconcile(None, {"korastats_id": 7, "name": "Kingdom Arena"}, POLICIES["matches"], NOW)

        assert doc["sync_version"] == 1
        assert doc["last_synced"] == NOW.isoformat()
        assert doc["created_at"] == NOW.isoformat()

    def test_idempotent_apart_from_sync_fields(self, team_bundle):
        incoming = map_team(team_bundle)
        first = reconcile(None, incoming, POLICIES["teams"], NOW)
        second = reconcile(first, incoming, POLICIES["teams"], LATER)

        assert second["sync_version"] == 2
        assert second["created_at"] == NOW.isoformat()
        assert second["last_synced"] == LATER.isoformat()
        strip = {"sync_version", "last_synced", "created_at"}
        assert {k: v for k, v in first.items() if k not in strip} == {
            k: v for k, v in second.items() if k not in strip
        }

    def test_two_seasons_yield_exactly_two_entries(self):
        stored = reconcile(None, _team_doc(2023), POLICIES["teams"], NOW)
        merged = reconcile(stored, _team_doc(2024), POLICIES["teams"], LATER)

        assert [e["league"]["season"] for e in merged["tournament_stats"]] == [2023, 2024]
        assert merged["tournaments"] == [
            {"id": 840, "season": 2023},
            {"id": 840, "season": 2024},
        ]

        resynced = reconcile(merged, _team_doc(2024, wins_home=5), POLICIES["teams"], LATER)
        assert len(resynced["tournament_stats"]) == 2
        assert resynced["tournament_stats"][1]["fixtures"]["wins"]["home"] == 5

    def test_summary_is_recomputed_over_merged_entries(self):
        stored = reconcile(None, _team_doc(2023, 3, 2), POLICIES["teams"], NOW)
        merged = reconcile(stored, _team_doc(2024, 4, 1), POLICIES["teams"], LATER)

        assert merged["stats_summary"] == summarize_team_stats(merged["tournament_stats"])
        assert merged["stats_summary"]["wins"] == {"home": 7, "away": 3}
        assert merged["stats_summary"]["gamesPlayed"] == {"home": 10, "away": 10}

    def test_none_does_not_overwrite(self):
        stored = reconcile(None, {"korastats_id": 1, "name": "A", "founded": 1957}, POLICIES["teams"], NOW)
        merged = reconcile(stored, {"korastats_id": 1, "name": "B", "founded": None}, POLICIES["teams"], LATER)

        assert merged["name"] == "B"
        assert merged["founded"] == 1957

    def test_incoming_sync_fields_are_ignored(self):
        stored = reconcile(None, {"korastats_id": 1}, POLICIES["players"], NOW)
        merged = reconcile(
            stored,
            {"korastats_id": 1, "sync_version": 99, "created_at": "1999-01-01"},
            POLICIES["players"],
            LATER,
        )

        assert merged["sync_version"] == 2
        assert merged["created_at"] == NOW.isoformat()

    def test_existing_is_not_mutated(self):
        stored = reconcile(None, _team_doc(2023), POLICIES["teams"], NOW)
        reconcile(stored, _team_doc(2024), POLICIES["teams"], LATER)
        assert len(stored["tournament_stats"]) == 1
        assert stored["sync_version"] == 1

    def test_unlabelled_tournament_season_is_replaced_not_appended(self, tournament_bundle):
        unlabelled = dataclasses.replace(
            tournament_bundle,
            structure=tournament_bundle.structure.model_copy(update={"season": None}),
            listing=tournament_bundle.listing.model_copy(update={"season": None}),
        )
        first = map_tournament(dataclasses.replace(unlabelled, matches=unlabelled.matches[:1]), now=NOW)
        second = map_tournament(unlabelled, now=NOW)
        assert first["seasons"][0]["rounds"] != second["seasons"][0]["rounds"]

        stored = reconcile(None, first, POLICIES["tournaments"], NOW)
        merged = reconcile(stored, second, POLICIES["tournaments"], LATER)

        assert len(merged["seasons"]) == 1
        assert merged["seasons"][0]["rounds"] == second["seasons"][0]["rounds"]

    def test_player_seasons_accumulate(self, player_bundle):
        earlier = PERSON_MAPPERS["player"](dataclasses.replace(player_bundle, season="2023/2024"))
        current = PERSON_MAPPERS["player"](player_bundle)

        stored = reconcile(None, earlier, POLICIES["players"], NOW)
        merged = reconcile(stored, current, POLICIES["players"], LATER)
        resynced = reconcile(merged, current, POLICIES["players"], LATER)

        assert [e["league"]["season"] for e in resynced["stats"]] == [2023, 2024]
        assert resynced["career_summary"]["total_matches"] == 24
        assert [c["season"] for c in resynced["career_summary"]["careerData"]] == [2023, 2024]

    def test_player_season_is_replaced_on_resync(self, player_bundle):
        stored = reconcile(None, PERSON_MAPPERS["player"](player_bundle), POLICIES["players"], NOW)
        stats = player_bundle.tournament_stats.model_copy(
            update={"stats": {"Admin": {"MatchesPlayed": 13}}}
        )
        refreshed = PERSON_MAPPERS["player"](dataclasses.replace(player_bundle, tournament_stats=stats))

        merged = reconcile(stored, refreshed, POLICIES["players"], LATER)

        assert len(merged["stats"]) == 1
        assert merged["stats"][0]["games"]["appearences"] == 13
        assert merged["career_summary"]["total_matches"] == 13

    def test_coach_history_survives_other_tournaments(self, coach_bundle):
        cup = coach_bundle.tournament.model_copy(update={"id": 999, "tournament": "Kings Cup"})
        league_doc = PERSON_MAPPERS["coach"](coach_bundle)
        cup_doc = PERSON_MAPPERS["coach"](dataclasses.replace(coach_bundle, tournament=cup))

        stored = reconcile(None, league_doc, POLICIES["coaches"], NOW)
        merged = reconcile(stored, cup_doc, POLICIES["coaches"], LATER)

        assert [e["league"]["id"] for e in merged["career_history"]] == [840, 999]
        assert [e["league"]["id"] for e in merged["stats"]] == [840, 999]
        assert merged["performance"]["matches"] == 20
        assert merged["performance"]["win_percentage"] == 70.0

    def test_referee_matches_follow_career_stats(self, referee_bundle):
        earlier = PERSON_MAPPERS["referee"](dataclasses.replace(referee_bundle, season="2023/2024"))
        current = PERSON_MAPPERS["referee"](referee_bundle)

        stored = reconcile(None, earlier, POLICIES["referees"], NOW)
        merged = reconcile(stored, current, POLICIES["referees"], LATER)

        assert len(merged["career_stats"]) == 2
        assert merged["matches"] == 16

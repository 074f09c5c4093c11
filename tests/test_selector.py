"""Tests for next-episode selection."""

from models.enums import AccessType
from models.novel import Novel
from workflow.selector import resolve_search_term, select_next_episode


class TestResolveSearchTerm:
    def test_defaults_to_novel_title(self):
        assert resolve_search_term(Novel(id=1, title="Barbarian")) == "Barbarian"

    def test_override_wins(self):
        assert resolve_search_term(Novel(id=1, title="Barbarian"), " Game ") == "Game"

    def test_blank_override_falls_back(self):
        assert resolve_search_term(Novel(id=1, title="Barbarian"), "   ") == "Barbarian"


class TestSelectNextEpisode:
    def test_picks_lowest_number(self, db, sample_novel, advance_episodes):
        episode = select_next_episode(db, sample_novel)
        assert episode.episode_number == 5

    def test_ignores_free_episodes(self, db, sample_novel, make_episode):
        make_episode(1, access=AccessType.FREE)
        make_episode(4)
        assert select_next_episode(db, sample_novel).episode_number == 4

    def test_ignores_episodes_without_number(self, db, sample_novel, make_episode):
        make_episode(None, title="Surviving The Game As A Barbarian Side Story")
        make_episode(9)
        assert select_next_episode(db, sample_novel).episode_number == 9

    def test_title_match_is_case_insensitive(self, db, sample_novel, make_episode):
        make_episode(3, title="SURVIVING THE GAME AS A BARBARIAN ep 3")
        assert select_next_episode(db, sample_novel).episode_number == 3

    def test_other_novels_are_not_selected(self, db, sample_novel, make_episode):
        make_episode(1, title="Another Story Episode 1")
        assert select_next_episode(db, sample_novel) is None

    def test_search_term_override(self, db, sample_novel, make_episode):
        make_episode(2, title="Barbarian Ep 2")
        assert select_next_episode(db, sample_novel) is None
        assert select_next_episode(db, sample_novel, "barbarian").episode_number == 2

    def test_ties_broken_by_id(self, db, sample_novel, make_episode):
        first = make_episode(6)
        make_episode(6, title="Surviving The Game As A Barbarian Episode 6 (repost)")
        assert select_next_episode(db, sample_novel).id == first.id

    def test_none_when_nothing_qualifies(self, db, sample_novel):
        assert select_next_episode(db, sample_novel) is None

import itertools

import pytest

from madlibs.models.game import Blank
from madlibs.services import lifecycle
from madlibs.services.errors import AlreadySubmitted, GameNotActive, NotFound, ValidationError
from madlibs.services.game_service import GameService
from madlibs.services.game_store import GameStore, MemoryBackend
from madlibs.services.ledger import append_submissions

STORY = "A [[BLANK:b1:Noun]] and [[BLANK:b2:Verb]]"
BLANKS = [Blank(id="b1", type="Noun", index=1), Blank(id="b2", type="Verb", index=2)]


def _active(players):
    game = lifecycle.start(lifecycle.create_draft("ABC123", "T", STORY, BLANKS))
    for pid in players:
        game = lifecycle.join(game, pid, pid.upper())
    return game


class InterleavingBackend(MemoryBackend):
    """Runs a one-shot hook right after the next read, before the reader writes back."""

    def __init__(self):
        super().__init__()
        self.after_next_get = None

    def get(self, key):
        raw = super().get(key)
        hook, self.after_next_get = self.after_next_get, None
        if hook is not None:
            hook()
        return raw


def test_append_one_entry_per_blank():
    game = append_submissions(_active(["p1"]), "p1", "P1", {"b1": " cat ", "b2": "run"})

    assert [s.answer for s in game.submissions["b1"]] == ["cat"]
    assert [s.player_name for s in game.submissions["b2"]] == ["P1"]


def test_resubmission_is_rejected_without_duplicates():
    game = append_submissions(_active(["p1"]), "p1", "P1", {"b1": "cat", "b2": "run"})

    with pytest.raises(AlreadySubmitted):
        append_submissions(game, "p1", "P1", {"b1": "dog", "b2": "walk"})
    assert [s.answer for s in game.submissions["b1"]] == ["cat"]


def test_partial_resubmission_only_fills_missing_blanks():
    game = _active(["p1"])
    game = append_submissions(game, "p1", "P1", {"b1": "cat", "b2": "run"})
    # a new blank appears for which p1 has no entry yet
    game = game.model_copy(update={"blanks": BLANKS + [Blank(id="b3", type="Adjective", index=3)]})

    game = append_submissions(game, "p1", "P1", {"b1": "dog", "b2": "walk", "b3": "red"})
    assert [s.answer for s in game.submissions["b1"]] == ["cat"]
    assert [s.answer for s in game.submissions["b3"]] == ["red"]


def test_unanswered_blanks_are_counted():
    with pytest.raises(ValidationError) as exc:
        append_submissions(_active(["p1"]), "p1", "P1", {"b1": "cat", "b2": "   "})
    assert exc.value.details["unanswered"] == 1
    assert "1 remaining" in exc.value.message


def test_submissions_require_active_game_and_joined_player():
    draft = lifecycle.create_draft("ABC123", "T", STORY, BLANKS)
    with pytest.raises(GameNotActive):
        append_submissions(draft, "p1", "P1", {"b1": "cat", "b2": "run"})
    with pytest.raises(NotFound):
        append_submissions(_active(["p1"]), "ghost", "Ghost", {"b1": "cat", "b2": "run"})
    ended = lifecycle.end(_active(["p1"]))
    with pytest.raises(GameNotActive):
        append_submissions(ended, "p1", "P1", {"b1": "cat", "b2": "run"})


def test_n_players_yield_n_entries_in_any_order():
    players = ["p1", "p2", "p3", "p4"]
    for order in itertools.permutations(players):
        game = _active(players)
        for pid in order:
            game = append_submissions(game, pid, pid.upper(), {"b1": f"n-{pid}", "b2": f"v-{pid}"})
        assert len(game.submissions["b1"]) == len(players)
        assert {s.player_id for s in game.submissions["b2"]} == set(players)


def test_interleaved_read_modify_write_loses_nothing():
    backend = InterleavingBackend()
    tab_a = GameService(GameStore(backend))
    tab_b = GameService(GameStore(backend))

    game = tab_a.create_game("T", STORY)
    tab_a.start_game(game.code)
    _, alice = tab_a.join_game(game.code, "Alice")
    _, bob = tab_b.join_game(game.code, "Bob")

    # Bob's whole submit lands between Alice's read and Alice's write
    backend.after_next_get = lambda: tab_b.submit_answers(game.code, bob, {"b1": "dinosaur", "b2": "dance"})
    final = tab_a.submit_answers(game.code, alice, {"b1": "banana", "b2": "sing"})

    assert {s.answer for s in final.submissions["b1"]} == {"banana", "dinosaur"}
    stored = tab_b.get_game(game.code)
    assert len(stored.submissions["b1"]) == 2
    assert len(stored.submissions["b2"]) == 2


def test_unconditional_writes_of_stale_copies_lose_an_update(store):
    """Last write wins when the version check is bypassed (documented limitation)."""
    service = GameService(store)
    game = service.create_game("T", STORY)
    service.start_game(game.code)
    _, alice = service.join_game(game.code, "Alice")
    _, bob = service.join_game(game.code, "Bob")

    stale_a = store.load(game.code)
    stale_b = store.load(game.code)
    store.save(append_submissions(stale_a, alice, "Alice", {"b1": "banana", "b2": "sing"}))
    store.save(append_submissions(stale_b, bob, "Bob", {"b1": "dinosaur", "b2": "dance"}))

    assert len(store.load(game.code).submissions["b1"]) == 1


def test_record_submission_uses_joined_name(service):
    game = service.create_game("T", STORY)
    service.start_game(game.code)
    _, pid = service.join_game(game.code, "Alice")

    stored = service.submit_answers(game.code.lower(), pid, {"b1": "cat", "b2": "run"})
    assert stored.submissions["b1"][0].player_name == "Alice"
    with pytest.raises(AlreadySubmitted):
        service.submit_answers(game.code, pid, {"b1": "cat", "b2": "run"})

import random

from madlibs.models.game import Blank, Submission
from madlibs.services.answer_selector import select_answers

BLANKS = [Blank(id="b1", type="Noun", index=1), Blank(id="b2", type="Verb", index=2)]


def _subs(*answers):
    return [Submission(player_id=f"p{i}", player_name=f"P{i}", answer=a) for i, a in enumerate(answers)]


def test_empty_list_gives_none():
    selected = select_answers(BLANKS, {"b1": _subs("cat")})
    assert selected["b2"] is None
    assert select_answers(BLANKS, None) == {"b1": None, "b2": None}


def test_selection_is_always_a_submitted_answer():
    submissions = {"b1": _subs("cat", "dog", "emu"), "b2": _subs("run")}
    for seed in range(50):
        selected = select_answers(BLANKS, submissions, rng=random.Random(seed))
        assert selected["b1"].answer in {"cat", "dog", "emu"}
        assert selected["b2"].answer == "run"


def test_selection_copies_the_contributor():
    selected = select_answers(BLANKS, {"b1": _subs("cat"), "b2": _subs("run")})
    assert selected["b1"].player_id == "p0"
    assert selected["b1"].player_name == "P0"


def test_seeded_rng_is_reproducible():
    submissions = {"b1": _subs("a", "b", "c", "d"), "b2": _subs("x", "y")}
    first = select_answers(BLANKS, submissions, rng=random.Random(99))
    second = select_answers(BLANKS, submissions, rng=random.Random(99))
    assert first == second


def test_every_submission_can_win():
    submissions = {"b1": _subs("cat", "dog", "emu")}
    rng = random.Random(7)
    seen = {select_answers(BLANKS[:1], submissions, rng=rng)["b1"].answer for _ in range(200)}
    assert seen == {"cat", "dog", "emu"}

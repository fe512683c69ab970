from lexiclash.services.rooms.achievements import (
    ACHIEVEMENTS, describe, final_unlocks, first_blood_owner, live_unlocks,
)
from lexiclash.services.rooms.state import Participant, Submission


def _subs(*pairs):
    return [Submission(word, 1000 + secs, secs) for word, secs in pairs]


def test_first_word_gets_first_blood_once():
    subs = _subs(('cat', 30))
    earned = live_unlocks(subs, [], first_word_available=True)
    assert earned == ['FIRST_BLOOD']
    assert live_unlocks(subs, earned, first_word_available=True) == []


def test_live_badges_never_repeat():
    subs = _subs(('cat', 2), ('dogs', 4))
    earned = live_unlocks(subs, ['QUICK_THINKER'], first_word_available=False)
    assert 'QUICK_THINKER' not in earned
    assert 'DOUBLE_TROUBLE' in earned


def test_long_word_badges():
    subs = _subs(('examples', 40))
    earned = live_unlocks(subs, [], first_word_available=False)
    assert 'WORD_MASTER' in earned and 'TREASURE_HUNTER' in earned


def test_final_badges_use_valid_words_only():
    subs = _subs(('example', 5), ('cat', 50))
    subs[0].validated = False
    subs[1].validated = True
    earned = final_unlocks(subs, 60)
    assert 'WORD_MASTER' not in earned
    assert 'PERFECTIONIST' not in earned
    assert 'LONG_HAULER' in earned


def test_perfectionist_needs_every_word_valid():
    subs = _subs(('cat', 20), ('dog', 40))
    for s in subs:
        s.validated = True
    assert 'PERFECTIONIST' in final_unlocks(subs, 180)
    assert final_unlocks([], 180) == []


def test_first_blood_owner_is_earliest_valid_submission():
    alice, bob = Participant('alice', 'a'), Participant('bob', 'b')
    alice.submissions = _subs(('cat', 3))
    bob.submissions = _subs(('dog', 5))
    alice.submissions[0].validated = False
    bob.submissions[0].validated = True
    assert first_blood_owner([alice, bob]) == 'bob'
    assert first_blood_owner([Participant('x', None)]) is None


def test_describe_includes_ids_and_skips_unknown():
    described = describe(['FIRST_BLOOD', 'NOPE'])
    assert described == [dict(ACHIEVEMENTS['FIRST_BLOOD'], id='FIRST_BLOOD')]

"""Achievement evaluation.

Live unlocks are checked after every accepted word and are provisional.
Final unlocks are derived once from validated submissions only and replace
the live set.
"""

from typing import Iterable, List, Optional, Sequence

ACHIEVEMENTS = {
    'FIRST_BLOOD': {'name': 'First Blood', 'description': 'First to find a word', 'icon': '🎯'},
    'SPEED_DEMON': {'name': 'Speed Demon', 'description': 'Found 10 words in 2 minutes', 'icon': '⚡'},
    'WORD_MASTER': {'name': 'Word Master', 'description': 'Found a 7+ letter word', 'icon': '📚'},
    'COMBO_KING': {'name': 'Combo King', 'description': 'Found words in a streak of 5', 'icon': '🔥'},
    'PERFECTIONIST': {'name': 'Perfectionist', 'description': 'Every word was valid', 'icon': '✨'},
    'LEXICON': {'name': 'Lexicon', 'description': 'Found 20+ words', 'icon': '🏆'},
    'WORDSMITH': {'name': 'Wordsmith', 'description': 'Found 15 valid words', 'icon': '🎓'},
    'QUICK_THINKER': {'name': 'Quick Thinker', 'description': 'Found a word within 10 seconds', 'icon': '💨'},
    'LONG_HAULER': {'name': 'Long Hauler', 'description': 'Found a word in the last minute', 'icon': '🏃'},
    'DIVERSE_VOCABULARY': {'name': 'Diverse Vocabulary', 'description': 'Found words of 4 different lengths', 'icon': '🌈'},
    'DOUBLE_TROUBLE': {'name': 'Double Trouble', 'description': 'Found 2 words within 5 seconds', 'icon': '⚡⚡'},
    'TREASURE_HUNTER': {'name': 'Treasure Hunter', 'description': 'Found a rare 8+ letter word', 'icon': '💎'},
}

LONG_WORD = 7
RARE_WORD = 8
QUICK_SECONDS = 10
SPEED_WINDOW_SECONDS = 120
SPEED_WORDS = 10
COMBO_STEP = 5
WORDSMITH_WORDS = 15
LEXICON_WORDS = 20
DOUBLE_GAP_SECONDS = 5
LAST_STRETCH_SECONDS = 60
DIVERSE_LENGTHS = 4


def describe(ids: Iterable[str]) -> List[dict]:
    return [dict(ACHIEVEMENTS[i], id=i) for i in ids if i in ACHIEVEMENTS]


def live_unlocks(submissions: Sequence, held: Iterable[str], first_word_available: bool) -> List[str]:
    """Badges newly earned by the latest entry of ``submissions``.

    ``submissions`` is the participant's accepted history including the word
    just accepted. Never returns an id already in ``held``.
    """
    if not submissions:
        return []
    held = set(held)
    latest = submissions[-1]
    count = len(submissions)
    earned = []

    def grant(badge, condition):
        if condition and badge not in held and badge not in earned:
            earned.append(badge)

    grant('FIRST_BLOOD', first_word_available)
    grant('WORD_MASTER', len(latest.word) >= LONG_WORD)
    grant('TREASURE_HUNTER', len(latest.word) >= RARE_WORD)
    grant('QUICK_THINKER', latest.seconds_since_start <= QUICK_SECONDS)
    grant('SPEED_DEMON', count >= SPEED_WORDS and latest.seconds_since_start <= SPEED_WINDOW_SECONDS)
    grant('COMBO_KING', count >= COMBO_STEP and count % COMBO_STEP == 0)
    grant('WORDSMITH', count >= WORDSMITH_WORDS)
    grant('LEXICON', count >= LEXICON_WORDS)
    if count >= 2:
        gap = latest.seconds_since_start - submissions[-2].seconds_since_start
        grant('DOUBLE_TROUBLE', gap <= DOUBLE_GAP_SECONDS)
    return earned


def final_unlocks(submissions: Sequence, round_seconds: Optional[int], first_blood: bool = False) -> List[str]:
    """Badges derived strictly from ``validated is True`` submissions."""
    valid = [s for s in submissions if s.validated is True]
    earned = []
    if first_blood and valid:
        earned.append('FIRST_BLOOD')
    if any(len(s.word) >= LONG_WORD for s in valid):
        earned.append('WORD_MASTER')
    if len([s for s in valid if s.seconds_since_start <= SPEED_WINDOW_SECONDS]) >= SPEED_WORDS:
        earned.append('SPEED_DEMON')
    if len(valid) >= LEXICON_WORDS:
        earned.append('LEXICON')
    if len(valid) >= COMBO_STEP and len(valid) % COMBO_STEP == 0:
        earned.append('COMBO_KING')
    if submissions and all(s.validated is True for s in submissions):
        earned.append('PERFECTIONIST')
    if len(valid) >= WORDSMITH_WORDS:
        earned.append('WORDSMITH')
    if any(s.seconds_since_start <= QUICK_SECONDS for s in valid):
        earned.append('QUICK_THINKER')
    if round_seconds and any(s.seconds_since_start >= round_seconds - LAST_STRETCH_SECONDS for s in valid):
        earned.append('LONG_HAULER')
    if len({len(s.word) for s in valid}) >= DIVERSE_LENGTHS:
        earned.append('DIVERSE_VOCABULARY')
    for prev, cur in zip(valid, valid[1:]):
        if cur.seconds_since_start - prev.seconds_since_start <= DOUBLE_GAP_SECONDS:
            earned.append('DOUBLE_TROUBLE')
            break
    if any(len(s.word) >= RARE_WORD for s in valid):
        earned.append('TREASURE_HUNTER')
    return earned


def first_blood_owner(participants) -> Optional[str]:
    """Name of the participant holding the earliest validated submission."""
    best = None
    for p in participants:
        for s in p.submissions:
            if s.validated is True and (best is None or s.timestamp < best[0]):
                best = (s.timestamp, p.name)
    return best[1] if best else None

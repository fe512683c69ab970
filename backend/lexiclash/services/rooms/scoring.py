from typing import Dict, Iterable, List, Optional

from .achievements import describe
from .board import normalize_text
from .state import PLAYING, Room


def score_for(word: str) -> int:
    """Points for a word by length.

    1-2 letters score nothing, 3-4 score 1, 5 scores 2, 6 scores 3,
    7 scores 5 and from 8 letters on it is 8 plus 2 per extra letter.
    """
    length = len(word or '')
    if length <= 2:
        return 0
    if length <= 4:
        return 1
    if length == 5:
        return 2
    if length == 6:
        return 3
    if length == 7:
        return 5
    return 8 + 2 * (length - 8)


def merge_verdicts(dictionary_verdicts: Dict[str, Optional[bool]], decisions: Iterable[dict]) -> Dict[str, bool]:
    """Build the single word -> validity map used for scoring.

    Dictionary approvals go in first; explicit host decisions are layered
    on top and the first decision given for a word wins. Words without any
    verdict are absent from the result.
    """
    validity = {word: True for word, verdict in dictionary_verdicts.items() if verdict is True}
    decided = set()
    for item in decisions or []:
        word = normalize_text(str((item or {}).get('word') or ''))
        if not word or word in decided:
            continue
        decided.add(word)
        validity[word] = bool(item.get('isValid'))
    return validity


def duplicate_words(room: Room) -> set:
    return {word for word, owners in room.submitters_by_word().items() if len(owners) >= 2}


def score_round(room: Room, validity: Dict[str, bool]) -> None:
    """Apply ``validity`` to every submission and recompute all scores.

    A word submitted by two or more participants is invalid for all of
    them whatever the verdict. Scores are rebuilt from the submission
    records, never adjusted incrementally.
    """
    duplicates = duplicate_words(room)
    for participant in room.participants.values():
        for sub in participant.submissions:
            if sub.word in duplicates:
                sub.validated = False
                sub.is_duplicate = True
                sub.score = 0
                continue
            sub.is_duplicate = False
            sub.validated = bool(validity.get(sub.word, False))
            sub.score = score_for(sub.word) if sub.validated else 0
        participant.score = recompute_score(participant.submissions)


def recompute_score(submissions) -> int:
    return sum(s.score for s in submissions if s.validated is True)


def provisional_scores(room: Room, validity: Dict[str, bool]) -> Dict[str, int]:
    """Scores the round would give under ``validity`` without touching records."""
    duplicates = duplicate_words(room)
    totals = {}
    for name, participant in room.participants.items():
        totals[name] = sum(
            score_for(s.word) for s in participant.submissions
            if s.word not in duplicates and validity.get(s.word) is True
        )
    return totals


def _longest(words: List[str]) -> str:
    longest = ''
    for word in words:
        if len(word) > len(longest):
            longest = word
    return longest


def final_scores(room: Room, scores: Optional[Dict[str, int]] = None) -> List[dict]:
    """Per-participant result rows sorted by score, highest first.

    With ``scores`` given (provisional results) the stored scores are not
    used and only accepted words are listed.
    """
    rows = []
    for name, p in room.participants.items():
        valid = [s.word for s in p.submissions if s.validated is True]
        rows.append({
            'username': name,
            'connected': name not in room.disconnected,
            'score': scores.get(name, 0) if scores is not None else p.score,
            'words': list(p.words) if scores is not None else valid,
            'allWords': [s.to_dict() for s in p.submissions],
            'wordCount': len(p.words),
            'validWordCount': len(valid),
            'achievements': describe(p.achievements),
            'longestWord': _longest(list(p.words) if scores is not None else valid),
        })
    rows.sort(key=lambda r: r['score'], reverse=True)
    return rows


def leaderboard(room: Room) -> List[dict]:
    entries = [
        {
            'username': name,
            'score': p.score,
            'wordCount': len(p.words),
            'connected': name not in room.disconnected,
        }
        for name, p in room.participants.items()
    ]
    if room.phase == PLAYING:
        entries.sort(key=lambda e: e['wordCount'], reverse=True)
    else:
        entries.sort(key=lambda e: (e['score'], e['wordCount']), reverse=True)
    return entries

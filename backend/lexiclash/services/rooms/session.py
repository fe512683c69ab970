"""Per-room round lifecycle: waiting -> playing -> ended -> waiting.

Every public method is one inbound command. The sender's room and role
are resolved from its connection handle; payload fields other than the
room code at create/join time are never trusted for identity. All work on
a room happens under ``room.lock`` so commands and timer callbacks for the
same room are strictly serialised. The one exception is the round-end
dictionary lookup, which waits outside the lock and is fenced by the
round id.
"""

import logging
import time
from functools import partial
from typing import Optional

from . import scoring
from .achievements import describe, final_unlocks, first_blood_owner, live_unlocks
from .board import is_valid_grid, is_word_on_board, normalize_text
from .errors import RoomNotFound, RoomRejection
from .state import ARBITRATION_TIMER, ENDED, PLAYING, REVIEW_TIMER, ROUND_TIMER, WAITING, Room, Submission

CLOSING_MESSAGE = 'The host has left the room. The room is closing.'


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


class SessionController:
    def __init__(self, registry, notifier, scheduler, settings, lookup=None, store=None,
                 clock=time.time, logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.notifier = notifier
        self.scheduler = scheduler
        self.settings = settings
        self.lookup = lookup
        self.store = store
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _resolve(self, handle: str, command: str, host_only: bool = False):
        room, binding = self.registry.resolve(handle)
        if room is None:
            self.logger.warning(f"[anomaly] command={command} handle={handle} resolves to no room")
            return None, None
        if host_only and not binding.is_host:
            self.logger.warning(f"[anomaly] command={command} room={room.code} sent by non-host {binding.name!r}")
            return None, None
        return room, binding

    def _reject(self, handle: str, exc: RoomRejection) -> None:
        self.logger.info(f"[reject] handle={handle} event={exc.event} room={exc.code}")
        self.notifier.to_handle(handle, exc.event, {'code': exc.code})

    def _error(self, handle: str, message: str) -> None:
        self.notifier.to_handle(handle, 'error', {'message': message})

    def save(self, room: Room) -> None:
        if self.store is None:
            return
        try:
            self.store.save(room.code, room.snapshot())
        except Exception:
            self.logger.warning(f"[snapshot] room={room.code} save failed", exc_info=True)

    def refresh_rooms(self) -> None:
        self.notifier.active_rooms(self.registry.summary())

    def _coerce_duration(self, value) -> Optional[int]:
        if value is None:
            return self.settings.default_round_sec
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            return None
        if seconds < self.settings.min_round_sec or seconds > self.settings.max_round_sec:
            return None
        return seconds

    def _sync_late_join(self, room: Room, handle: str) -> int:
        remaining = room.remaining_seconds(self.clock())
        self.notifier.to_handle(handle, 'startGame', {
            'grid': room.grid,
            'durationSeconds': remaining,
            'language': room.language,
            'isLateJoin': True,
        })
        self.notifier.to_handle(handle, 'timeUpdate', {'remainingSeconds': remaining})
        return remaining

    def _worklist(self, room: Room) -> dict:
        owners = room.submitters_by_word()
        verdicts = room.dictionary_verdicts
        worklist = [
            {
                'word': word,
                'submittedBy': owners.get(word, []),
                'dictionary': verdicts.get(word),
                'isDuplicate': len(owners.get(word, [])) >= 2,
            }
            for word in owners
            if verdicts.get(word) is not True
        ]
        return {
            'worklist': worklist,
            'autoValidated': sorted(w for w, v in verdicts.items() if v is True),
            'timeoutSeconds': self.settings.arbitration_timeout_sec,
        }

    # ------------------------------------------------------------------
    # membership
    # ------------------------------------------------------------------
    def create_room(self, handle: str, code, room_name=None, language=None) -> Optional[Room]:
        code = normalize_code(code)
        if not code:
            self._error(handle, 'code is required')
            return None
        if self.registry.is_bound(handle):
            self.logger.warning(f"[anomaly] command=createRoom handle={handle} already bound")
            return None
        try:
            room, rebound = self.registry.create_room(code, handle, room_name, language or 'en')
        except RoomRejection as exc:
            self._reject(handle, exc)
            return None

        with room.lock:
            if rebound:
                self.logger.info(f"[host-rebind] room={code} phase={room.phase}")
                self._replay_to_host(room)
            else:
                self.logger.info(f"[create] room={code} name={room.name!r} language={room.language}")
                self.notifier.to_handle(handle, 'joined', {
                    'isHost': True,
                    'code': room.code,
                    'roomName': room.name,
                    'language': room.language,
                })
            self.save(room)
        self.refresh_rooms()
        return room

    def _replay_to_host(self, room: Room) -> None:
        self.notifier.to_host(room, 'joined', {
            'isHost': True,
            'code': room.code,
            'roomName': room.name,
            'language': room.language,
            'phase': room.phase,
            'rebound': True,
        })
        self.notifier.to_host(room, 'updateUsers', {'users': room.active_names()})
        self.notifier.to_host(room, 'updateLeaderboard', {'leaderboard': scoring.leaderboard(room)})
        self.notifier.to_participants(room, 'hostTransferred', {'code': room.code})
        if room.phase == PLAYING:
            self._sync_late_join(room, room.host_handle)
        elif room.phase == ENDED and not room.resolved and not room.reviewing:
            self.notifier.to_host(room, 'showValidation', self._worklist(room))

    def join_room(self, handle: str, code, display_name) -> Optional[Room]:
        code = normalize_code(code)
        name = str(display_name or '').strip()
        if not code or not name:
            self._error(handle, 'code and displayName are required')
            return None
        if self.registry.is_bound(handle):
            self.logger.warning(f"[anomaly] command=joinRoom handle={handle} already bound")
            return None
        try:
            room, participant, rebound = self.registry.join_room(code, name, handle)
        except RoomRejection as exc:
            self._reject(handle, exc)
            return None

        with room.lock:
            if not room.alive:
                self.registry.remove_handle(handle)
                self._reject(handle, RoomNotFound(code))
                return None
            payload = {
                'isHost': False,
                'code': room.code,
                'roomName': room.name,
                'language': room.language,
                'username': name,
                'phase': room.phase,
            }
            if rebound:
                payload.update({
                    'rebound': True,
                    'score': participant.score,
                    'words': list(participant.words),
                    'achievements': describe(participant.achievements),
                })
            self.notifier.to_handle(handle, 'joined', payload)

            if room.phase == PLAYING:
                remaining = self._sync_late_join(room, handle)
                self.notifier.to_host(room, 'playerJoinedLate', {'username': name, 'remainingSeconds': remaining})
            if rebound:
                self.logger.info(f"[player-rebind] room={code} player={name!r}")
                self.notifier.to_room(room, 'playerReconnected', {'username': name})
            else:
                self.logger.info(f"[join] room={code} player={name!r} phase={room.phase}")
            self.notifier.roster(room)
            self.notifier.leaderboard(room)
            self.save(room)
        self.refresh_rooms()
        return room

    def leave_room(self, handle: str) -> None:
        room, binding = self._resolve(handle, 'leaveRoom')
        if room is None:
            return
        if binding.is_host:
            self.close_room(handle, room.code)
            return
        with room.lock:
            if not room.alive:
                return
            participant = room.participants.get(binding.name)
            if participant is None or participant.handle != handle:
                self.logger.warning(f"[anomaly] command=leaveRoom room={room.code} stale handle for {binding.name!r}")
                return
            self.registry.remove_handle(handle)
            del room.participants[binding.name]
            self.logger.info(f"[leave] room={room.code} player={binding.name!r}")
            self.notifier.to_room(room, 'playerLeft', {'username': binding.name})
            self.notifier.roster(room)
            self.notifier.leaderboard(room)
            if not self.after_participant_removed(room):
                self.save(room)
        self.refresh_rooms()

    def after_participant_removed(self, room: Room) -> bool:
        """Apply the empty-room and last-player rules. Returns True if the room is gone."""
        active = room.active_names()
        if not active:
            self.logger.info(f"[empty] room={room.code} no active players left, closing")
            self.notifier.to_host(room, 'roomClosed', {'code': room.code, 'reason': 'empty'})
            self.destroy_room(room, 'empty')
            return True
        if len(active) == 1 and room.phase == PLAYING:
            self.logger.info(f"[alone] room={room.code} one player left, ending round")
            self._end_round(room, 'alone')
        return False

    def close_room(self, handle: str, code=None) -> None:
        room, binding = self._resolve(handle, 'closeRoom', host_only=True)
        if room is None:
            return
        if code is not None and normalize_code(code) != room.code:
            self.logger.warning(f"[anomaly] command=closeRoom room={room.code} payload code={code!r}")
            return
        with room.lock:
            if not room.alive:
                return
            self.logger.info(f"[close] room={room.code} closed by host")
            self.notifier.to_participants(room, 'hostLeftRoomClosing', {'message': CLOSING_MESSAGE})
            self.destroy_room(room, 'closed')

    def destroy_room(self, room: Room, reason: str) -> bool:
        with room.lock:
            if not room.alive:
                return False
            room.alive = False
            room.cancel_all_timers()
            self.registry.discard(room)
        self.logger.info(f"[destroy] room={room.code} reason={reason}")
        if self.store is not None:
            try:
                self.store.forget(room.code)
            except Exception:
                self.logger.warning(f"[snapshot] room={room.code} delete failed", exc_info=True)
        self.refresh_rooms()
        return True

    def active_rooms(self, handle: str) -> None:
        self.notifier.active_rooms(self.registry.summary(), to=handle)

    # ------------------------------------------------------------------
    # round lifecycle
    # ------------------------------------------------------------------
    def start_round(self, handle: str, grid, duration_seconds=None, language=None) -> None:
        room, _ = self._resolve(handle, 'startRound', host_only=True)
        if room is None:
            return
        if not is_valid_grid(grid):
            self._error(handle, 'grid must be a non-empty rectangular list of letter rows')
            return
        duration = self._coerce_duration(duration_seconds)
        if duration is None:
            self._error(handle, f"durationSeconds must be between {self.settings.min_round_sec} "
                                f"and {self.settings.max_round_sec}")
            return
        with room.lock:
            if not room.alive:
                return
            if room.phase == PLAYING:
                self._error(handle, 'a round is already in progress')
                return
            if len(room.active_names()) < self.settings.min_players:
                self._error(handle, f"at least {self.settings.min_players} players are required to start")
                return

            room.cancel_timer(ROUND_TIMER)
            room.cancel_timer(ARBITRATION_TIMER)
            room.cancel_timer(REVIEW_TIMER)
            now = self.clock()
            room.round_id += 1
            room.phase = PLAYING
            room.grid = [[str(cell) for cell in row] for row in grid]
            room.started_at = now
            room.ends_at = now + duration
            room.duration = duration
            room.first_word_found = False
            room.dictionary_verdicts = {}
            room.resolved = False
            room.reviewing = False
            if language:
                room.language = language
            for participant in room.participants.values():
                participant.reset_round()

            self.logger.info(f"[round-start] room={room.code} round={room.round_id} duration={duration}s "
                             f"players={len(room.active_names())}")
            self.notifier.to_room(room, 'startGame', {
                'grid': room.grid,
                'durationSeconds': duration,
                'language': room.language,
            })
            self.notifier.leaderboard(room)
            interval = self.settings.time_update_interval_sec
            room.set_timer(ROUND_TIMER, self.scheduler.schedule(
                interval, partial(self._tick, room, room.round_id),
                interval=interval, name=f"round:{room.code}",
            ))
            self.save(room)
        self.refresh_rooms()

    def _tick(self, room: Room, round_id: int) -> None:
        with room.lock:
            if not room.alive or room.phase != PLAYING or room.round_id != round_id:
                return
            remaining = room.remaining_seconds(self.clock())
            self.notifier.to_room(room, 'timeUpdate', {'remainingSeconds': remaining})
            if remaining <= 0:
                self._end_round(room, 'timer')

    def end_round(self, handle: str) -> None:
        room, _ = self._resolve(handle, 'endRound', host_only=True)
        if room is None:
            return
        with room.lock:
            if not room.alive:
                return
            if room.phase != PLAYING:
                self.logger.warning(f"[anomaly] command=endRound room={room.code} phase={room.phase}")
                return
            self._end_round(room, 'host')

    def _end_round(self, room: Room, reason: str) -> None:
        room.phase = ENDED
        room.cancel_timer(ROUND_TIMER)
        self.logger.info(f"[round-end] room={room.code} round={room.round_id} reason={reason}")
        self.notifier.to_room(room, 'endGame', {'reason': reason})
        room.dictionary_verdicts = {}
        room.resolved = False
        room.reviewing = True
        room.set_timer(REVIEW_TIMER, self.scheduler.schedule(
            0, partial(self._review_round, room, room.round_id), name=f"review:{room.code}",
        ))
        self.save(room)

    def _under_review(self, room: Room, round_id: int) -> bool:
        return room.alive and room.phase == ENDED and room.round_id == round_id and room.reviewing

    def _review_round(self, room: Room, round_id: int) -> None:
        """Ask the dictionary about the round's words, then hand the rest to the host."""
        with room.lock:
            if not self._under_review(room, round_id):
                return
            words = room.distinct_words()
            language = room.language

        # The lookup waits without holding room.lock
        if self.lookup is not None and words:
            verdicts = self.lookup.resolve(words, language)
        else:
            verdicts = {}

        with room.lock:
            if not self._under_review(room, round_id):
                self.logger.info(f"[review-skip] room={room.code} round={round_id} superseded")
                return
            room.dictionary_verdicts = {word: verdicts.get(word) for word in words}
            room.reviewing = False
            self._publish_review(room)

    def _publish_review(self, room: Room) -> None:
        validity = scoring.merge_verdicts(room.dictionary_verdicts, [])
        results = scoring.final_scores(room, scoring.provisional_scores(room, validity))
        self.notifier.to_room(room, 'finalScores', {
            'scores': results,
            'winner': results[0]['username'] if results else None,
        })
        self.notifier.to_host(room, 'showValidation', self._worklist(room))

        room.set_timer(ARBITRATION_TIMER, self.scheduler.schedule(
            self.settings.arbitration_timeout_sec,
            partial(self._arbitration_expired, room, room.round_id),
            name=f"arbitration:{room.code}",
        ))
        self.save(room)

    def _arbitration_expired(self, room: Room, round_id: int) -> None:
        with room.lock:
            if not room.alive or room.phase != ENDED or room.round_id != round_id or room.resolved:
                return
            pending = [w for w in room.distinct_words() if room.dictionary_verdicts.get(w) is not True]
            self.logger.info(f"[auto-validate] room={room.code} host idle, {len(pending)} pending word(s) accepted")
            self._resolve_round(room, [{'word': w, 'isValid': True} for w in pending])
            self.notifier.to_host(room, 'autoValidationOccurred', {
                'message': 'Auto-validation completed due to inactivity',
                'count': len(pending),
            })

    def validate_words(self, handle: str, decisions) -> None:
        room, _ = self._resolve(handle, 'validateWords', host_only=True)
        if room is None:
            return
        if decisions is None:
            decisions = []
        if not isinstance(decisions, list):
            self._error(handle, 'decisions must be a list of {word, isValid}')
            return
        with room.lock:
            if not room.alive:
                return
            if room.phase != ENDED:
                self.logger.warning(f"[anomaly] command=validateWords room={room.code} phase={room.phase}")
                return
            if room.reviewing:
                self.logger.warning(f"[anomaly] command=validateWords room={room.code} before dictionary review finished")
                return
            self._resolve_round(room, [d for d in decisions if isinstance(d, dict)])

    def _resolve_round(self, room: Room, decisions) -> None:
        room.cancel_timer(ARBITRATION_TIMER)
        validity = scoring.merge_verdicts(room.dictionary_verdicts, decisions)
        scoring.score_round(room, validity)

        first = first_blood_owner(room.participants.values())
        room.first_word_found = first is not None
        for participant in room.participants.values():
            participant.achievements = final_unlocks(
                participant.submissions, room.duration, first_blood=participant.name == first,
            )
        room.resolved = True

        results = scoring.final_scores(room)
        winner = results[0]['username'] if results else None
        self.logger.info(f"[validated] room={room.code} round={room.round_id} words={len(room.distinct_words())} "
                         f"winner={winner!r}")
        self.notifier.to_room(room, 'validatedScores', {
            'scores': results,
            'winner': winner,
            'grid': room.grid,
        })
        self.notifier.leaderboard(room)
        self.save(room)

    def reset_round(self, handle: str) -> None:
        room, _ = self._resolve(handle, 'resetRound', host_only=True)
        if room is None:
            return
        with room.lock:
            if not room.alive:
                return
            if room.phase != ENDED:
                self.logger.warning(f"[anomaly] command=resetRound room={room.code} phase={room.phase}")
                return
            room.cancel_timer(ROUND_TIMER)
            room.cancel_timer(ARBITRATION_TIMER)
            room.cancel_timer(REVIEW_TIMER)
            room.phase = WAITING
            room.grid = None
            room.started_at = None
            room.ends_at = None
            room.first_word_found = False
            room.dictionary_verdicts = {}
            room.resolved = False
            room.reviewing = False
            for participant in room.active_participants():
                participant.reset_round()
            self.logger.info(f"[reset] room={room.code}")
            self.notifier.to_room(room, 'resetGame', {'code': room.code})
            self.notifier.leaderboard(room)
            self.save(room)
        self.refresh_rooms()

    # ------------------------------------------------------------------
    # submissions
    # ------------------------------------------------------------------
    def submit_word(self, handle: str, word) -> None:
        room, binding = self._resolve(handle, 'submitWord')
        if room is None:
            return
        if binding.is_host:
            self.logger.warning(f"[anomaly] command=submitWord room={room.code} sent by host")
            return
        with room.lock:
            if not room.alive or room.phase != PLAYING:
                self.logger.debug(f"[submit-skip] room={room.code} phase={room.phase}")
                return
            participant = room.participants.get(binding.name)
            if participant is None or participant.handle != handle:
                self.logger.warning(f"[anomaly] command=submitWord room={room.code} stale handle for {binding.name!r}")
                return
            now = self.clock()
            if room.ends_at is not None and now >= room.ends_at:
                self.logger.debug(f"[submit-late] room={room.code} player={binding.name!r}")
                return

            normalized = normalize_text(str(word or ''))
            if not normalized:
                return
            if len(normalized) < self.settings.min_word_length:
                self.notifier.to_handle(handle, 'wordTooShort', {
                    'word': normalized, 'minLength': self.settings.min_word_length,
                })
                return
            if normalized in participant.words:
                self.notifier.to_handle(handle, 'wordAlreadyFound', {'word': normalized})
                return
            if not is_word_on_board(normalized, room.grid):
                self.notifier.to_handle(handle, 'wordNotOnBoard', {'word': normalized})
                return

            participant.words.append(normalized)
            participant.submissions.append(Submission(normalized, now, now - (room.started_at or now)))
            self.notifier.to_handle(handle, 'wordAccepted', {'word': normalized})
            self.notifier.to_host(room, 'playerFoundWord', {
                'username': participant.name, 'wordCount': len(participant.words),
            })

            earned = live_unlocks(participant.submissions, participant.achievements, not room.first_word_found)
            if 'FIRST_BLOOD' in earned:
                room.first_word_found = True
            if earned:
                participant.achievements.extend(earned)
                self.notifier.to_handle(handle, 'liveAchievementUnlocked', {'achievements': describe(earned)})
            self.notifier.leaderboard(room)

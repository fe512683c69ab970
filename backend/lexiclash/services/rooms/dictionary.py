"""Advisory dictionary lookups.

Word lists are plain text files named ``<language>.txt`` with one word per
line. A language without a list answers ``None`` (unknown), which routes
the word to host arbitration rather than rejecting it.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Iterable, Optional, Set

from .board import normalize_text


class WordDictionary:
    def __init__(self, directory: Optional[str] = None, logger: Optional[logging.Logger] = None):
        self.directory = directory
        self._logger = logger or logging.getLogger(__name__)
        self._words: Dict[str, Set[str]] = {}

    def load(self) -> None:
        if not self.directory or not os.path.isdir(self.directory):
            self._logger.info(f"[dictionary] no word lists at {self.directory!r}; every word needs host review")
            return
        for filename in sorted(os.listdir(self.directory)):
            language, ext = os.path.splitext(filename)
            if ext != '.txt':
                continue
            path = os.path.join(self.directory, filename)
            try:
                with open(path, encoding='utf-8') as fh:
                    words = {normalize_text(line) for line in fh}
            except OSError as exc:
                self._logger.warning(f"[dictionary] could not read {path}: {exc}")
                continue
            words.discard('')
            self.add_words(language, words)
            self._logger.info(f"[dictionary] language={language} words={len(words)}")

    def add_words(self, language: str, words: Iterable[str]) -> None:
        bucket = self._words.setdefault(language, set())
        bucket.update(normalize_text(w) for w in words if w)

    def is_valid_word(self, word: str, language: str) -> Optional[bool]:
        bucket = self._words.get(language)
        if not bucket:
            return None
        return normalize_text(word) in bucket


class DictionaryLookup:
    """Batch lookups with a bounded total wait.

    Anything that has not answered when the wait ends, or that raised,
    comes back as ``None``. Each batch gets its own small executor, so a
    lookup that never returns only holds on to its own thread.
    """

    def __init__(self, dictionary, timeout: float = 2.0, max_workers: int = 4,
                 logger: Optional[logging.Logger] = None):
        self.dictionary = dictionary
        self.timeout = timeout
        self.max_workers = max_workers
        self._logger = logger or logging.getLogger(__name__)

    def resolve(self, words: Iterable[str], language: str) -> Dict[str, Optional[bool]]:
        words = list(dict.fromkeys(words))
        if not words:
            return {}
        pool = ThreadPoolExecutor(max_workers=min(self.max_workers, len(words)),
                                  thread_name_prefix='dictionary')
        try:
            futures = {pool.submit(self.dictionary.is_valid_word, w, language): w for w in words}
            done, pending = wait(futures, timeout=self.timeout)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        verdicts: Dict[str, Optional[bool]] = {w: None for w in words}
        for future in done:
            word = futures[future]
            try:
                verdict = future.result()
            except Exception as exc:
                self._logger.warning(f"[dictionary] lookup failed word={word!r}: {exc}")
                continue
            verdicts[word] = verdict if verdict in (True, False) else None
        if pending:
            self._logger.warning(f"[dictionary] {len(pending)} lookup(s) unanswered after {self.timeout}s "
                                 f"language={language}; left for the host")
        return verdicts

"""
Word Frequency Model
====================
This module turns raw messages into a bounded, weighted, decaying set of words.

Why is this file needed?
------------------------
1. Filtering: Numbers, hashtags, links and stop words never become words.
2. Weighting: Every occurrence of a word raises its count; every
   ``saturation_interval`` messages all multi-hit words lose one hit, so words
   that stop appearing eventually fall back to a count of one.
3. Capacity: Once ``max_words`` words are live, the stalest single-hit word is
   evicted before a new one is admitted.
4. Graph: Each word owns a node connected to the root, registered with the
   layout ``Diagram``. The model is the only component that adds or removes
   word nodes.

Classes:
    WordEntry: One tracked word.
    WordFrequencyModel: The map of words plus its filtering, decay and eviction.
"""
from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterator, Optional, TYPE_CHECKING

from streamcloud.config import MAX_RECENT, MAX_WORDS, SATURATION_INTERVAL
from streamcloud.model.graph import GraphNode
from streamcloud.utils import HASHTAG_PREFIX, strip_punctuation, tokenize

if TYPE_CHECKING:
    from streamcloud.solvers.layout import Diagram

logger = logging.getLogger(__name__)

STOP_WORDS: frozenset[str] = frozenset({
    "a", "an", "and", "the", "it", "them", "their", "those", "us", "you", "i", "they", "in", "on",
    "with", "at", "under", "over", "above", "below", "we", "by", "to", "that", "can", "can't", "who",
    "are", "only", "now", "him", "her", "from", "he", "she", "for", "every", "so", "our", "of",
    "yours", "all", "was", "will", "is", "having", "as", "up", "down", "out", "after", "not", "be",
    "my", "rt", "this", "or", "nor", "these", "off", "his", "its", "because", "no", "amp", "ur", "me",
    "how", "has", "have", "into",
})

LINK_PREFIX = "http"


def _is_integer(word: str) -> bool:
    try:
        int(word)
    except ValueError:
        return False
    return True


def eliminate_word(word: str) -> bool:
    """
    Return True if the word should never enter the cloud.

    The test is case-insensitive and total: any string, including the empty
    string, yields a boolean.
    """
    word = word.lower()
    if not word:
        return True
    if _is_integer(word):
        return True
    if word.startswith(HASHTAG_PREFIX):
        return True
    if word.startswith(LINK_PREFIX):
        return True
    return word in STOP_WORDS


@dataclass(eq=False)
class WordEntry:
    """A tracked word with its weight, recency and the messages it came from."""
    key: str
    display_text: str
    node: GraphNode
    updated_at: float
    count: int = 1
    recent_messages: Deque[str] = field(default_factory=deque)

    def touch(self, message: str, now: float) -> None:
        self.count += 1
        self.updated_at = now
        self.recent_messages.append(message)

    def decay(self) -> bool:
        """Drop one hit. Single-hit words are left alone; returns True if the count changed."""
        if self.count > 1:
            self.count -= 1
            return True
        return False


class WordFrequencyModel:
    """
    Bounded map from normalized word to ``WordEntry``.

    Single-threaded by contract: call it only from the tick loop.
    """
    def __init__(
        self,
        diagram: Diagram,
        root: GraphNode,
        max_words: int = MAX_WORDS,
        max_recent: int = MAX_RECENT,
        saturation_interval: int = SATURATION_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an empty model.

        Args:
            diagram: Layout engine that receives the word nodes.
            root: Anchor node every word node connects to. It is registered with the
                diagram here if it is not already.
            max_words: Live word capacity before stale words are evicted.
            max_recent: Messages remembered per word.
            saturation_interval: Messages between two decay passes.
            clock: Source of ``updated_at`` timestamps.
        """
        if max_words <= 0 or max_recent <= 0 or saturation_interval <= 0:
            raise ValueError("max_words, max_recent and saturation_interval must be positive.")
        self.diagram = diagram
        self.root = root
        self.max_words = max_words
        self.max_recent = max_recent
        self.saturation_interval = saturation_interval
        self.clock = clock

        self._entries: Dict[str, WordEntry] = {}
        self.message_count = 0
        self.eviction_count = 0
        self.overshoot_events = 0

        self.diagram.add_node(self.root)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[WordEntry]:
        return iter(self._entries.values())

    def entries(self) -> list[WordEntry]:
        """Live entries in first-seen order."""
        return list(self._entries.values())

    def get(self, key: str) -> Optional[WordEntry]:
        return self._entries.get(key)

    def recent_messages(self, key: str) -> tuple[str, ...]:
        """Messages that contributed to the word, oldest first. Empty for unknown words."""
        entry = self._entries.get(key)
        return tuple(entry.recent_messages) if entry is not None else ()

    # ------------------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------------------

    def ingest(self, message: str) -> None:
        """Count the words of one message, then apply the periodic decay."""
        if not isinstance(message, str):
            raise TypeError(f"message must be a str, got {type(message).__name__}")

        for token in tokenize(message):
            display_text = strip_punctuation(token)
            key = display_text.lower()
            if eliminate_word(key):
                continue

            entry = self._entries.get(key)
            if entry is None:
                self._add_entry(key, display_text, message)
            else:
                entry.touch(message, self.clock())

        self.message_count += 1
        if self.message_count % self.saturation_interval == 0:
            self.reduce_counts()

    def _add_entry(self, key: str, display_text: str, message: str) -> WordEntry:
        # Earlier overshoots are paid back as soon as candidates exist again.
        while len(self._entries) >= self.max_words:
            if self.remove_stale_word() is None:
                self.overshoot_events += 1
                logger.warning(
                    f"No single-hit word to evict; word capacity {self.max_words} exceeded "
                    f"({len(self._entries) + 1} words)."
                )
                break

        node = GraphNode(label=display_text, position=self.root.position)
        node.connect(self.root)
        entry = WordEntry(
            key=key,
            display_text=display_text,
            node=node,
            updated_at=self.clock(),
            recent_messages=deque([message], maxlen=self.max_recent),
        )
        self._entries[key] = entry
        self.diagram.add_node(node)
        return entry

    def reduce_counts(self) -> int:
        """
        Decrement the count of every multi-hit word by one.
        Returns the number of words that decayed.
        """
        decayed = sum(1 for entry in self._entries.values() if entry.decay())
        logger.debug(f"Decay pass after {self.message_count} messages: {decayed} words decayed.")
        return decayed

    # ------------------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------------------

    def find_stale_word(self) -> Optional[WordEntry]:
        """
        The single-hit word that has not been updated the longest.
        Ties go to the word seen first. None when every word has more than one hit.
        """
        candidates = (entry for entry in self._entries.values() if entry.count == 1)
        return min(candidates, key=lambda entry: entry.updated_at, default=None)

    def remove_stale_word(self) -> Optional[WordEntry]:
        """Evict the stalest single-hit word. Returns it, or None if there is no candidate."""
        stale = self.find_stale_word()
        if stale is None:
            return None

        self._discard_entry(stale)
        self.eviction_count += 1
        logger.debug(f"Evicted stale word '{stale.key}'.")
        return stale

    def _discard_entry(self, entry: WordEntry) -> None:
        """Detach the word's node from the layout and forget the word, in one step."""
        self.diagram.remove_node(entry.node)
        del self._entries[entry.key]
        entry.recent_messages.clear()

    def clear(self) -> None:
        """Remove every word and its node. The root stays on the diagram."""
        for entry in list(self._entries.values()):
            self._discard_entry(entry)
        logger.info("Word model cleared.")

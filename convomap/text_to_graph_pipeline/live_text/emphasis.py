"""
Emotional salience of live (interim) transcript text

A small word-list heuristic; a higher absolute score means stronger emphasis
when the live text is displayed.
"""

import re
from dataclasses import dataclass
from typing import List

POSITIVE_WORDS = frozenset({
    "love", "lovely", "amazing", "great", "happy", "excited", "wonderful", "awesome", "fantastic", "beautiful",
    "incredible", "brilliant", "yes", "yay", "win", "success", "excellent", "perfect", "joy", "joyful", "delight",
})
NEGATIVE_WORDS = frozenset({
    "hate", "terrible", "bad", "sad", "angry", "frustrated", "awful", "horrible", "annoying", "no", "pain", "ugh",
    "disaster", "broken", "worst", "fail", "failure", "angst",
})
INTENSIFIERS = frozenset({"very", "really", "super", "extremely", "so", "too"})

MAX_SALIENCE = 3
COMPLEX_WORD_LENGTH = 7
COMPLEX_WORD_VOWEL_GROUPS = 3

_TOKEN = re.compile(r"\w+|[^\w\s]+|\s+")
_WORD = re.compile(r"\w+")
_NON_LETTER = re.compile(r"[^a-zA-Z]")
_VOWEL_GROUP = re.compile(r"[aeiouy]+")


def score_word(raw: str) -> int:
    """Salience score in [-3, 3]"""
    word = raw.lower()
    score = 0
    if word in POSITIVE_WORDS:
        score += 2
    if word in NEGATIVE_WORDS:
        score -= 2
    if word in INTENSIFIERS:
        score += 1
    # shouting amplifies in the direction of the score, neutral counts as positive
    if raw == raw.upper() and len(raw) >= 3:
        score += -1 if score < 0 else 1
    return max(-MAX_SALIENCE, min(MAX_SALIENCE, score))


def is_complex_word(raw: str) -> bool:
    word = _NON_LETTER.sub("", raw)
    if len(word) >= COMPLEX_WORD_LENGTH:
        return True
    # crude syllable count
    return len(_VOWEL_GROUP.findall(word.lower())) >= COMPLEX_WORD_VOWEL_GROUPS


@dataclass(frozen=True)
class LiveToken:
    text: str
    is_word: bool
    score: int = 0
    complex: bool = False
    pop: bool = False

    @property
    def emphasis(self) -> str:
        """'pos'/'neg' plus strength 2 or 3, empty for neutral tokens"""
        if self.score >= 2:
            return "pos-3"
        if self.score == 1:
            return "pos-2"
        if self.score <= -2:
            return "neg-3"
        if self.score == -1:
            return "neg-2"
        return ""

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "isWord": self.is_word,
            "score": self.score,
            "complex": self.complex,
            "pop": self.pop,
            "emphasis": self.emphasis,
        }


def annotate_live_text(text: str) -> List[LiveToken]:
    """
    Split text into word, punctuation and whitespace runs and annotate the words.
    The last word is flagged with pop.
    """
    parts = _TOKEN.findall(text or "")
    last_word_index = -1
    for i in range(len(parts) - 1, -1, -1):
        if _WORD.search(parts[i]):
            last_word_index = i
            break

    tokens = []
    for i, part in enumerate(parts):
        if not _WORD.search(part):
            tokens.append(LiveToken(text=part, is_word=False))
            continue
        tokens.append(LiveToken(
            text=part,
            is_word=True,
            score=score_word(part),
            complex=is_complex_word(part),
            pop=i == last_word_index,
        ))
    return tokens

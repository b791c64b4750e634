"""
Text Insights
=============

Helpers deriving a short summary and key phrases from complaint text.
"""

import re
from collections import Counter
from typing import Iterable, List

STOP_WORDS = frozenset({
    "there", "theres", "their", "they", "them", "these", "those", "this",
    "that", "what", "which", "who", "where", "when", "why", "how", "have",
    "has", "had", "been", "being", "are", "was", "were", "will", "would",
    "could", "should", "may", "might", "must", "can", "cant", "cannot",
    "dont", "doesnt", "didnt", "wont", "is", "am", "be", "do", "does", "did",
    "get", "got", "go", "went", "come", "came", "see", "saw", "know", "knew",
    "think", "thought", "take", "took", "give", "gave", "make", "made", "say",
    "said", "very", "much", "many", "more", "most", "some", "any", "all",
    "just", "only", "also", "still", "even", "well", "now", "then", "here",
    "every", "each", "other", "another", "such", "same", "different", "new",
    "old", "good", "bad", "big", "small", "large", "long", "short", "high",
    "low", "right", "left", "major", "minor", "main", "street", "road",
    "avenue", "way", "near", "around", "about", "over", "under", "through",
    "across", "the", "and", "for", "with", "from", "our", "its", "not",
})

_QUOTES = re.compile(r"['\"]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_SENTENCE_END = re.compile(r"[.!?]")


def generate_summary(text: str, max_length: int = 150) -> str:
    """
    Shorten text to at most ``max_length`` characters.

    Cuts at the last sentence end when it falls past half of the limit,
    otherwise truncates and appends an ellipsis.
    """
    text = (text or "").strip()
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    ends = [m.start() for m in _SENTENCE_END.finditer(truncated)]
    last_end = ends[-1] if ends else -1

    if last_end > max_length * 0.5:
        return truncated[:last_end + 1]
    return truncated + "..."


def extract_key_phrases(text: str, max_phrases: int = 5) -> List[str]:
    """
    Pick the most salient words of a complaint.

    Words of six letters or more count double; ties prefer longer words.
    """
    cleaned = _PUNCTUATION.sub(" ", _QUOTES.sub(" ", (text or "").lower()))
    words = [
        word for word in cleaned.split()
        if len(word) >= 3 and word not in STOP_WORDS and not word.isdigit()
    ]

    weights: Counter = Counter()
    for word in words:
        weights[word] += 2 if len(word) >= 6 else 1

    ranked = sorted(weights.items(), key=lambda item: (-item[1], -len(item[0])))
    return [word for word, _ in ranked[:max_phrases]]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in keywords)

"""Split narration into pieces that fit a TTS provider's request limit."""

from __future__ import annotations

import re

SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
COMMA_BOUNDARY_RE = re.compile(r"(?<=,)\s*")


def _pack(pieces: list[str], max_chars: int) -> list[str]:
    """Greedily join pieces with spaces while staying within ``max_chars``."""
    chunks: list[str] = []
    current = ""
    for piece in pieces:
        candidate = f"{current} {piece}" if current else piece
        if len(candidate) <= max_chars:
            current = candidate
            continue
        if current:
            chunks.append(current)
        current = piece
    if current:
        chunks.append(current)
    return chunks


def _hard_split(text: str, max_chars: int) -> list[str]:
    """Fill chunks word by word; cut inside a word only when it alone is too long."""
    words: list[str] = []
    for word in text.split():
        while len(word) > max_chars:
            words.append(word[:max_chars])
            word = word[max_chars:]
        if word:
            words.append(word)
    return _pack(words, max_chars)


def _split_oversized(sentence: str, max_chars: int) -> list[str]:
    parts = [p.strip() for p in COMMA_BOUNDARY_RE.split(sentence) if p.strip()]
    pieces: list[str] = []
    for part in parts:
        if len(part) > max_chars:
            pieces.extend(_hard_split(part, max_chars))
        else:
            pieces.append(part)
    return _pack(pieces, max_chars)


def split_text_for_speech(text: str, max_chars: int = 4000) -> list[str]:
    """
    Break ``text`` into chunks of at most ``max_chars`` characters.

    Sentence boundaries are preferred, then commas, then whitespace.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    cleaned = text.strip()
    if not cleaned:
        return []
    if len(cleaned) <= max_chars:
        return [cleaned]

    pieces: list[str] = []
    for sentence in SENTENCE_BOUNDARY_RE.split(cleaned):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) > max_chars:
            pieces.extend(_split_oversized(sentence, max_chars))
        else:
            pieces.append(sentence)

    return _pack(pieces, max_chars)

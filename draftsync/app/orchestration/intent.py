"""Modification-intent heuristic for user utterances."""

import re
import unicodedata

# (stem, endings) per verb; accents stripped. Only these exact inflections match,
# so nouns and adjectives sharing a stem ("editor", "address") do not.
_VERB_FORMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    # English
    ("chang", ("e", "es", "ed", "ing")),
    ("modif", ("y", "ies", "ied", "ying")),
    ("edit", ("", "s", "ed", "ing")),
    ("updat", ("e", "es", "ed", "ing")),
    ("add", ("", "s", "ed", "ing")),
    ("remov", ("e", "es", "ed", "ing")),
    ("delet", ("e", "es", "ed", "ing")),
    ("replac", ("e", "es", "ed", "ing")),
    ("rewr", ("ite", "ites", "ote", "itten", "iting")),
    ("includ", ("e", "es", "ed")),
    ("insert", ("", "s", "ed", "ing")),
    ("fix", ("", "es", "ed", "ing")),
    ("renam", ("e", "es", "ed", "ing")),
    # Portuguese
    ("alter", ("e", "a", "ar", "em", "ado", "ada", "ou")),
    ("modific", ("a", "ar", "ado", "ada", "ou")),
    ("modifiqu", ("e", "em")),
    ("atualiz", ("e", "a", "ar", "em", "ado", "ada", "ou")),
    ("adicion", ("e", "a", "ar", "em", "ado", "ada", "ou")),
    ("acrescent", ("e", "a", "ar", "em", "ado", "ada", "ou")),
    ("remov", ("a", "er", "am", "ido", "ida", "eu")),
    ("exclu", ("a", "ir", "am", "ido", "ida", "iu")),
    ("inclu", ("a", "ir", "am", "ido", "ida", "iu")),
    ("substitu", ("a", "ir", "am", "ido", "ida", "iu")),
    ("mud", ("e", "a", "ar", "em", "ado", "ada", "ou")),
    ("troc", ("a", "ar", "ado", "ada", "ou")),
    ("troqu", ("e", "em")),
    ("corrig", ("e", "ir", "ido", "ida", "iu")),
    ("corrij", ("a", "am")),
    ("reescrev", ("a", "er", "am", "eu")),
    ("insir", ("a", "am")),
    ("inser", ("e", "ir", "ido", "ida", "iu")),
    # Spanish
    ("cambi", ("a", "e", "ar", "en", "ado", "ada", "o")),
    ("agreg", ("a", "ar", "ado", "ada", "o")),
    ("agregu", ("e", "en")),
    ("anad", ("e", "a", "ir", "an", "ido", "ida")),
    ("elimin", ("a", "e", "ar", "en", "ado", "ada", "o")),
    ("reemplaz", ("a", "ar", "ado", "ada", "o")),
    ("reemplac", ("e", "en")),
    ("actualiz", ("a", "ar", "ado", "ada", "o")),
    ("actualic", ("e", "en")),
)

MODIFICATION_WORDS: frozenset[str] = frozenset(
    stem + ending for stem, endings in _VERB_FORMS for ending in endings
)

_WORD_RE = re.compile(r"[a-z]+")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def looks_like_modification_request(utterance: str) -> bool:
    """True if the utterance asks to change document content."""
    words = _WORD_RE.findall(_fold(utterance or ""))
    return any(word in MODIFICATION_WORDS for word in words)

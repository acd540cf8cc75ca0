# Keyword-overlap search across a case's chat sessions
import re
from typing import Dict, Iterable, List, Sequence, Tuple

from case_records_service.app.models import ChatMessageDB

MIN_TOPIC_LENGTH = 5
DEFAULT_MIN_SCORE = 0.3

COMMON_WORDS = frozenset({
    "about", "after", "again", "also", "because", "before", "between", "could",
    "document", "documents", "every", "these", "thing", "think", "those",
    "through", "their", "there", "would",
})


def extract_key_topics(content: str) -> List[str]:
    """Distinct lower-cased words of five or more letters that are not common filler, in first-seen order."""
    words = re.sub(r"[^\w\s]", "", content.lower()).split()
    topics: Dict[str, None] = {}
    for word in words:
        if len(word) >= MIN_TOPIC_LENGTH and word not in COMMON_WORDS:
            topics.setdefault(word, None)
    return list(topics)


def score_messages(query_topics: Sequence[str], messages: Iterable[ChatMessageDB]) -> float:
    """Share of query topics that also occur somewhere in the messages."""
    if not query_topics:
        return 0.0
    session_topics = set(extract_key_topics(" ".join(m.content for m in messages)))
    matches = sum(1 for topic in query_topics if topic in session_topics)
    return matches / len(query_topics)


def rank_by_relevance(
    query: str, candidates: Iterable[Tuple[str, Sequence[ChatMessageDB]]], min_score: float = DEFAULT_MIN_SCORE
) -> List[Tuple[str, float]]:
    """
    Scores (session_id, messages) pairs against the query and returns the
    ones scoring above `min_score`, best first. Ties keep the input order.
    """
    query_topics = extract_key_topics(query)
    if not query_topics:
        return []
    scored = [(session_id, score_messages(query_topics, messages)) for session_id, messages in candidates]
    relevant = [item for item in scored if item[1] > min_score]
    relevant.sort(key=lambda item: item[1], reverse=True)
    return relevant

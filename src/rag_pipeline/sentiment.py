"""Keyword based sentiment classification for YouTube comments."""

from .schemas import Sentiment

POSITIVE_WORDS = (
    "great",
    "amazing",
    "awesome",
    "excellent",
    "perfect",
    "love",
    "good",
    "helpful",
    "thanks",
    "thank you",
    "wonderful",
    "fantastic",
    "brilliant",
    "outstanding",
    "superb",
    "incredible",
    "best",
    "recommend",
    "useful",
    "clear",
    "easy",
    "simple",
    "exactly",
    "looking for",
)

NEGATIVE_WORDS = (
    "bad",
    "terrible",
    "awful",
    "worst",
    "hate",
    "horrible",
    "useless",
    "waste",
    "confusing",
    "difficult",
    "hard",
    "wrong",
    "error",
    "broken",
    "poor",
    "disappointing",
    "frustrating",
    "annoying",
    "stupid",
    "dumb",
    "sucks",
    "garbage",
    "trash",
)


def classify_sentiment(text: str) -> Sentiment:
    """Classify a comment by counting positive and negative keywords.

    Matching is case-insensitive substring matching. Ties, including no
    matches at all, are neutral.

    Examples:
        >>> classify_sentiment("This tutorial was amazing, thank you!")
        <Sentiment.POSITIVE: 'positive'>
        >>> classify_sentiment("Waste of time, too confusing")
        <Sentiment.NEGATIVE: 'negative'>
    """
    lowered = text.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)

    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL

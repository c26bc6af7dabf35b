"""Sentiment predictor over social text, news score and market gauges."""

from quant_core.predictors.base import BasePredictor, clamp
from quant_core.predictors.models import MarketSnapshot, Prediction

POSITIVE_KEYWORDS = ("rally", "growth", "buy", "bullish", "profit")
NEGATIVE_KEYWORDS = ("drop", "decline", "sell", "bearish", "loss")


def social_score(text: str) -> float:
    """0.5 moved by 0.1 per positive/negative keyword present."""
    content = text.lower()
    score = 0.5
    score += 0.1 * sum(1 for k in POSITIVE_KEYWORDS if k in content)
    score -= 0.1 * sum(1 for k in NEGATIVE_KEYWORDS if k in content)
    return clamp(score)


def market_indicator_score(indicators: dict[str, float]) -> float:
    """Fear/greed index (0-100) blended with an inverted put/call ratio."""
    score = 0.5
    fear_greed = indicators.get("fear_greed_index")
    if fear_greed is not None:
        score = clamp(fear_greed / 100)
    put_call = indicators.get("put_call_ratio")
    if put_call is not None:
        score = (score + (1 - min(1.0, put_call / 2))) / 2
    return score


def classify_sentiment(score: float) -> str:
    if score > 0.7:
        return "VERY_BULLISH"
    if score > 0.6:
        return "BULLISH"
    if score < 0.3:
        return "VERY_BEARISH"
    if score < 0.4:
        return "BEARISH"
    return "NEUTRAL"


class SentimentPredictor(BasePredictor):
    name = "sentiment"

    def score(self, snapshot: MarketSnapshot) -> Prediction:
        sources: dict[str, float] = {}
        if snapshot.social_text:
            sources["social"] = social_score(snapshot.social_text)
        if snapshot.news_sentiment is not None:
            sources["news"] = clamp(snapshot.news_sentiment)
        if snapshot.market_indicators:
            sources["market_indicators"] = market_indicator_score(snapshot.market_indicators)

        score = sum(sources.values()) / len(sources) if sources else 0.5
        return Prediction(
            model=self.name,
            score=score,
            confidence=min(1.0, len(sources) / 3 * 0.8 + 0.2),
            details={"sentiment": classify_sentiment(score), "sources": sorted(sources)},
        )

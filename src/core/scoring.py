"""
Module to score every content item
"""
import math
from typing import Any

QUALITY_WEIGHT = 0.7
AUTHORITY_WEIGHT = 0.3

# LinkedIn posts are stored on a 0-100 scale; at or above this they count as relevant
LINKEDIN_RELEVANT_THRESHOLD = 50


def clamp_unit(value: Any) -> float:
    """
    Clamp a model- or user-supplied value into [0, 1].
    Anything that is not a number counts as 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return max(0.0, min(1.0, number))


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def weighted_score(quality_score: Any, authority: Any) -> float:
    return clamp_unit(quality_score) * QUALITY_WEIGHT + clamp_unit(authority) * AUTHORITY_WEIGHT


def calculate_post_score(quality_score: Any, authority: Any) -> float:
    """
    Final post_score for articles: 70% quality_score + 30% authority,
    rounded to two decimal places.
    """
    return _round_half_up(weighted_score(quality_score, authority), 2)


def calculate_linkedin_score(quality_score: Any, authority: Any, is_relevant: bool) -> int:
    """
    Same weighting as calculate_post_score, on an integer 0-100 scale.
    Irrelevant posts score 0.
    """
    if not is_relevant:
        return 0
    return int(_round_half_up(weighted_score(quality_score, authority) * 100))


def is_relevant_linkedin_score(score: int) -> bool:
    return score >= LINKEDIN_RELEVANT_THRESHOLD


def calculate_reddit_score(quality_score: Any) -> float:
    """Reddit rows keep the model's quality score (0..1) as post_score."""
    return clamp_unit(quality_score)

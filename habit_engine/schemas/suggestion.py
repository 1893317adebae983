from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SuggestionType(str, Enum):
    DIFFICULTY_ADJUSTMENT = "DIFFICULTY_ADJUSTMENT"
    TIMING_OPTIMIZATION = "TIMING_OPTIMIZATION"
    FREQUENCY_CHANGE = "FREQUENCY_CHANGE"
    HABIT_STACKING = "HABIT_STACKING"
    ENVIRONMENTAL_CHANGE = "ENVIRONMENTAL_CHANGE"
    MOTIVATION_BOOST = "MOTIVATION_BOOST"


class AdaptiveSuggestion(BaseModel):
    habit_id: str
    suggestion_type: SuggestionType
    title: str
    description: str
    rationale: str
    expected_improvement: float
    confidence: float = Field(ge=0.0, le=1.0)
    implementation: str
    risks: list[str] = Field(default_factory=list)

    @property
    def score(self) -> float:
        return self.expected_improvement * self.confidence


class InsightType(str, Enum):
    SUCCESS_RATE = "SUCCESS_RATE"
    STREAK_ANALYSIS = "STREAK_ANALYSIS"
    TIMING_OPTIMALITY = "TIMING_OPTIMALITY"
    CONSISTENCY_SCORE = "CONSISTENCY_SCORE"
    IMPROVEMENT_TREND = "IMPROVEMENT_TREND"


class TrendDirection(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


class PerformanceInsight(BaseModel):
    habit_id: str
    insight_type: InsightType
    title: str
    description: str
    magnitude: float
    trend: TrendDirection = TrendDirection.STABLE
    recommendation: str


class DifficultyLevel(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class DifficultyAdjustment(BaseModel):
    habit_id: str
    current_difficulty: DifficultyLevel
    suggested_difficulty: DifficultyLevel
    reason: str
    confidence: float


class IntelligenceScore(BaseModel):
    """Four 0..25 components; overall is their rounded sum."""

    overall: float
    pattern_recognition: float
    adaptive_learning: float
    predictive_accuracy: float
    insight_quality: float

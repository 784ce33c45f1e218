import yaml
import os
from typing import Dict, Optional
from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    url: str
    # Statement timeout for snapshot reads (PostgreSQL only); None = no limit
    read_timeout_seconds: Optional[float] = None


class ScorerConfig(BaseModel):
    """
    Weights and bonuses for the MatchScorer.

    Base weights sum to 100 before bonuses.
    """
    weight_specialty: int = 40
    weight_specialty_subspecialty: int = 25
    weight_specialty_posting_subspecialty: int = 20

    weight_experience: int = 25
    weight_experience_one_below: int = 15
    weight_experience_two_below: int = 5

    weight_skills: int = 20
    skills_unconstrained_score: int = 10
    skill_max_edit_distance: int = 2

    weight_requirement_years: int = 10

    weight_location: int = 5
    location_remote_other: int = 2
    location_hybrid: int = 4
    location_onsite: int = 3

    # Upper bounds (exclusive) in years for resident/junior/mid-level/senior tiers
    tier_thresholds: Dict[str, int] = Field(default_factory=lambda: {
        'resident': 2,
        'junior': 5,
        'mid-level': 10,
        'senior': 20,
    })

    bonus_verified: int = 5
    bonus_rating_high: int = 3
    bonus_rating_good: int = 2
    rating_high_threshold: float = 4.5
    rating_good_threshold: float = 4.0
    bonus_preferred_category: int = 5
    bonus_budget_in_range: int = 3


class RecommendationConfig(BaseModel):
    """Defaults and caps for the recommendation pipeline."""
    jobs_default_limit: int = 10
    jobs_default_min_score: int = 50
    candidates_default_limit: int = 20
    candidates_default_min_score: int = 60
    max_limit: int = 100
    bulk_max_ids: int = 20


class LifecycleConfig(BaseModel):
    """Quota and locking settings for the application/posting state machines."""
    daily_application_limit_verified: int = 15
    daily_application_limit_subscribed: int = 10
    daily_application_limit_default: int = 5
    accept_lock_timeout_seconds: float = 5.0


class NotificationConfig(BaseModel):
    """
    Lifecycle event delivery.

    Events are pushed to an RQ queue for downstream messaging collaborators;
    with the queue disabled or Redis unreachable they are only logged.
    """
    enabled: bool = True
    use_async_queue: bool = True
    redis_url: Optional[str] = None
    queue_name: str = "lifecycle_events"


class AppConfig(BaseModel):
    database: DatabaseConfig
    scorer: ScorerConfig = Field(default_factory=ScorerConfig)
    recommendation: RecommendationConfig = Field(default_factory=RecommendationConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)


def load_config(config_path: str = "config.yaml") -> AppConfig:
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})
        data['database']['url'] = env_db_url

    # Allow env var override for Redis URL
    env_redis_url = os.environ.get("REDIS_URL")
    if env_redis_url:
        if not data.get('notifications'):
            data['notifications'] = {}
        data['notifications']['redis_url'] = env_redis_url

    return AppConfig(**data)

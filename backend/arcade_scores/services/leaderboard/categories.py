"""Closed registry of leaderboard categories (one per arcade game)."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError, UnknownCategoryError


DEFAULT_CAPACITY = 10


class OrderingDirection(str, Enum):
    HIGHER_IS_BETTER = 'high'
    LOWER_IS_BETTER = 'low'


class CategoryId(str, Enum):
    PONG = 'pong'
    FLAPPY_BIRD = 'flappy-bird'
    SNAKE = 'snake'
    ROOFTOP_SNIPERS = 'rooftop-snipers'
    CHESS = 'chess'
    CITY_RUNNER = 'city-runner'
    RETRO_FOOTBALL = 'retro-football'
    BEDTIME_BERZERK = 'bedtime-berzerk'
    HOMERUN_DERBY = 'homerun-derby'


@dataclass(frozen=True)
class CategoryConfig:
    id: CategoryId
    direction: OrderingDirection
    capacity: int
    name: str
    metric: str
    icon: str

    def to_dict(self):
        return {
            'id': self.id.value,
            'name': self.name,
            'metric': self.metric,
            'icon': self.icon,
            'scoreType': self.direction.value,
            'capacity': self.capacity,
        }


_HIGH = OrderingDirection.HIGHER_IS_BETTER
_LOW = OrderingDirection.LOWER_IS_BETTER

CATEGORIES: Dict[CategoryId, CategoryConfig] = {
    c.id: c for c in (
        CategoryConfig(CategoryId.PONG, _HIGH, DEFAULT_CAPACITY, 'Pong', 'wins', '🏓'),
        CategoryConfig(CategoryId.FLAPPY_BIRD, _HIGH, DEFAULT_CAPACITY, 'Flappy Bird', 'score', '🐦'),
        CategoryConfig(CategoryId.SNAKE, _HIGH, DEFAULT_CAPACITY, 'Snake', 'score', '🐍'),
        CategoryConfig(CategoryId.ROOFTOP_SNIPERS, _HIGH, DEFAULT_CAPACITY, 'Rooftop Rumble', 'wins', '🎯'),
        CategoryConfig(CategoryId.CHESS, _HIGH, DEFAULT_CAPACITY, 'Chess', 'wins', '♟️'),
        CategoryConfig(CategoryId.CITY_RUNNER, _HIGH, DEFAULT_CAPACITY, 'City Runner', 'meters', '🏃'),
        CategoryConfig(CategoryId.RETRO_FOOTBALL, _HIGH, DEFAULT_CAPACITY, 'Retro Football', 'points', '🏈'),
        # Time to finish in milliseconds
        CategoryConfig(CategoryId.BEDTIME_BERZERK, _LOW, DEFAULT_CAPACITY, 'Bedtime Berzerk', 'time', '🛏️'),
        CategoryConfig(CategoryId.HOMERUN_DERBY, _HIGH, DEFAULT_CAPACITY, 'Homerun Derby', 'feet', '⚾'),
    )
}

METRICS = {'score', 'wins', 'meters', 'feet', 'points', 'time'}


def load_categories(capacity: Optional[int] = None,
                    base: Mapping[CategoryId, CategoryConfig] = CATEGORIES) -> Dict[CategoryId, CategoryConfig]:
    """Return a validated copy of the registry, optionally overriding every capacity."""
    configs = dict(base)
    if capacity is not None:
        configs = {cid: replace(cfg, capacity=int(capacity)) for cid, cfg in configs.items()}
    validate_categories(configs)
    return configs


def validate_categories(configs: Mapping[CategoryId, CategoryConfig]) -> None:
    missing = [cid.value for cid in CategoryId if cid not in configs]
    if missing:
        raise ConfigurationError(f"No configuration for categories: {', '.join(missing)}")
    for cid, cfg in configs.items():
        if cfg.id is not cid:
            raise ConfigurationError(f"Category {cid.value} is registered under the wrong id {cfg.id!r}")
        if not isinstance(cfg.direction, OrderingDirection):
            raise ConfigurationError(f"Category {cid.value} has invalid ordering direction {cfg.direction!r}")
        if isinstance(cfg.capacity, bool) or not isinstance(cfg.capacity, int) or cfg.capacity < 1:
            raise ConfigurationError(f"Category {cid.value} capacity must be a positive integer, got {cfg.capacity!r}")
        if cfg.metric not in METRICS:
            raise ConfigurationError(f"Category {cid.value} has unknown metric {cfg.metric!r}")


def resolve_category(category) -> CategoryId:
    if isinstance(category, CategoryId):
        return category
    try:
        return CategoryId(category)
    except ValueError:
        raise UnknownCategoryError(category) from None


def format_score(config: Optional[CategoryConfig], score) -> str:
    """Render a score for display according to the category's metric."""
    if config is None:
        return str(score)
    metric = config.metric
    if metric == 'time':
        total_seconds = int(score // 1000)
        minutes, seconds = divmod(total_seconds, 60)
        return f"{minutes}:{seconds:02d}"
    if metric == 'meters':
        return f"{int(score // 1)}m"
    if metric == 'feet':
        return f"{int(score // 1)} ft"
    if metric in ('points', 'score'):
        return f"{score:,}"
    if metric == 'wins':
        return '1 win' if score == 1 else f"{score} wins"
    return str(score)

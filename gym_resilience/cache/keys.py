"""Cache key conventions for exercise catalog data."""

from __future__ import annotations

EXERCISE_TTL_SECONDS = 60 * 60
LISTS_TTL_SECONDS = 24 * 60 * 60

BODY_PART_PREFIX = "bodypart_"
SEARCH_PREFIX = "search_"
EXERCISE_PREFIX = "exercise_"


class CacheKeys:
    body_part_counts = "bodypart_counts"
    muscles = "muscles_list"
    equipments = "equipments_list"
    body_parts = "bodyparts_list"

    @staticmethod
    def body_part_exercises(body_part: str) -> str:
        return f"{BODY_PART_PREFIX}{body_part.lower()}"

    @staticmethod
    def body_part_count(body_part: str) -> str:
        return f"{CacheKeys.body_part_exercises(body_part)}_count"

    @staticmethod
    def search(query: str) -> str:
        return f"{SEARCH_PREFIX}{query.lower()}"

    @staticmethod
    def exercise(exercise_id: str) -> str:
        return f"{EXERCISE_PREFIX}{exercise_id}"

    @classmethod
    def list_keys(cls) -> tuple[str, ...]:
        return (cls.muscles, cls.equipments, cls.body_parts, cls.body_part_counts)

    @classmethod
    def ttl_for(
        cls,
        key: str,
        exercise_ttl_seconds: float = EXERCISE_TTL_SECONDS,
        lists_ttl_seconds: float = LISTS_TTL_SECONDS,
    ) -> float:
        """Reference lists change rarely and live for a day; everything else for an hour."""
        return lists_ttl_seconds if key in cls.list_keys() else exercise_ttl_seconds

from __future__ import annotations

import sys

from reviews_api.db.crud import ReviewStore
from reviews_api.db.session import SessionLocal
from reviews_api.models.enums import EntityType
from reviews_api.services.ratings import ReviewAggregator


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: python scripts/rating_summary.py <entity_type: service|provider> <entity_id>")
        return 2

    entity_type = EntityType.parse(args[0])
    if entity_type is None:
        print(f"Unknown entity type: {args[0]}")
        return 2
    try:
        entity_id = int(args[1])
    except ValueError:
        print(f"Entity id must be an integer: {args[1]}")
        return 2

    db = SessionLocal()
    try:
        summary = ReviewAggregator(ReviewStore(db)).summarize(entity_type, entity_id)
    finally:
        db.close()

    print(f"{entity_type.value} {entity_id}: {summary.average_rating:.2f} avg over {summary.total_reviews} reviews")
    for stars, count in summary.distribution.items():
        print(f"  {stars}★ {count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

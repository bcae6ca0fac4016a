from datetime import datetime

from reviews_api.models.reviews import Review
from scripts.rating_summary import main


def test_rating_summary_script(store, capsys):
    ts = datetime(2024, 1, 2, 3, 4)
    for user_id, rating in [(1, 4), (2, 5)]:
        store.insert(
            Review(entity_type="provider", entity_id=7, user_id=user_id, rating=rating, created_at=ts, updated_at=ts)
        )

    assert main(["Provider", "7"]) == 0
    out = capsys.readouterr().out
    assert "provider 7: 4.50 avg over 2 reviews" in out
    assert "5★ 1" in out


def test_rating_summary_script_usage_errors(capsys):
    assert main([]) == 2
    assert main(["restaurant", "7"]) == 2
    assert main(["service", "seven"]) == 2
    assert "Usage" in capsys.readouterr().out

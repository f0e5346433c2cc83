from signage.models.screen import Screen
from signage.seed import seed
from signage.services.screen_config import build_screen_config


def test_seed_builds_a_clock_locked_video_wall(db):
    ids = seed(db)

    assert len(ids["screen_ids"]) == 4
    assert db.query(Screen).count() == 4

    config = build_screen_config(db, ids["screen_ids"][-1])
    assert config["matrix"] == {"participating": True, "total_rows": 2, "total_cols": 2}
    assert config["timecode"]["id"] == ids["timecode_id"]
    wall = config["playlist"]["entries"][0]["content"]
    assert wall["type"] == "COMPOSITION"
    assert wall["crop"] == {"x": 1920, "y": 1080, "width": 1920, "height": 1080}

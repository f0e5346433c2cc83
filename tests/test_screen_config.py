import json

import pytest

from signage.errors import NotFoundError
from signage.models.content import Content
from signage.models.playlist import Playlist, PlaylistEntry
from signage.models.screen import Screen
from signage.models.venue import Space, Venue
from signage.services.screen_config import build_screen_config, effective_duration

COMPOSITION = json.dumps(
    {"version": 1, "width": 3840, "height": 2160, "meta": {"effect": None}, "payload": {"layers": []}}
)


@pytest.fixture
def space(db) -> Space:
    venue = Venue(name="Venue")
    db.add(venue)
    db.commit()
    space = Space(venue_id=venue.id, name="Atrium")
    db.add(space)
    db.commit()
    return space


def add_playlist(db, *contents, durations=None) -> Playlist:
    playlist = Playlist(name="Loop")
    db.add(playlist)
    db.commit()
    durations = durations or [None] * len(contents)
    for order, (content, duration) in enumerate(zip(contents, durations)):
        db.add(PlaylistEntry(playlist_id=playlist.id, content_id=content.id, order=order, duration=duration))
    db.commit()
    return playlist


def test_effective_duration_fallbacks():
    assert effective_duration(5, 20) == 5
    assert effective_duration(None, 20) == 20
    assert effective_duration(None, None) == 10


def test_unknown_screen_raises(db):
    with pytest.raises(NotFoundError):
        build_screen_config(db, "nope")


def test_screen_without_playlist(db, space):
    screen = Screen(space_id=space.id, name="Solo")
    db.add(screen)
    db.commit()

    config = build_screen_config(db, screen.id)
    assert config["playlist"] is None
    assert config["timecode"] is None
    assert config["matrix"] == {"participating": False, "total_rows": 1, "total_cols": 1}


def test_entries_come_back_in_order_with_effective_durations(db, space):
    menu = Content(name="Menu", type="MENU_HTML", body="<p>menu</p>", duration=20)
    clip = Content(name="Clip", type="VIDEO", url="https://example.com/a.mp4", duration=30)
    db.add_all([menu, clip])
    db.commit()
    playlist = add_playlist(db, clip, menu, durations=[None, 7])
    screen = Screen(space_id=space.id, name="Solo", playlist_id=playlist.id)
    db.add(screen)
    db.commit()

    entries = build_screen_config(db, screen.id)["playlist"]["entries"]
    assert [e["content"]["name"] for e in entries] == ["Clip", "Menu"]
    assert [e["effective_duration"] for e in entries] == [30, 7]


def test_matrix_screen_gets_its_crop(db, space):
    wall = Content(name="Wall", type="COMPOSITION", data=COMPOSITION)
    db.add(wall)
    db.commit()
    playlist = add_playlist(db, wall)
    screens = [
        Screen(space_id=space.id, name=f"Cell {r}{c}", playlist_id=playlist.id, matrix_row=r, matrix_col=c)
        for r in range(2)
        for c in range(2)
    ]
    db.add_all(screens)
    db.commit()

    config = build_screen_config(db, screens[3].id)
    assert config["matrix"] == {"participating": True, "total_rows": 2, "total_cols": 2}
    content = config["playlist"]["entries"][0]["content"]
    assert content["malformed"] is False
    assert content["composition"]["width"] == 3840
    assert content["crop"] == {"x": 1920, "y": 1080, "width": 1920, "height": 1080}


def test_lone_positioned_screen_is_not_a_matrix(db, space):
    wall = Content(name="Wall", type="COMPOSITION", data=COMPOSITION)
    db.add(wall)
    db.commit()
    playlist = add_playlist(db, wall)
    screen = Screen(space_id=space.id, name="Only", playlist_id=playlist.id, matrix_row=0, matrix_col=1)
    db.add(screen)
    db.commit()

    config = build_screen_config(db, screen.id)
    assert config["matrix"]["participating"] is False
    assert config["playlist"]["entries"][0]["content"]["crop"] is None


def test_malformed_composition_is_flagged_not_fatal(db, space):
    broken = Content(name="Broken", type="COMPOSITION", data="{not json")
    image = Content(name="Poster", type="IMAGE", url="https://example.com/p.png")
    db.add_all([broken, image])
    db.commit()
    playlist = add_playlist(db, broken, image)
    screen = Screen(space_id=space.id, name="Solo", playlist_id=playlist.id)
    db.add(screen)
    db.commit()

    entries = build_screen_config(db, screen.id)["playlist"]["entries"]
    assert entries[0]["content"]["malformed"] is True
    assert entries[0]["content"]["composition"] is None
    assert entries[1]["content"]["malformed"] is False


def test_editor_composition_without_size_is_cropped_at_full_hd(db, space):
    saved = json.dumps({"meta": {"effect": "snow"}, "fabric": {"objects": []}})
    wall = Content(name="Editor Wall", type="COMPOSITION", data=saved)
    db.add(wall)
    db.commit()
    playlist = add_playlist(db, wall)
    left = Screen(space_id=space.id, name="Left", playlist_id=playlist.id, matrix_row=0, matrix_col=0)
    right = Screen(space_id=space.id, name="Right", playlist_id=playlist.id, matrix_row=0, matrix_col=1)
    db.add_all([left, right])
    db.commit()

    content = build_screen_config(db, right.id)["playlist"]["entries"][0]["content"]
    assert content["malformed"] is False
    assert content["composition"]["meta"] == {"effect": "snow"}
    assert content["crop"] == {"x": 960, "y": 0, "width": 960, "height": 1080}

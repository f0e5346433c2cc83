import json
from datetime import date, timedelta

from sqlalchemy.orm import Session

from signage.db import SessionLocal, init_db
from signage.models.content import Content
from signage.models.playlist import Playlist, PlaylistEntry
from signage.models.schedule import Schedule
from signage.models.screen import Screen
from signage.models.timecode import Timecode
from signage.models.venue import Space, Venue
from signage.timeutil import utcnow

WALL_COMPOSITION = {
    "version": 1,
    "width": 3840,
    "height": 2160,
    "meta": {"effect": "none"},
    "payload": {"layers": [{"kind": "text", "text": "Welcome", "x": 1920, "y": 1080}]},
}


def seed(db: Session | None = None) -> dict:
    init_db()
    owns_session = db is None
    db = db or SessionLocal()
    try:
        venue = Venue(name="Main Venue")
        db.add(venue)
        db.commit()
        db.refresh(venue)

        lobby = Space(venue_id=venue.id, name="Lobby")
        db.add(lobby)
        db.commit()
        db.refresh(lobby)

        wall_clock = Timecode(name="Lobby Wall", speed=1.0, started_at=utcnow(), is_running=True)
        db.add(wall_clock)
        db.commit()
        db.refresh(wall_clock)

        welcome = Content(name="Welcome Wall", type="COMPOSITION", data=json.dumps(WALL_COMPOSITION), duration=15)
        menu = Content(name="Menu", type="MENU_HTML", body="<h1>Today</h1><p>Soup of the day</p>", duration=20)
        promo = Content(name="Promo Clip", type="VIDEO", url="https://example.com/promo.mp4", duration=30)
        for content in (welcome, menu, promo):
            db.add(content)
        db.commit()

        wall_playlist = Playlist(name="Wall Loop")
        evening_playlist = Playlist(name="Evening Promo")
        db.add(wall_playlist)
        db.add(evening_playlist)
        db.commit()
        db.refresh(wall_playlist)
        db.refresh(evening_playlist)

        for order, content in enumerate((welcome, menu)):
            db.add(PlaylistEntry(playlist_id=wall_playlist.id, content_id=content.id, order=order))
        db.add(PlaylistEntry(playlist_id=evening_playlist.id, content_id=promo.id, order=0, duration=20))
        db.commit()

        screens = []
        for row in range(2):
            for col in range(2):
                screen = Screen(
                    space_id=lobby.id,
                    name=f"Wall {row + 1}-{col + 1}",
                    resolution="1920x1080",
                    playlist_id=wall_playlist.id,
                    timecode_id=wall_clock.id,
                    matrix_row=row,
                    matrix_col=col,
                )
                db.add(screen)
                screens.append(screen)
        db.commit()

        today = date.today()
        for screen in screens:
            db.add(
                Schedule(
                    screen_id=screen.id,
                    playlist_id=evening_playlist.id,
                    name="Evening Promo",
                    priority=1,
                    start_date=today,
                    end_date=today + timedelta(days=30),
                    start_time="18:00",
                    end_time="22:00",
                    days_of_week="1,2,3,4,5",
                )
            )
        db.commit()

        return {
            "venue_id": venue.id,
            "space_id": lobby.id,
            "timecode_id": wall_clock.id,
            "screen_ids": [screen.id for screen in screens],
            "playlist_ids": [wall_playlist.id, evening_playlist.id],
        }
    finally:
        if owns_session:
            db.close()


def main() -> None:
    ids = seed()
    print(f"Seeded venue {ids['venue_id']} with screens: {', '.join(ids['screen_ids'])}")


if __name__ == "__main__":
    main()

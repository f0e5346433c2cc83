from datetime import timedelta

from signage.models.screen import Screen
from signage.services.realtime import screen_channel
from signage.timeutil import utcnow


def create_screen(client, space_id, **fields):
    payload = {"name": "Entrance", "space_id": space_id}
    payload.update(fields)
    resp = client.post("/screens", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_image(client, name="Poster", duration=10):
    resp = client.post(
        "/content",
        json={"name": name, "type": "IMAGE", "url": f"https://example.com/{name}.png", "duration": duration},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_playlist(client, name="Daytime"):
    resp = client.post("/playlists", json={"name": name})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_root_and_healthz(client):
    assert client.get("/").json()["ok"] is True
    assert client.get("/healthz").json() == {"ok": True}


def test_unknown_entities_return_404(client):
    resp = client.get("/screens/missing")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Screen not found"
    assert client.get("/playlists/missing").status_code == 404
    assert client.post("/timecodes/missing/start").status_code == 404
    assert client.get("/player/screens/missing/config").status_code == 404


def test_venue_space_screen_crud(client, layout):
    screen = create_screen(client, layout["space_id"], resolution="1920x1080", matrix_row=0, matrix_col=1)
    assert screen["orientation"] == "LANDSCAPE"
    assert screen["matrix_col"] == 1

    listed = client.get("/screens", params={"space_id": layout["space_id"]}).json()
    assert [s["id"] for s in listed] == [screen["id"]]

    updated = client.put(f"/screens/{screen['id']}", json={"name": "Exit", "matrix_row": None}).json()
    assert updated["name"] == "Exit"
    assert updated["matrix_row"] is None
    assert updated["matrix_col"] == 1

    assert client.delete(f"/venues/{layout['venue_id']}").json() == {"ok": True}
    assert client.get(f"/screens/{screen['id']}").status_code == 404
    assert client.get(f"/spaces/{layout['space_id']}").status_code == 404


def test_screen_requires_existing_space(client):
    resp = client.post("/screens", json={"name": "Nowhere", "space_id": "missing"})
    assert resp.status_code == 404


def test_content_validation_reports_field_errors(client):
    resp = client.post("/content", json={"name": "Clip", "type": "VIDEO"})
    assert resp.status_code == 422
    assert "url" in resp.json()["errors"]

    resp = client.post("/content", json={"name": "Menu", "type": "MENU_HTML", "body": "  "})
    assert resp.status_code == 422
    assert "body" in resp.json()["errors"]

    resp = client.post("/content", json={"name": "Wall", "type": "COMPOSITION", "data": "{"})
    assert resp.status_code == 422
    assert "data" in resp.json()["errors"]


def test_content_filters(client):
    create_image(client, "Summer Poster")
    client.post("/content", json={"name": "Menu", "type": "MENU_HTML", "body": "<p>x</p>"})
    assert [c["name"] for c in client.get("/content", params={"type": "menu_html"}).json()] == ["Menu"]
    assert [c["name"] for c in client.get("/content", params={"q": "summer"}).json()] == ["Summer Poster"]


def test_entries_append_with_default_duration_and_reorder(client):
    playlist = create_playlist(client)
    first = create_image(client, "First", duration=12)
    second = create_image(client, "Second")
    third = create_image(client, "Third")

    entries = [
        client.post(f"/playlists/{playlist['id']}/entries", json={"content_id": c["id"]}).json()
        for c in (first, second, third)
    ]
    assert [e["order"] for e in entries] == [0, 1, 2]
    assert entries[0]["duration"] == 12

    new_order = [entries[2]["id"], entries[0]["id"], entries[1]["id"]]
    resp = client.put(f"/playlists/{playlist['id']}/order", json={"entry_ids": new_order})
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()] == new_order
    assert [e["order"] for e in resp.json()] == [0, 1, 2]

    listed = client.get(f"/playlists/{playlist['id']}/entries").json()
    assert [e["id"] for e in listed] == new_order


def test_reorder_rejects_incomplete_id_sets(client):
    playlist = create_playlist(client)
    a = client.post(f"/playlists/{playlist['id']}/entries", json={"content_id": create_image(client, "A")["id"]}).json()
    b = client.post(f"/playlists/{playlist['id']}/entries", json={"content_id": create_image(client, "B")["id"]}).json()

    for ids in ([a["id"]], [a["id"], a["id"]], [a["id"], b["id"], "ghost"]):
        resp = client.put(f"/playlists/{playlist['id']}/order", json={"entry_ids": ids})
        assert resp.status_code == 422
        assert "entry_ids" in resp.json()["errors"]

    listed = client.get(f"/playlists/{playlist['id']}/entries").json()
    assert [e["id"] for e in listed] == [a["id"], b["id"]]


def test_entry_duration_override_can_be_cleared(client):
    playlist = create_playlist(client)
    content = create_image(client, "A", duration=15)
    entry = client.post(
        f"/playlists/{playlist['id']}/entries", json={"content_id": content["id"], "duration": 4}
    ).json()
    assert entry["duration"] == 4

    url = f"/playlists/{playlist['id']}/entries/{entry['id']}"
    assert client.put(url, json={}).json()["duration"] == 4
    assert client.put(url, json={"duration": None}).json()["duration"] is None


def test_playlist_change_notifies_screens_that_use_it(client, layout, bus):
    playlist = create_playlist(client)
    screen = create_screen(client, layout["space_id"], playlist_id=playlist["id"])
    received = []
    bus.subscribe(screen_channel(screen["id"]), received.append)

    client.post(f"/playlists/{playlist['id']}/entries", json={"content_id": create_image(client)["id"]})

    assert received == [{"type": "playlist:updated", "playlistId": playlist["id"]}]


def test_deleting_playlist_clears_screen_default(client, layout):
    playlist = create_playlist(client)
    screen = create_screen(client, layout["space_id"], playlist_id=playlist["id"])
    client.post(
        "/schedules",
        json={"screen_id": screen["id"], "playlist_id": playlist["id"]},
    )

    assert client.delete(f"/playlists/{playlist['id']}").status_code == 200
    assert client.get(f"/screens/{screen['id']}").json()["playlist_id"] is None
    assert client.get("/schedules", params={"screen_id": screen["id"]}).json() == []


def test_schedule_crud_and_active_schedule(client, layout, bus):
    playlist = create_playlist(client, "Weekday")
    screen = create_screen(client, layout["space_id"])
    received = []
    bus.subscribe(screen_channel(screen["id"]), received.append)

    resp = client.post(
        "/schedules",
        json={
            "screen_id": screen["id"],
            "playlist_id": playlist["id"],
            "priority": 3,
            "start_time": "09:00",
            "end_time": "17:00:00",
            "days_of_week": [5, 1, 3, 3],
        },
    )
    assert resp.status_code == 200, resp.text
    schedule = resp.json()
    assert schedule["name"] == "Untitled Schedule"
    assert schedule["end_time"] == "17:00"
    assert schedule["days_of_week"] == [1, 3, 5]
    assert received[-1]["type"] == "schedule:changed"

    active = client.get(f"/screens/{screen['id']}/active-schedule", params={"at": "2024-01-03T10:00:00"})
    assert active.json()["playlist_name"] == "Weekday"
    idle = client.get(f"/screens/{screen['id']}/active-schedule", params={"at": "2024-01-06T10:00:00"})
    assert idle.json() is None

    updated = client.put(f"/schedules/{schedule['id']}", json={"days_of_week": None, "name": "Always"}).json()
    assert updated["days_of_week"] is None
    assert updated["name"] == "Always"

    assert client.delete(f"/schedules/{schedule['id']}").json() == {"ok": True}
    assert client.get(f"/schedules/{schedule['id']}").status_code == 404


def test_schedule_input_is_validated(client, layout):
    playlist = create_playlist(client)
    screen = create_screen(client, layout["space_id"])
    base = {"screen_id": screen["id"], "playlist_id": playlist["id"]}

    assert client.post("/schedules", json={**base, "start_time": "25:00"}).status_code == 422
    assert client.post("/schedules", json={**base, "days_of_week": [7]}).status_code == 422
    assert (
        client.post("/schedules", json={**base, "start_date": "2024-02-01", "end_date": "2024-01-01"}).status_code
        == 422
    )


def test_timecode_endpoints(client, layout, bus):
    resp = client.post("/timecodes", json={"name": "Wall Clock", "speed": 2})
    assert resp.status_code == 200
    timecode = resp.json()
    assert timecode["is_running"] is True

    assert client.post("/timecodes", json={"name": "Too fast", "speed": 11}).status_code == 422
    assert client.post("/timecodes", json={"name": "Too slow", "speed": 0.1}).status_code == 422

    screen = create_screen(client, layout["space_id"])
    received = []
    bus.subscribe(screen_channel(screen["id"]), received.append)
    assigned = client.put(f"/screens/{screen['id']}/timecode", json={"timecode_id": timecode["id"]}).json()
    assert assigned["timecode_id"] == timecode["id"]

    stopped = client.post(f"/timecodes/{timecode['id']}/stop").json()
    assert stopped["is_running"] is False
    status = client.get(f"/timecodes/{timecode['id']}/status").json()
    assert status["isRunning"] is False
    assert status["elapsedMs"] == 0

    client.post(f"/timecodes/{timecode['id']}/start")
    assert [event["type"] for event in received] == ["timecode:assigned", "timecode:stopped", "timecode:started"]

    assert client.delete(f"/timecodes/{timecode['id']}").json() == {"ok": True}
    assert client.get(f"/screens/{screen['id']}").json()["timecode_id"] is None


def test_config_fetch_records_heartbeat(client, layout, db):
    screen = create_screen(client, layout["space_id"])
    stale = db.get(Screen, screen["id"])
    stale.updated_at = utcnow() - timedelta(minutes=10)
    db.commit()

    report = {row["id"]: row for row in client.get("/screen-health").json()}
    assert report[screen["id"]]["status"] == "offline"

    config = client.get(f"/player/screens/{screen['id']}/config")
    assert config.status_code == 200
    assert config.json()["screen"]["id"] == screen["id"]

    report = {row["id"]: row for row in client.get("/screen-health").json()}
    assert report[screen["id"]]["status"] == "online"
    assert report[screen["id"]]["space"] == "Foyer"


def test_screen_health_reports_active_schedule(client, layout):
    playlist = create_playlist(client, "Brunch")
    screen = create_screen(client, layout["space_id"])
    client.post(
        "/schedules",
        json={"screen_id": screen["id"], "playlist_id": playlist["id"], "name": "Sunday Brunch", "days_of_week": [0]},
    )

    sunday = client.get("/screen-health", params={"at": "2024-01-07T11:00:00"}).json()[0]
    assert sunday["scheduleCount"] == 1
    assert sunday["activeSchedule"]["playlistName"] == "Brunch"

    monday = client.get("/screen-health", params={"at": "2024-01-08T11:00:00"}).json()[0]
    assert monday["activeSchedule"] is None


def test_heartbeat_endpoint(client, layout):
    screen = create_screen(client, layout["space_id"])
    resp = client.post(f"/player/screens/{screen['id']}/heartbeat")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert client.get(f"/screens/{screen['id']}").json()["status"] == "ONLINE"

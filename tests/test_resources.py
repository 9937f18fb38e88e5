import os

from resources import get_media_storage
from storage import LocalStorage

VIDEO = {"subject": "Science", "class": 8, "videoId": "dQw4w9WgXcQ", "title": "Light"}


def test_video_upsert_by_subject_and_class(client):
    assert client.post("/videos", json=VIDEO).json()["message"] == "Video saved"

    res = client.post("/videos", json={**VIDEO, "videoId": "abcdefghijk", "title": None})

    assert res.json()["message"] == "Video updated"
    videos = client.get("/videos").json()
    assert len(videos) == 1
    assert videos[0]["videoId"] == "abcdefghijk"
    assert videos[0]["title"] == "Lesson"
    assert videos[0]["class"] == 8


def test_video_validation(client):
    assert client.post("/videos", json={**VIDEO, "videoId": "short"}).status_code == 400
    res = client.post("/videos", json={"videoId": "dQw4w9WgXcQ"})
    assert res.status_code == 400
    assert res.json()["error"] == "Subject and class required"


def test_update_and_delete_video(client):
    client.post("/videos", json=VIDEO)
    video_id = client.get("/videos").json()[0]["id"]

    res = client.put(f"/videos/{video_id}", json={"title": "Optics"})

    assert res.status_code == 200
    assert res.json()["video"]["title"] == "Optics"
    assert client.put(f"/videos/{video_id}", json={"videoId": "bad"}).status_code == 400
    assert client.delete(f"/videos/{video_id}").status_code == 200
    assert client.delete(f"/videos/{video_id}").status_code == 404


def test_update_unknown_video(client):
    assert client.put("/videos/64b7f0c2a1b2c3d4e5f60718", json={"title": "x"}).status_code == 404


def test_notes(client):
    assert client.post("/api/save-note", json={"title": "Day 1", "content": "Revise optics"}).json()["success"]
    client.post("/api/save-note", json={"title": "Day 2", "content": "Revise sound"})

    notes = client.get("/api/notes").json()

    assert {n["title"] for n in notes} == {"Day 1", "Day 2"}
    assert client.post("/api/save-note", json={"title": "Empty"}).status_code == 400


def test_save_army_video_link(client):
    res = client.post("/save-army-video", json={"title": "Drill", "url": "https://example.com/drill.mp4"})

    assert res.status_code == 200
    videos = client.get("/api/army-videos").json()
    assert videos[0]["url"] == "https://example.com/drill.mp4"
    assert client.post("/save-army-video", json={"title": "Drill"}).status_code == 400


def test_upload_army_video(client, app, tmp_path):
    app.dependency_overrides[get_media_storage] = lambda: LocalStorage(str(tmp_path))

    res = client.post(
        "/upload-army-video",
        data={"title": "Parade"},
        files={"video": ("parade.mp4", b"\x00\x01video", "video/mp4")},
    )

    assert res.status_code == 200
    url = res.json()["video"]["url"]
    assert url.startswith("/uploads/army-videos/") and url.endswith(".mp4")
    stored = tmp_path / "army-videos" / os.path.basename(url)
    assert stored.read_bytes() == b"\x00\x01video"
    assert client.get("/api/army-videos").json()[0]["title"] == "Parade"


def test_upload_army_video_needs_title(client, app, tmp_path):
    app.dependency_overrides[get_media_storage] = lambda: LocalStorage(str(tmp_path))

    res = client.post("/upload-army-video", files={"video": ("parade.mp4", b"data", "video/mp4")})

    assert res.status_code == 400
    assert res.json()["error"] == "Title missing"
    assert not (tmp_path / "army-videos").exists()


def test_upload_army_video_needs_file(client):
    assert client.post("/upload-army-video", data={"title": "Parade"}).status_code == 400

import pytest

from photofolio import server, thumbs


@pytest.fixture
def client(gallery):
    thumbs.build(gallery)
    server.configure(gallery)
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


def test_ping(client, gallery):
    data = client.get("/api/ping").get_json()
    assert data["ok"] is True
    assert data["manifest_entries"] == 24


def test_gallery_lists_categories_with_thumbnails(client):
    data = client.get("/api/gallery").get_json()
    assert data["total"] == 5
    assert [c["name"] for c in data["categories"]] == ["Event", "Sports Day"]
    first = data["categories"][0]["items"][0]
    assert first["src"] == "/src/assets/photos/event/img1.jpeg"
    assert first["display"] == "/thumbs/img1-800.webp"
    assert first["srcset"].endswith("/thumbs/img1-1200.webp 1200w")
    assert data["banner"]["display"] == "/thumbs/hero-800.webp"
    assert data["categories"][1]["items"][0]["index"] == 3


def test_layout_rows(client):
    resp = client.get("/api/layout?category=event&width=900&gap=10&scroll=0&viewport=600")
    assert resp.status_code == 200
    data = resp.get_json()
    placed = [it["src"] for r in data["rows"] for it in r["items"]]
    assert placed == [
        "/src/assets/photos/event/img1.jpeg",
        "/src/assets/photos/event/img2.jpg",
        "/src/assets/photos/event/img10.jpg",
    ]
    assert all(r["height"] >= 80 for r in data["rows"])
    assert data["base_row_height"] == 220
    assert len(data["offsets"]) == len(data["rows"]) + 1
    assert data["visible"]["start"] == 0
    assert data["visible"]["end"] == len(data["rows"])


@pytest.mark.parametrize("query,status", [
    ("category=event", 400),
    ("category=event&width=abc", 400),
    ("category=event&width=0", 400),
    ("category=event&width=inf", 400),
    ("category=event&width=-inf", 400),
    ("category=event&width=1e400", 400),
    ("category=event&width=nan", 400),
    ("category=event&width=900&viewport=inf", 400),
    ("category=nope&width=900", 404),
])
def test_layout_rejects_bad_requests(client, query, status):
    assert client.get(f"/api/layout?{query}").status_code == status


def test_lightbox_wraps_and_deep_links(client):
    data = client.get("/api/lightbox/0").get_json()
    assert data["item"]["src"] == "/src/assets/photos/event/img1.jpeg"
    assert data["prev"] == 4
    assert data["next"] == 1
    assert data["hash"] == "#lb=0"
    assert data["exif"] is None
    assert client.get("/api/lightbox/5").status_code == 404


def test_static_routes(client):
    assert client.get("/thumbs/img10-800.webp").status_code == 200
    assert client.get("/generated/manifest.json").get_json()["/assets/img10.jpg"] == "/thumbs/img10-800.webp"
    assert client.get("/src/assets/photos/event/img2.jpg").status_code == 200
    assert client.get("/assets/hero.jpg").status_code == 200
    assert client.get("/assets/nope.jpg").status_code == 404


def test_main_prebuild_and_missing_root(gallery, tmp_path):
    assert server.main(["--root", str(tmp_path / "missing")]) == 2
    assert server.main(["--root", str(gallery.root), "--prebuild"]) == 0
    assert gallery.manifest_path.is_file()


def test_prebuild_configures_info_logging(gallery, monkeypatch):
    calls = []
    monkeypatch.setattr(server.logging, "basicConfig", lambda **kw: calls.append(kw))
    assert server.main(["--root", str(gallery.root), "--prebuild"]) == 0
    assert calls and calls[0]["level"] == server.logging.INFO

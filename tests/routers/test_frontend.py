def test_index_is_served(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "upload here" in resp.text


def test_static_file_is_served(client, settings):
    (settings.webroot / "style.css").write_text("body { color: red; }")

    resp = client.get("/style.css")

    assert resp.status_code == 200
    assert resp.text == "body { color: red; }"


def test_unknown_static_file_redirects_home(client):
    resp = client.get("/missing.js", follow_redirects=False)

    assert resp.status_code == 303
    assert resp.headers["location"] == "/"

from http import HTTPStatus

from fastapi.testclient import TestClient

from relations_demo import crud
from relations_demo.config import Settings
from relations_demo.main import create_app
from relations_demo.results import Failure
from relations_demo.routes.pages import DANGLING_DETAIL


def test_index_renders_empty_lists(client):
    response = client.get("/")

    assert response.status_code == HTTPStatus.OK
    assert "text/html" in response.headers["content-type"]
    assert "No people yet." in response.text
    assert "No languages yet." in response.text


def test_create_user_redirects_home(client):
    response = client.post("/user", data={"username": "Ada"}, follow_redirects=False)

    assert response.status_code == HTTPStatus.SEE_OTHER
    assert response.headers["location"] == "/"

    overview = client.get("/api/overview").json()
    assert [p["name"] for p in overview["people"]] == ["Ada"]


def test_full_flow_shows_joined_fluency(client):
    client.post("/user", data={"username": "Ada"})
    client.post("/language", data={"language": "Rust"})
    response = client.post(
        "/fluency",
        data={"fluency": "expert", "userId": "1", "languageId": "1"},
        follow_redirects=False,
    )
    assert response.status_code == HTTPStatus.SEE_OTHER

    page = client.get("/")
    assert page.status_code == HTTPStatus.OK
    assert "<td>Ada</td><td>Rust</td><td>expert</td>" in page.text

    overview = client.get("/api/overview").json()
    assert overview == {
        "people": [{"id": 1, "name": "Ada"}],
        "languages": [{"id": 1, "name": "Rust"}],
        "fluencies": [
            {
                "user_id": 1,
                "user_name": "Ada",
                "language_id": 1,
                "language_name": "Rust",
                "level": "expert",
            }
        ],
    }


def test_fluency_for_unknown_user_is_rejected(client, language_factory):
    rust = language_factory("Rust")

    response = client.post(
        "/fluency",
        data={"fluency": "novice", "userId": "5", "languageId": str(rust.id)},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.json()["detail"] == "User 5 does not exist"
    assert client.get("/api/overview").json()["fluencies"] == []


def test_blank_user_name_is_a_validation_error(client):
    response = client.post("/user", data={"username": "   "})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    errors = response.json()["detail"]
    assert [e["loc"] for e in errors] == ["user_name"]


def test_non_numeric_ids_are_validation_errors(client):
    response = client.post(
        "/fluency",
        data={"fluency": "novice", "userId": "abc", "languageId": ""},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    locs = {e["loc"] for e in response.json()["detail"]}
    assert locs == {"user_id", "language_id"}


def test_validation_error_is_rendered_as_html_for_browsers(client):
    response = client.post(
        "/language",
        data={"language": ""},
        headers={"accept": "text/html"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "text/html" in response.headers["content-type"]
    assert "language_name" in response.text


def test_dangling_fluency_returns_500(client, language_factory, fluency_factory):
    rust = language_factory("Rust")
    fluency_factory(99, rust.id, "novice")

    response = client.get("/api/overview")
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == DANGLING_DETAIL

    page = client.get("/", headers={"accept": "text/html"})
    assert page.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert DANGLING_DETAIL in page.text


def test_commit_failure_returns_500(client, monkeypatch):
    monkeypatch.setattr(
        crud,
        "create_user",
        lambda db, user_in: Failure("Database commit failed", transient=True),
    )

    response = client.post("/user", data={"username": "Ada"})

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "Database commit failed"


def test_unknown_route_returns_json_404(client):
    response = client.get("/nope")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {"detail": "Not Found"}


def test_each_app_renders_its_own_name(store):
    first = create_app(store, Settings(app_name="First"))
    create_app(store, Settings(app_name="Second"))

    with TestClient(first) as c:
        response = c.get("/")

    assert "<title>Fluencies | First</title>" in response.text


def test_unhandled_error_returns_500(store, monkeypatch, caplog):
    def _broken_overview(db):
        raise RuntimeError("database went away")

    monkeypatch.setattr(crud, "load_overview", _broken_overview)
    app = create_app(store, Settings(app_name="Relations Test"))

    with TestClient(app, raise_server_exceptions=False) as c:
        response = c.get("/api/overview")
        page = c.get("/", headers={"accept": "text/html"})

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Internal server error"}
    assert page.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "Internal server error" in page.text
    assert "Unhandled application error" in caplog.text

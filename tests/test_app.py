import pytest
from starlette.testclient import TestClient

from escaper.runtime.app import EscaperApp
from escaper.runtime.cors import CORSHeadersMiddleware


@pytest.fixture
def client() -> TestClient:
    return TestClient(EscaperApp().app)


def test_index_renders_escaped_query(client: TestClient) -> None:
    response = client.get("/", params={"q": "<script>alert(1)</script>"})
    assert response.status_code == 200
    assert "<script>alert(1)" not in response.text
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in response.text
    assert response.headers["access-control-allow-origin"] == "*"


def test_index_without_query(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert 'value=""' in response.text


def test_cors_headers_on_every_response(client: TestClient) -> None:
    response = client.get("/contexts")
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert (
        response.headers["access-control-allow-headers"]
        == "Content-Type, Authorization"
    )
    assert "access-control-max-age" not in response.headers


def test_cors_headers_on_errors(client: TestClient) -> None:
    response = client.get("/missing")
    assert response.status_code == 404
    assert response.headers["access-control-allow-origin"] == "*"


def test_preflight_short_circuits(client: TestClient) -> None:
    response = client.options("/escape/html")
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-max-age"] == "86400"
    assert response.headers["access-control-allow-origin"] == "*"


def test_preflight_never_reaches_app() -> None:
    async def failing_app(scope, receive, send):
        raise AssertionError("app must not be called for OPTIONS")

    client = TestClient(CORSHeadersMiddleware(failing_app, max_age=60))
    response = client.options("/anything")
    assert response.status_code == 200
    assert response.headers["access-control-max-age"] == "60"


def test_custom_cors_config() -> None:
    app = EscaperApp(
        allow_origin="https://example.com",
        allow_methods=["GET"],
        allow_headers=["X-Token"],
        max_age=10,
    )
    client = TestClient(app.app)
    response = client.get("/contexts")
    assert response.headers["access-control-allow-origin"] == "https://example.com"
    assert response.headers["access-control-allow-methods"] == "GET"
    assert response.headers["access-control-allow-headers"] == "X-Token"
    assert client.options("/").headers["access-control-max-age"] == "10"


def test_contexts_listing(client: TestClient) -> None:
    data = client.get("/contexts").json()
    assert [c["name"] for c in data["contexts"]] == [
        "attr",
        "css",
        "html",
        "js",
        "url",
        "xml",
    ]


def test_escape_get(client: TestClient) -> None:
    response = client.get("/escape/url", params={"value": "a b+c"})
    assert response.status_code == 200
    assert response.json() == {"context": "url", "input": "a b+c", "output": "a+b%2Bc"}


def test_escape_post(client: TestClient) -> None:
    response = client.post("/escape/XML", json={"value": "<a>&'\"</a>"})
    assert response.status_code == 200
    body = response.json()
    assert body["context"] == "xml"
    assert body["output"] == "&lt;a&gt;&amp;&apos;&quot;&lt;/a&gt;"


def test_escape_unknown_context(client: TestClient) -> None:
    response = client.get("/escape/sql", params={"value": "x"})
    assert response.status_code == 404
    assert "sql" in response.json()["error"]


def test_escape_missing_value(client: TestClient) -> None:
    response = client.get("/escape/html")
    assert response.status_code == 400


def test_escape_non_string_value(client: TestClient) -> None:
    response = client.post("/escape/html", json={"value": 5})
    assert response.status_code == 400


def test_escape_invalid_json(client: TestClient) -> None:
    response = client.post(
        "/escape/html",
        content=b"not json",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400


def test_app_is_asgi_callable() -> None:
    app = EscaperApp()
    client = TestClient(app)
    assert client.get("/escape/js", params={"value": "'"}).json()["output"] == "\\x27"
    assert app.starlette.state.escaper is app


def test_escape_post_lone_surrogate(client: TestClient) -> None:
    response = client.post(
        "/escape/html",
        content=b'{"value": "a\\ud800<b"}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["input"] == "a\ufffd<b"
    assert body["output"] == "a\ufffd&lt;b"


def test_escape_post_body_not_utf8(client: TestClient) -> None:
    response = client.post(
        "/escape/html",
        content=b'{"value": "\xff"}',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_headers_on_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_render(template_name, context):
        raise RuntimeError("template exploded")

    monkeypatch.setattr("escaper.runtime.app.render_template", broken_render)
    client = TestClient(EscaperApp().app, raise_server_exceptions=False)
    response = client.get("/")
    assert response.status_code == 500
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"

"""Tests for the Flask routes."""
import io
from unittest.mock import Mock

import pytest

from collage_backend.app import create_app
from collage_backend.config import Config
from collage_backend.services import AnalysisService, DiffusionClient, FalClient
from collage_shared.files import to_data_url

from conftest import png_bytes, solid, split_dark_bright


@pytest.fixture
def config():
    return Config(seed=7)


@pytest.fixture
def service(config):
    return AnalysisService(config, fal=FalClient(None), diffusion=DiffusionClient(None))


@pytest.fixture
def client(config, service):
    app = create_app(config, service)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def image_url():
    return to_data_url(png_bytes(split_dark_bright(90, 60)))


def upload(name="canvas.png", arr=None):
    payload = png_bytes(arr if arr is not None else solid(40, 30, (30, 60, 200)))
    return {"file": (io.BytesIO(payload), name)}


class TestAnalyzeRoute:

    def test_multipart_upload(self, client):
        resp = client.post("/api/analyze", data=upload(), content_type="multipart/form-data")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["features"]["temperature"] == "cool"
        assert body["kinds"][0] == "CMY misregistration swatch"
        assert (body["width"], body["height"]) == (40, 30)

    def test_multipart_mode_field(self, client):
        data = upload()
        data["mode"] = "direct"
        resp = client.post("/api/analyze", data=data, content_type="multipart/form-data")
        assert resp.get_json()["status"] == "Overlay placed."

    def test_data_url_body(self, client, image_url):
        resp = client.post("/api/analyze", json={"v": 1, "imageDataURL": image_url})
        assert resp.status_code == 200
        assert resp.get_json()["features"]["suggested_region"].endswith("right")

    def test_edit_without_key_falls_back(self, client, image_url):
        resp = client.post("/api/analyze", json={"imageDataURL": image_url, "mode": "edit"})
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["status"] == "Image edit failed, using local overlay."
        assert "overlay" in body

    def test_diffuse_without_token_falls_back(self, client, image_url):
        resp = client.post("/api/analyze", json={"imageDataURL": image_url, "mode": "diffuse"})
        assert resp.get_json()["status"] == "Diffusion unavailable, used local overlay."

    @pytest.mark.parametrize("body", [
        {},
        {"imageDataURL": "not-a-data-url"},
        {"imageDataURL": "data:image/png;base64,AAAA"},
        {"v": 2, "imageDataURL": "data:image/png;base64,AAAA"},
        {"imageDataURL": "data:image/png;base64,AAAA", "mode": "sideways"},
    ])
    def test_bad_requests(self, client, body):
        assert client.post("/api/analyze", json=body).status_code == 400

    def test_rejects_unknown_extension(self, client):
        resp = client.post(
            "/api/analyze", data=upload("notes.txt"), content_type="multipart/form-data"
        )
        assert resp.status_code == 400

    def test_latest_analysis(self, client, image_url):
        assert client.get("/api/analysis").status_code == 404
        client.post("/api/analyze", json={"imageDataURL": image_url})
        resp = client.get("/api/analysis")
        assert resp.status_code == 200
        assert len(resp.get_json()["recommendations"]) == 3


class TestDecisionRoutes:

    def test_decision_before_analysis(self, client):
        resp = client.post("/api/decision", json={"decision": "accept"})
        assert resp.status_code == 409
        assert resp.get_json() == {"error": "Choose an image first."}

    def test_invalid_decision(self, client, image_url):
        client.post("/api/analyze", json={"imageDataURL": image_url})
        assert client.post("/api/decision", json={"decision": "maybe"}).status_code == 400

    def test_accept_then_export(self, client, image_url):
        client.post("/api/analyze", json={"imageDataURL": image_url})
        assert client.post("/api/decision", json={"decision": "accept"}).status_code == 200
        assert client.post("/api/decision", json={"decision": "skip"}).status_code == 200

        resp = client.get("/api/decisions.csv")
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "interactions.csv" in resp.headers["Content-Disposition"]

        lines = resp.get_data(as_text=True).split("\n")
        assert lines[0] == '"timestamp","user_decision","prompts","internal_explanations"'
        assert len(lines) == 3
        assert ',"accept",' in lines[1]
        assert ',"skip",' in lines[2]

    def test_history(self, client, image_url):
        client.post("/api/analyze", json={"imageDataURL": image_url})
        client.post("/api/analyze", data=upload(), content_type="multipart/form-data")
        body = client.get("/api/history").get_json()
        assert body["key"] == "collage_history_dataurls"
        assert len(body["items"]) == 2
        assert all(i.startswith("data:image/png;base64,") for i in body["items"])


class TestProxyRoutes:

    def test_describe_without_key(self, client, image_url):
        resp = client.post("/api/describe", json={"imageDataURL": image_url})
        assert resp.status_code == 200
        assert resp.get_json() == {"caption": "", "keywords": []}

    def test_edit_requires_prompt(self, client, image_url):
        resp = client.post("/api/qwen-edit", json={"imageDataURL": image_url})
        assert resp.status_code == 400
        assert "required" in resp.get_json()["error"]

    def test_edit_without_key(self, client, image_url):
        resp = client.post("/api/qwen-edit", json={"imageDataURL": image_url, "prompt": "p"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Missing FAL_KEY in environment."}

    def test_diffuse_without_token(self, client):
        resp = client.post("/api/diffuse", json={"prompt": "p"})
        assert resp.status_code == 500

    def test_diffuse_bad_params(self, client):
        assert client.post("/api/diffuse", json={"width": "wide"}).status_code == 400

    def test_diffuse_returns_png(self, config):
        diffusion = Mock(spec=DiffusionClient)
        diffusion.generate.return_value = b"\x89PNG fake"
        service = AnalysisService(config, fal=FalClient(None), diffusion=diffusion)
        client = create_app(config, service).test_client()

        resp = client.post("/api/diffuse", json={"prompt": "p", "width": 64})
        assert resp.status_code == 200
        assert resp.mimetype == "image/png"
        assert resp.data == b"\x89PNG fake"
        assert diffusion.generate.call_args.args[0].width == 64


class TestApp:

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "ok"}

    def test_cors_on_api(self, client):
        resp = client.get("/api/history", headers={"Origin": "http://example.test"})
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

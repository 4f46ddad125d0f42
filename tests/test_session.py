"""Tests for end-to-end extraction and the analysis session."""
import dataclasses
from datetime import datetime, timezone

import numpy as np
import pytest

from collage_analyzer.analysis import analyze_image, extract_features, make_rng
from collage_analyzer.overlay import OverlayKind
from collage_analyzer.pixels import PixelBuffer
from collage_analyzer.session import AnalysisSession, InputMissing
from collage_shared.files import DecodeFailure
from collage_shared.protocol import Decision, RegionLabel, Temperature

from conftest import checkerboard, png_bytes, solid, split_dark_bright


class TestExtractFeatures:

    def test_solid_white(self, rng):
        f = extract_features(PixelBuffer.from_array(solid(30, 30, (255, 255, 255))), rng)
        assert f.dominant_color == (255, 255, 255)
        assert f.contrast == 0.0
        assert f.entropy == 0.0
        assert f.edge_density == 0.0
        assert f.colorfulness == 0.0
        assert f.temperature is Temperature.WARM

    def test_blue_image_is_cool(self, rng):
        f = extract_features(PixelBuffer.from_array(solid(20, 20, (30, 60, 200))), rng)
        assert f.temperature is Temperature.COOL

    def test_region_follows_emptiness(self):
        buf = PixelBuffer.from_array(split_dark_bright(60, 60))
        regions = {extract_features(buf, make_rng(s)).suggested_region for s in range(20)}
        assert regions <= {RegionLabel.TOP_RIGHT, RegionLabel.MIDDLE_RIGHT, RegionLabel.BOTTOM_RIGHT}

    def test_same_seed_same_features(self):
        buf = PixelBuffer.from_array(checkerboard(40, 40, cell=4))
        assert extract_features(buf, make_rng(8)) == extract_features(buf, make_rng(8))

    def test_analyze_image_from_png_bytes(self, rng):
        buffer, f = analyze_image(png_bytes(solid(50, 20, (10, 10, 10))), rng)
        assert (buffer.width, buffer.height) == (50, 20)
        assert f.dominant_color == (10, 10, 10)

    def test_analyze_image_rejects_garbage(self, rng):
        with pytest.raises(DecodeFailure):
            analyze_image(b"definitely not an image", rng)


class TestAnalysisSession:

    def test_empty_session(self):
        session = AnalysisSession(make_rng(1))
        assert session.current is None
        with pytest.raises(InputMissing, match="Choose an image first."):
            session.require()
        with pytest.raises(InputMissing):
            session.decide(Decision.ACCEPT)
        with pytest.raises(InputMissing):
            session.place_overlay()

    def test_analyze_sets_current(self):
        session = AnalysisSession(make_rng(1))
        result = session.analyze(PixelBuffer.from_array(solid(40, 30, (250, 250, 250))))

        assert session.current is result
        assert (result.width, result.height) == (40, 30)
        assert len(result.recommendations.items) == 3
        # flat, low-edge image gets halftone
        assert result.overlay is OverlayKind.HALFTONE

    def test_result_is_frozen(self):
        session = AnalysisSession(make_rng(1))
        result = session.analyze(PixelBuffer.from_array(solid(8, 8, (0, 0, 0))))
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.width = 1

    def test_second_analysis_replaces_first(self):
        session = AnalysisSession(make_rng(2))
        first = session.analyze(PixelBuffer.from_array(solid(8, 8, (0, 0, 0))))
        second = session.analyze(PixelBuffer.from_array(solid(16, 4, (20, 40, 220))))
        assert session.current is second
        assert first.width == 8

    def test_decide_copies_current_text(self):
        session = AnalysisSession(make_rng(3))
        result = session.analyze(PixelBuffer.from_array(checkerboard(32, 32)))
        ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

        row = session.decide(Decision.SKIP, timestamp=ts)
        assert row.timestamp == "2024-05-01T12:00:00+00:00"
        assert row.decision is Decision.SKIP
        assert row.prompts == " | ".join(result.recommendations.recommendations)
        assert row.explanations == " ; ".join(result.recommendations.reasons)

    def test_place_overlay_uses_current_dimensions(self):
        session = AnalysisSession(make_rng(4))
        result = session.analyze(PixelBuffer.from_array(solid(200, 100, (128, 128, 128))))
        p = session.place_overlay()
        assert p.kind is result.overlay
        assert p.region is result.features.suggested_region
        assert (p.width, p.height) == (90, 25)
        assert 0 <= p.x <= 200 - 90
        assert 0 <= p.y <= 100 - 25

    def test_clear(self):
        session = AnalysisSession(make_rng(5))
        session.analyze(PixelBuffer.from_array(solid(4, 4, (1, 1, 1))))
        session.clear()
        assert session.current is None

    def test_to_dict_shape(self):
        session = AnalysisSession(make_rng(6))
        d = session.analyze(PixelBuffer.from_array(solid(10, 10, (200, 100, 50)))).to_dict()
        assert set(d) == {
            "features", "summary", "recommendations", "reasons", "kinds",
            "overlay_kind", "width", "height",
        }
        assert d["features"]["dominant_color"] == [200, 100, 50]
        assert len(d["kinds"]) == 3

    def test_seeded_sessions_agree(self):
        arr = np.random.default_rng(0).integers(0, 256, size=(30, 30, 3), dtype=np.uint8)
        a = AnalysisSession(make_rng(10)).analyze(PixelBuffer.from_array(arr))
        b = AnalysisSession(make_rng(10)).analyze(PixelBuffer.from_array(arr))
        assert a == b

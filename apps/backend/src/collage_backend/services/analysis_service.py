"""
Analysis orchestration for the collage backend.

Owns the one AnalysisSession of this process, the decision log, the thumbnail
history and the remote clients. Remote failures never fail an analysis: the
response falls back to a locally placed synthetic overlay and a status line.
"""
from __future__ import annotations

import logging
import math
import threading
from typing import Any

from PIL import Image

from collage_analyzer import (
    AnalysisResult,
    AnalysisSession,
    diffusion_prompt,
    edit_instruction,
    make_rng,
    place_overlay,
    sample_pixels,
)
from collage_shared.files import encode_png, to_data_url
from collage_shared.protocol import Decision, DecisionRow, DiffusionRequest, EditRequest

from ..config import Config
from .decision_log import DecisionLog
from .history import HistoryStore, MemoryStorage
from .proxy_service import DiffusionClient, FalClient, ProxyError, white_to_transparent

logger = logging.getLogger(__name__)

MIN_CUTOUT_SIDE = 8


class AnalysisService:
    """Serializes analyses and decisions over a single session."""

    def __init__(
        self,
        config: Config,
        fal: FalClient | None = None,
        diffusion: DiffusionClient | None = None,
    ):
        self._config = config
        self._lock = threading.Lock()
        self._session = AnalysisSession(make_rng(config.seed))

        self.decisions = DecisionLog()
        self.history = HistoryStore(
            MemoryStorage(config.history_quota_bytes), limit=config.history_limit
        )
        self.fal = fal if fal is not None else FalClient(
            config.fal_key,
            base_url=config.fal_base_url,
            poll_interval=config.poll_interval,
            request_timeout=config.request_timeout,
        )
        self.diffusion = diffusion if diffusion is not None else DiffusionClient(
            config.hf_token,
            base_url=config.hf_base_url,
            request_timeout=config.request_timeout,
            cache_size=config.diffusion_cache_size,
            cache_ttl=config.diffusion_cache_ttl,
        )

    def current(self) -> AnalysisResult | None:
        with self._lock:
            return self._session.current

    def analyze(self, img: Image.Image, mode: str = "general") -> dict[str, Any]:
        """
        Analyze one image and build the response for the given mode.

        The session lock covers the analysis and each overlay placement, never
        the remote diffusion or edit call in between.
        """
        buffer = sample_pixels(img, max_width=self._config.max_width)
        canvas = Image.fromarray(buffer.data)

        with self._lock:
            result = self._session.analyze(buffer)
            payload = result.to_dict()
            payload["status"] = ""
            if mode == "direct":
                payload["overlay"] = self._session.place_overlay().to_dict()
                payload["status"] = "Overlay placed."

        if mode == "diffuse":
            payload.update(self._diffuse(result))
        elif mode == "edit":
            payload.update(self._edit(result, canvas))

        self.history.add_image(canvas)
        return payload

    def _place(
        self, result: AnalysisResult, patch_size: tuple[int, int] | None = None
    ) -> dict[str, Any]:
        # Placed against the given result, which a newer analysis may have replaced.
        with self._lock:
            placement = place_overlay(
                result.overlay,
                result.features.suggested_region,
                result.width,
                result.height,
                self._session.rng,
                patch_size=patch_size,
            )
        return placement.to_dict()

    def _diffuse(self, result: AnalysisResult) -> dict[str, Any]:
        target_w = math.floor(result.width * 0.45)
        target_h = math.floor(result.height * 0.25)
        prompt = diffusion_prompt(result.features, result.recommendations.recommendations)
        try:
            png = self.diffusion.generate(
                DiffusionRequest(prompt=prompt, width=target_w, height=target_h)
            )
            cut = white_to_transparent(png)
        except ProxyError as e:
            logger.warning("Diffusion failed, using local overlay: %s", e)
            return {
                "overlay": self._place(result),
                "status": "Diffusion unavailable, used local overlay.",
            }

        scale = min(target_w / cut.width, target_h / cut.height)
        rw = max(MIN_CUTOUT_SIDE, math.floor(cut.width * scale))
        rh = max(MIN_CUTOUT_SIDE, math.floor(cut.height * scale))
        return {
            "overlay": self._place(result, patch_size=(rw, rh)),
            "cutout": to_data_url(encode_png(cut)),
            "prompt": prompt,
            "status": "Overlay added.",
        }

    def _edit(self, result: AnalysisResult, canvas: Image.Image) -> dict[str, Any]:
        instruction = edit_instruction(result.features, result.recommendations.recommendations)
        req = EditRequest(
            image_data_url=to_data_url(encode_png(canvas)),
            prompt=instruction,
        )
        try:
            url = self.fal.edit_image(req, deadline_s=self._config.edit_timeout)
        except ProxyError as e:
            logger.warning("Image edit failed, using local overlay: %s", e)
            return {
                "overlay": self._place(result),
                "instruction": instruction,
                "status": "Image edit failed, using local overlay.",
            }
        return {"edited_url": url, "instruction": instruction, "status": "Done."}

    def decide(self, decision: Decision) -> DecisionRow:
        """
        Raises InputMissing: If there is nothing to decide on
        """
        with self._lock:
            row = self._session.decide(decision)
        self.decisions.record(row)
        return row

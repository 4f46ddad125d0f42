"""
Clients for the third-party captioning, image-edit and diffusion services.

FAL queue flow:
    submit (multipart) -> images right away, or a request_id
    poll /requests/<id> every poll_interval until images, error or deadline

Every failure is raised as ProxyError carrying the HTTP status the route
should answer with; callers inside the analyze flow recover by falling back
to the local synthetic overlay.
"""

from __future__ import annotations

import hashlib
import io
import json
import logging
import re
import threading
import time
from collections import OrderedDict
from typing import Any, Callable

import numpy as np
import requests
from PIL import Image

from collage_shared.files import split_data_url
from collage_shared.protocol import DiffusionRequest, EditRequest

logger = logging.getLogger(__name__)

EDIT_MODEL = "fal-ai/qwen-image-edit"
DESCRIBE_MODEL = "fal-ai/llava-next/image-to-text"
DESCRIBE_PROMPT = "Describe the main subject, theme keywords, and medium hints in a few words."

CAPTION_LIMIT = 160
KEYWORD_LIMIT = 8

CACHE_SIZE = 64
CACHE_TTL_S = 86400.0
_STOPWORDS = frozenset({
    "the", "and", "with", "from", "that", "this", "into", "over", "there",
    "image", "picture", "photo", "shows", "showing", "which", "their", "some",
})


class ProxyError(RuntimeError):
    """Raised when a remote service fails, times out or returns garbage."""

    def __init__(self, message: str, status: int = 502):
        self.status = status
        super().__init__(message)


def _response_error_text(resp: requests.Response) -> str:
    ctype = resp.headers.get("content-type", "")
    if "application/json" in ctype:
        try:
            return json.dumps(resp.json())
        except ValueError:
            pass
    return resp.text


def extract_keywords(text: str, limit: int = KEYWORD_LIMIT) -> list[str]:
    """Distinct lower-case words of 4+ letters, in order of appearance."""
    seen: list[str] = []
    for word in re.findall(r"[A-Za-z][A-Za-z\-]{3,}", text):
        w = word.lower()
        if w in _STOPWORDS or w in seen:
            continue
        seen.append(w)
        if len(seen) >= limit:
            break
    return seen


def first_image_url(out: Any) -> str | None:
    """URL of the first image in a FAL payload; None for anything malformed."""
    images = out.get("images") if isinstance(out, dict) else None
    if not isinstance(images, list) or not images:
        return None
    first = images[0]
    url = first.get("url") if isinstance(first, dict) else None
    return url if isinstance(url, str) and url else None


class FalClient:
    """Submits jobs to the FAL queue and polls for their result."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://queue.fal.run",
        poll_interval: float = 1.0,
        request_timeout: float = 30.0,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._poll_interval = poll_interval
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Key {self._api_key}"}

    def _submit_and_wait(
        self,
        model: str,
        data: dict[str, str],
        files: dict[str, tuple[str, bytes, str]],
        deadline_s: float,
        extract: Callable[[dict[str, Any]], Any],
    ) -> Any:
        """
        Submit one job and wait for extract() to find a result in it.

        Raises ProxyError: On HTTP errors, queue errors or deadline expiry
        """
        if not self.configured:
            raise ProxyError("Missing FAL_KEY in environment.", status=500)

        try:
            submit = self._session.post(
                f"{self._base_url}/{model}",
                headers=self._headers(),
                data=data,
                files=files,
                timeout=self._request_timeout,
            )
        except requests.RequestException as e:
            raise ProxyError(f"FAL request failed: {e}") from e

        if not submit.ok:
            raise ProxyError(f"FAL error: {_response_error_text(submit)}", status=submit.status_code)

        ctype = submit.headers.get("content-type", "")
        try:
            submit_json = submit.json() if "application/json" in ctype else {}
        except ValueError:
            submit_json = {}
        if not isinstance(submit_json, dict):
            submit_json = {}

        found = extract(submit_json)
        if found is not None:
            return found

        req_id = submit_json.get("request_id")
        if not req_id:
            raise ProxyError("FAL returned no result and no request_id.", status=500)

        # Status lives under the app id, the first two path segments.
        app_id = "/".join(model.split("/")[:2])
        poll_url = f"{self._base_url}/{app_id}/requests/{req_id}"
        logger.info("Queued FAL job %s, polling for up to %.0fs", req_id, deadline_s)

        deadline = self._clock() + deadline_s
        while self._clock() < deadline:
            self._sleep(self._poll_interval)
            try:
                res = self._session.get(
                    poll_url, headers=self._headers(), timeout=self._request_timeout
                )
                out = res.json()
            except (requests.RequestException, ValueError) as e:
                logger.debug("Poll for %s failed: %s", req_id, e)
                continue

            found = extract(out)
            if found is not None:
                return found
            if isinstance(out, dict) and out.get("error"):
                raise ProxyError(f"FAL queued error: {out['error']}", status=500)

        raise ProxyError("Timeout waiting for FAL result.", status=504)

    def edit_image(self, req: EditRequest, deadline_s: float = 30.0) -> str:
        """Return the URL of the edited image."""
        req.validate()
        mime, payload = split_data_url(req.image_data_url or "")
        files = {"image": ("image.png", payload, mime)}
        if req.mask_data_url:
            mask_mime, mask = split_data_url(req.mask_data_url)
            files["mask"] = ("mask.png", mask, mask_mime)

        data = {
            "prompt": req.prompt or "",
            "num_inference_steps": str(req.steps),
            "guidance_scale": str(req.guidance),
            "output_format": "png",
            "sync_mode": "true",
        }

        return self._submit_and_wait(EDIT_MODEL, data, files, deadline_s, first_image_url)

    def describe(self, image_data_url: str | None, deadline_s: float = 60.0) -> dict[str, Any]:
        """
        Caption an image. Without an API key this returns an empty caption so
        the client falls back to inferring from the image.
        """
        if not self.configured or not image_data_url:
            return {"caption": "", "keywords": []}

        mime, payload = split_data_url(image_data_url)

        def output_text(out: dict[str, Any]) -> str | None:
            if not isinstance(out, dict):
                return None
            text = out.get("text") or out.get("output")
            return text if isinstance(text, str) and text else None

        text = self._submit_and_wait(
            DESCRIBE_MODEL,
            {"prompt": DESCRIBE_PROMPT},
            {"image": ("image.png", payload, mime)},
            deadline_s,
            output_text,
        )
        caption = text[:CAPTION_LIMIT]
        return {"caption": caption, "keywords": extract_keywords(caption)}


class DiffusionClient:
    """Text-to-image through the Hugging Face inference API, cached by parameters."""

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api-inference.huggingface.co/models",
        request_timeout: float = 60.0,
        session: requests.Session | None = None,
        cache_size: int = CACHE_SIZE,
        cache_ttl: float = CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._cache_size = cache_size
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, png); least recently used first
        self._cache: OrderedDict[str, tuple[float, bytes]] = OrderedDict()

    @staticmethod
    def cache_key(req: DiffusionRequest) -> str:
        return hashlib.sha256(req.clamped().cache_key().encode("utf-8")).hexdigest()

    def _cache_get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            expires_at, png = entry
            if self._clock() >= expires_at:
                del self._cache[key]
                return None
            self._cache.move_to_end(key)
            return png

    def _cache_put(self, key: str, png: bytes) -> None:
        with self._lock:
            self._cache[key] = (self._clock() + self._cache_ttl, png)
            self._cache.move_to_end(key)
            while len(self._cache) > self._cache_size:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug("Diffusion cache evicted %s", evicted[:12])

    def generate(self, req: DiffusionRequest) -> bytes:
        """
        Return PNG bytes for the clamped request.

        Raises ProxyError: If the token is missing or the upstream call fails
        """
        if not self._token:
            raise ProxyError("Missing HF_TOKEN in environment.", status=500)

        params = req.clamped()
        key = self.cache_key(req)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Diffusion cache hit %s", key[:12])
            return cached

        try:
            r = self._session.post(
                f"{self._base_url}/{params.model}",
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json",
                    "Accept": "image/png",
                },
                json={
                    "inputs": params.prompt,
                    "parameters": {
                        "width": params.width,
                        "height": params.height,
                        "num_inference_steps": params.steps,
                        "guidance_scale": params.guidance,
                    },
                },
                timeout=self._request_timeout,
            )
        except requests.RequestException as e:
            raise ProxyError(f"Diffusion request failed: {e}") from e

        if not r.ok:
            raise ProxyError(r.text or "Upstream error", status=r.status_code)

        self._cache_put(key, r.content)
        return r.content


def white_to_transparent(png_bytes: bytes, threshold: int = 242) -> Image.Image:
    """
    Make near-white pixels fully transparent so a generated cut-out can be
    composited.

    Raises ProxyError: If the bytes are not an image
    """
    try:
        img = Image.open(io.BytesIO(png_bytes)).convert("RGBA")
    except OSError as e:
        raise ProxyError(f"Diffusion output is not an image: {e}") from e

    rgba = np.array(img, dtype=np.uint8)
    white = (rgba[..., :3] >= threshold).all(axis=-1)
    rgba[white, 3] = 0
    return Image.fromarray(rgba)

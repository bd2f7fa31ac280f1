"""Fake metadata API + object storage, served in-process through httpx.ASGITransport."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from services.api_client import ApiClient
from services.compensation import CompensationManager
from services.orchestrator import UploadOrchestrator
from services.records import RecordCreateClient, RecordDeleteClient, RecordFinalizeClient
from services.transport import PresignedTransport

API_BASE = "http://api.test"
STORAGE_BASE = "http://storage.test"
SHARE_ORIGIN = "https://share.test"


@dataclass
class StoredObject:
    key: str
    content_type: str | None
    data: bytes
    authorization: str | None


@dataclass
class FakeVideoService:
    """In-memory stand-in for the metadata API and pre-signed storage."""

    calls: list[tuple[str, str]] = field(default_factory=list)
    create_bodies: list[dict[str, Any]] = field(default_factory=list)
    patch_bodies: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    stored: list[StoredObject] = field(default_factory=list)
    quota: dict[str, int] = field(
        default_factory=lambda: {"maxVideosPerMonth": 0, "maxVideoDurationSeconds": 0, "videosUsedThisMonth": 0}
    )

    # fault injection
    create_status: int = 201
    create_error: str = "failed to create video"
    create_returns_null: bool = False
    limits_status: int = 200
    patch_status: int = 200
    delete_status: int = 204
    patch_body: str = ""  # plain-text body on a successful PATCH
    delete_body: str = ""
    storage_status: dict[str, int] = field(default_factory=dict)  # key -> status
    fail_upload_for_titles: set[str] = field(default_factory=set)

    _next_id: int = 0

    def _issue(self, body: dict[str, Any], with_webcam: bool) -> dict[str, Any]:
        self._next_id += 1
        video_id = f"video-{self._next_id}"
        ticket = {
            "id": video_id,
            "uploadUrl": f"{STORAGE_BASE}/upload/{video_id}",
            "shareToken": f"token-{self._next_id}",
        }
        if with_webcam:
            ticket["webcamUploadUrl"] = f"{STORAGE_BASE}/upload/{video_id}_webcam"
        if body.get("title") in self.fail_upload_for_titles:
            self.storage_status[video_id] = 500
        return ticket

    def _create_response(self, body: dict[str, Any], with_webcam: bool) -> Response:
        self.create_bodies.append(body)
        if self.create_returns_null:
            return Response(content="null", media_type="application/json")
        if self.create_status >= 400:
            return JSONResponse({"error": self.create_error}, status_code=self.create_status)
        return JSONResponse(self._issue(body, with_webcam), status_code=self.create_status)

    def build_app(self) -> FastAPI:
        app = FastAPI()

        @app.post("/api/videos")
        async def create_video(request: Request) -> Response:
            self.calls.append(("POST", "/api/videos"))
            body = await request.json()
            return self._create_response(body, with_webcam=bool(body.get("webcamFileSize")))

        @app.post("/api/videos/upload")
        async def create_upload(request: Request) -> Response:
            self.calls.append(("POST", "/api/videos/upload"))
            return self._create_response(await request.json(), with_webcam=False)

        @app.get("/api/videos/limits")
        async def limits() -> Response:
            self.calls.append(("GET", "/api/videos/limits"))
            if self.limits_status >= 400:
                return JSONResponse({"error": "failed to check video limit"}, status_code=self.limits_status)
            return JSONResponse(self.quota)

        @app.patch("/api/videos/{video_id}")
        async def update_video(video_id: str, request: Request) -> Response:
            self.calls.append(("PATCH", video_id))
            self.patch_bodies.setdefault(video_id, []).append(await request.json())
            if self.patch_status >= 400:
                return JSONResponse({"error": "failed to update video"}, status_code=self.patch_status)
            return Response(self.patch_body, status_code=self.patch_status, media_type="text/plain")

        @app.delete("/api/videos/{video_id}")
        async def delete_video(video_id: str) -> Response:
            self.calls.append(("DELETE", video_id))
            self.deleted.append(video_id)
            if self.delete_status >= 400:
                return JSONResponse({"error": "failed to delete video"}, status_code=self.delete_status)
            return Response(self.delete_body, status_code=self.delete_status, media_type="text/plain")

        @app.put("/upload/{key}")
        async def put_object(key: str, request: Request) -> Response:
            self.calls.append(("PUT", key))
            data = await request.body()
            self.stored.append(
                StoredObject(
                    key=key,
                    content_type=request.headers.get("content-type"),
                    data=data,
                    authorization=request.headers.get("authorization"),
                )
            )
            return Response(status_code=self.storage_status.get(key, 200))

        return app

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)


@pytest.fixture
def fake_service() -> FakeVideoService:
    return FakeVideoService()


@pytest_asyncio.fixture
async def api_http(fake_service: FakeVideoService):
    transport = httpx.ASGITransport(app=fake_service.build_app())
    async with httpx.AsyncClient(transport=transport, base_url=API_BASE) as client:
        yield client


@pytest_asyncio.fixture
async def storage_http(fake_service: FakeVideoService):
    transport = httpx.ASGITransport(app=fake_service.build_app())
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
def api(api_http: httpx.AsyncClient) -> ApiClient:
    return ApiClient(api_http, access_token="test-access-token")


@pytest.fixture
def make_orchestrator(api: ApiClient, storage_http: httpx.AsyncClient):
    """Factory so tests can build a fresh orchestrator per run, as the batch driver does."""

    def _make(**kwargs: Any) -> UploadOrchestrator:
        return UploadOrchestrator(
            RecordCreateClient(api),
            RecordFinalizeClient(api),
            PresignedTransport(storage_http, chunk_size=kwargs.pop("chunk_size", 4)),
            CompensationManager(RecordDeleteClient(api)),
            share_origin=SHARE_ORIGIN,
            **kwargs,
        )

    return _make

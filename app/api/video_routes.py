from __future__ import annotations

from threading import Lock

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse, StreamingResponse

from app.config import load_config
from app.schemas.video import HealthResponse, ReloadResponse, VideoItem, VideoListResponse
from app.services import video_service
from app.services.exceptions import ServiceError
from app.services.listing_page import render_listing_page
from app.services.video_index import VideoEntry, VideoIndex

router = APIRouter(tags=["video"])

_INDEX_BUILD_LOCK = Lock()


def get_video_index(request: Request) -> VideoIndex:
    index = getattr(request.app.state, "video_index", None)
    if index is not None:
        return index
    # 正常情况下启动时已构建；未走 startup 时按当前配置补建，只建一次
    with _INDEX_BUILD_LOCK:
        index = getattr(request.app.state, "video_index", None)
        if index is None:
            try:
                index = VideoIndex.build(load_config().assets_root)
            except ServiceError as exc:
                print(f"[index] 补建索引失败：{exc}")
                _raise_service_error(exc)
            request.app.state.video_index = index
    return index


def _raise_service_error(exc: ServiceError):
    detail = str(exc) or exc.__class__.__name__
    raise HTTPException(status_code=exc.status_code, detail=detail)


def _to_item(entry: VideoEntry) -> VideoItem:
    return VideoItem(key=entry.key, path=entry.path, url=video_service.video_url(entry.key))


@router.get("/", response_class=HTMLResponse)
def index_page(index: VideoIndex = Depends(get_video_index)):
    return HTMLResponse(render_listing_page(index.snapshot()))


@router.get("/videos", response_model=VideoListResponse)
def list_videos(index: VideoIndex = Depends(get_video_index)):
    snapshot = index.snapshot()
    return VideoListResponse(
        root_path=snapshot.root_path,
        count=snapshot.count,
        next_sequence=snapshot.next_sequence,
        generation=snapshot.generation,
        items=[_to_item(entry) for entry in snapshot.entries],
    )


@router.get("/videos/{key}", response_model=VideoItem)
def get_video_item(key: str, index: VideoIndex = Depends(get_video_index)):
    try:
        return _to_item(video_service.require_entry(index, key))
    except ServiceError as exc:
        _raise_service_error(exc)


@router.get("/video/{key}")
def get_video_resource(key: str, request: Request, index: VideoIndex = Depends(get_video_index)):
    range_header = request.headers.get("range")
    try:
        payload = video_service.get_video_resource_payload(index, key=key, range_header=range_header)
    except ServiceError as exc:
        print(f"[video] {key}: {exc}")
        _raise_service_error(exc)
    if payload.use_file_response:
        if not payload.file_path:
            raise HTTPException(status_code=500, detail="missing file path")
        return FileResponse(path=payload.file_path, media_type=payload.media_type, headers=payload.headers)
    return StreamingResponse(
        payload.stream,
        status_code=payload.status_code,
        media_type=payload.media_type,
        headers=payload.headers,
    )


@router.post("/reload")
def reload_and_redirect(index: VideoIndex = Depends(get_video_index)):
    try:
        video_service.reload_index(index)
    except ServiceError as exc:
        _raise_service_error(exc)
    return RedirectResponse(url="/", status_code=303)


@router.post("/api/reload", response_model=ReloadResponse)
def reload_json(index: VideoIndex = Depends(get_video_index)):
    try:
        result = video_service.reload_index(index)
    except ServiceError as exc:
        _raise_service_error(exc)
    return ReloadResponse(
        count=result.count,
        previous_count=result.previous_count,
        generation=result.generation,
        elapsed=result.elapsed,
    )


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse()


@router.get("/healthcheck")
def health_check():
    return Response(content="OK", media_type="text/plain")


@router.get("/favicon.ico")
def favicon():
    icon = load_config().static_path / "favicon.ico"
    if not icon.is_file():
        return Response(status_code=204)
    return FileResponse(path=str(icon), media_type="image/x-icon")

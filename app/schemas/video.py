from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class VideoItem(BaseModel):
    key: str = Field(..., description="服务端标识，形如 0.mp4")
    path: str = Field(..., description="源文件路径")
    url: str = Field(..., description="播放地址 /video/{key}")


class VideoListResponse(BaseModel):
    root_path: str
    count: int
    next_sequence: int
    generation: int
    items: List[VideoItem] = Field(default_factory=list)


class ReloadResponse(BaseModel):
    success: bool = True
    count: int
    previous_count: int
    generation: int
    elapsed: float = 0.0


class HealthResponse(BaseModel):
    status: str = "ok"

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from app.services.exceptions import (
    FileNotFoundOnDiskError,
    FilesystemError,
    InvalidRangeError,
    RangeNotSatisfiableError,
    ServiceError,
    VideoNotFoundError,
)
from app.services.video_index import ReloadResult, VideoEntry, VideoIndex
from app.services.video_types import guess_video_mime


@dataclass
class VideoResourcePayload:
    media_type: str
    headers: dict[str, str]
    status_code: int
    stream: Iterable[bytes] | None = None
    file_path: str | None = None
    use_file_response: bool = False


def video_url(key: str) -> str:
    return f"/video/{key}"


def require_entry(index: VideoIndex, key: str) -> VideoEntry:
    entry = index.get_entry(key)
    if entry is None:
        raise VideoNotFoundError(f"未找到视频：{key}")
    return entry


def resolve_video_path(index: VideoIndex, key: str) -> str:
    return require_entry(index, key).path


def reload_index(index: VideoIndex) -> ReloadResult:
    try:
        result = index.reload()
    except FilesystemError as exc:
        print(f"[reload] 重建索引失败，继续使用旧索引（{len(index)} 个视频）：{exc}")
        raise
    print(f"[reload] 索引已重建：{result.previous_count} -> {result.count}（第 {result.generation} 次）")
    return result


def _parse_range(range_header: str, file_size: int) -> tuple[int, int]:
    try:
        units, ranges = range_header.split("=", 1)
    except ValueError:
        raise InvalidRangeError("Invalid Range header") from None
    if units.strip().lower() != "bytes":
        raise InvalidRangeError("Only bytes unit is supported")
    first_range = ranges.split(",")[0].strip()
    if "-" not in first_range:
        raise InvalidRangeError("Invalid range format")
    start_str, end_str = first_range.split("-", 1)
    try:
        if start_str == "" and end_str != "":
            suffix_len = int(end_str)
            if suffix_len <= 0:
                raise InvalidRangeError("Invalid suffix length")
            start = max(file_size - suffix_len, 0)
            end = file_size - 1
        else:
            start = int(start_str)
            end = int(end_str) if end_str != "" else file_size - 1
    except ValueError:
        raise InvalidRangeError("Invalid range positions") from None
    if start < 0:
        raise InvalidRangeError("Invalid range positions")
    if start >= file_size:
        raise RangeNotSatisfiableError("Requested Range Not Satisfiable")
    if end < start:
        raise InvalidRangeError("Invalid range positions")
    # 超出文件末尾的 end 截断到最后一个字节
    return start, min(end, file_size - 1)


def _local_file_iter(path: str, start_pos: int, total_len: int, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
    with open(path, "rb") as handle:
        handle.seek(start_pos)
        remaining = total_len
        while remaining > 0:
            chunk = handle.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def get_video_resource_payload(
    index: VideoIndex,
    *,
    key: str,
    range_header: Optional[str],
) -> VideoResourcePayload:
    path = resolve_video_path(index, key)
    if not os.path.isfile(path):
        # 索引之后文件被删除或移动，需要 reload
        raise FileNotFoundOnDiskError(f"file not found: {key}")

    mime = guess_video_mime(path)
    stat = os.stat(path)
    file_size = stat.st_size
    common_headers: dict[str, str] = {
        "ETag": f"{int(stat.st_mtime)}-{stat.st_size}",
        "Accept-Ranges": "bytes",
        "Last-Modified": time.strftime("%a, %d %b %Y %H:%M:%S GMT", time.gmtime(stat.st_mtime)),
    }

    if not range_header:
        return VideoResourcePayload(
            media_type=mime,
            headers={**common_headers, "Cache-Control": "public, max-age=3600"},
            status_code=200,
            file_path=path,
            use_file_response=True,
        )

    try:
        start, end = _parse_range(range_header, file_size)
    except ServiceError:
        raise
    except Exception as exc:  # pragma: no cover - 兜底
        raise InvalidRangeError("Invalid Range") from exc

    length = end - start + 1
    headers = {
        **common_headers,
        "Content-Range": f"bytes {start}-{end}/{file_size}",
        "Content-Length": str(length),
        "Cache-Control": "public, max-age=3600",
    }
    return VideoResourcePayload(
        media_type=mime,
        headers=headers,
        status_code=206,
        stream=_local_file_iter(path, start, length),
        use_file_response=False,
    )

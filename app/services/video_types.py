from __future__ import annotations

import mimetypes
import os
from pathlib import PurePath
from typing import Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

# 扩展名按原样比较（区分大小写），".MP4" 不会被识别为视频。
VIDEO_EXTENSIONS: frozenset[str] = frozenset(
    {
        "mp4",
        "avi",
        "flv",
        "heic",
        "mkv",
        "mov",
        "mpg",
        "mpeg",
        "m4v",
        "webm",
        "wmv",
        "3gp",
    }
)

_FALLBACK_MIME = {
    "mp4": "video/mp4",
    "m4v": "video/x-m4v",
    "avi": "video/x-msvideo",
    "flv": "video/x-flv",
    "heic": "image/heic",
    "mkv": "video/x-matroska",
    "mov": "video/quicktime",
    "mpg": "video/mpeg",
    "mpeg": "video/mpeg",
    "webm": "video/webm",
    "wmv": "video/x-ms-wmv",
    "3gp": "video/3gpp",
}


def video_extension(path: PathLike) -> Optional[str]:
    """返回最后一段文件名中最后一个 "." 之后的部分。

    没有 "." 或只有开头的 "."（隐藏文件）时返回 None；"clip." 返回空串。
    """
    name = PurePath(os.fspath(path)).name
    dot = name.rfind(".")
    if dot <= 0:
        return None
    return name[dot + 1 :]


def is_video_file(path: PathLike) -> bool:
    extension = video_extension(path)
    if extension is None:
        return False
    return extension in VIDEO_EXTENSIONS


def guess_video_mime(path: PathLike) -> str:
    guessed, _ = mimetypes.guess_type(PurePath(os.fspath(path)).name)
    if guessed:
        return guessed
    return _FALLBACK_MIME.get(video_extension(path) or "", "application/octet-stream")

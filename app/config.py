from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_ASSETS_ROOT = "assets"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9092

ASSETS_ROOT_ENV = "VIDEO_SERVER_ASSETS_ROOT"
HOST_ENV = "VIDEO_SERVER_HOST"
PORT_ENV = "VIDEO_SERVER_PORT"
STATIC_DIR_ENV = "VIDEO_SERVER_STATIC_DIR"
VERBOSE_INDEX_ENV = "VIDEO_SERVER_VERBOSE_INDEX"


@dataclass
class VideoServerConfig:
    assets_root: str = DEFAULT_ASSETS_ROOT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    static_dir: Optional[str] = None

    @property
    def static_path(self) -> Path:
        return Path(self.static_dir or self.assets_root)


def _normalize_bool(value: Optional[str], *, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    return normalized in {"1", "true", "yes", "on"}


def _read_port(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw.strip())
    except ValueError:
        print(f"[config] 端口无效，回退到 {DEFAULT_PORT}: {raw!r}")
        return DEFAULT_PORT
    if not 0 < port < 65536:
        print(f"[config] 端口超出范围，回退到 {DEFAULT_PORT}: {port}")
        return DEFAULT_PORT
    return port


def load_config() -> VideoServerConfig:
    """从环境变量读取配置；每次调用都重新读取，便于测试中 monkeypatch。"""
    assets_root = os.environ.get(ASSETS_ROOT_ENV, "").strip() or DEFAULT_ASSETS_ROOT
    host = os.environ.get(HOST_ENV, "").strip() or DEFAULT_HOST
    static_dir = os.environ.get(STATIC_DIR_ENV, "").strip() or None
    return VideoServerConfig(
        assets_root=assets_root,
        host=host,
        port=_read_port(os.environ.get(PORT_ENV)),
        static_dir=static_dir,
    )


def verbose_index_enabled() -> bool:
    return _normalize_bool(os.environ.get(VERBOSE_INDEX_ENV), default=False)

import argparse
import os
import socket

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.video_routes import router as video_router
from app.config import ASSETS_ROOT_ENV, HOST_ENV, PORT_ENV, load_config
from app.services.video_index import VideoIndex


app = FastAPI(title="Video Server", version="1.0.0")
app.state.video_index = None

app.add_middleware(
    CORSMiddleware,
    # 局域网直连场景：放宽到任意来源
    allow_origin_regex=r".*",
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Accept-Ranges"],
    max_age=86400,
)

app.include_router(video_router)


@app.on_event("startup")
def _build_video_index():
    # 构建失败直接抛出，服务不带着空索引启动
    if getattr(app.state, "video_index", None) is not None:
        return
    config = load_config()
    print(f"[startup] 开始索引视频目录: {config.assets_root}")
    app.state.video_index = VideoIndex.build(config.assets_root)


@app.on_event("startup")
def _mount_static_assets():
    target_dir = load_config().static_path.resolve()
    if not target_dir.is_dir():
        print(f"[startup] 静态资源目录不存在，跳过托管: {target_dir}")
        return

    # 避免重复挂载（热重载等场景）
    already_mounted = any(
        getattr(route, "path", None) == "/assets" and isinstance(getattr(route, "app", None), StaticFiles)
        for route in app.routes
    )
    if not already_mounted:
        app.mount("/assets", StaticFiles(directory=target_dir), name="assets-static")
        print(f"[startup] 静态资源已托管: {target_dir}")


def _get_local_ip() -> str:
    """尽可能获取局域网 IP（IPv4）。在没有外网时回退到主机名解析或 127.0.0.1。"""
    ip = "127.0.0.1"
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            # 不会真正发包，仅用于选择出站网卡
            s.connect(("8.8.8.8", 80))
            ip = s.getsockname()[0]
        finally:
            s.close()
    except OSError:
        try:
            ip = socket.gethostbyname(socket.gethostname())
        except OSError:
            pass
    return ip


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve videos under a directory by short numeric ids.")
    parser.add_argument("-a", "--assets-root", default=None, help="要索引的视频根目录（默认 assets）")
    parser.add_argument("-p", "--port", type=int, default=None, help="监听端口（默认 9092）")
    parser.add_argument("--host", default=None, help="监听地址（默认 0.0.0.0）")
    return parser.parse_args(argv)


def run(argv=None) -> None:
    args = _parse_args(argv)
    # 命令行参数优先，写回环境变量供 startup 读取
    if args.assets_root:
        os.environ[ASSETS_ROOT_ENV] = args.assets_root
    if args.port is not None:
        os.environ[PORT_ENV] = str(args.port)
    if args.host:
        os.environ[HOST_ENV] = args.host

    config = load_config()
    lan_ip = _get_local_ip()
    print(f"[boot] Video Server 即将启动: http://{lan_ip}:{config.port}  (本机: http://localhost:{config.port})")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()

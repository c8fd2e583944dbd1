import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.schemas.video import HealthResponse, ReloadResponse, VideoItem, VideoListResponse  # noqa: E402


def test_list_response_defaults():
    resp = VideoListResponse(root_path="assets", count=0, next_sequence=0, generation=1)
    assert resp.items == []


def test_video_item_fields():
    item = VideoItem(key="0.mp4", path="assets/a.mp4", url="/video/0.mp4")
    assert item.key == "0.mp4"
    assert item.url == "/video/0.mp4"


def test_reload_response_defaults():
    resp = ReloadResponse(count=3, previous_count=2, generation=4)
    assert resp.success is True
    assert resp.elapsed == 0.0


def test_health_default():
    assert HealthResponse().status == "ok"

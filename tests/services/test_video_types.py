import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.services.video_types import (  # noqa: E402
    VIDEO_EXTENSIONS,
    guess_video_mime,
    is_video_file,
    video_extension,
)


@pytest.mark.parametrize("ext", sorted(VIDEO_EXTENSIONS))
def test_every_allowed_extension_is_video(ext):
    assert is_video_file(f"movies/clip.{ext}")


def test_allow_list_is_fixed():
    assert VIDEO_EXTENSIONS == {
        "mp4", "avi", "flv", "heic", "mkv", "mov", "mpg", "mpeg", "m4v", "webm", "wmv", "3gp",
    }


@pytest.mark.parametrize(
    "path",
    [
        "readme.txt",
        "photo.jpg",
        "noext",
        "dir.mp4/noext",
        ".mp4",  # 隐藏文件，没有扩展名
        "clip.",
        "",
        "archive.mp4.zip",
    ],
)
def test_non_video_paths(path):
    assert not is_video_file(path)


def test_matching_is_case_sensitive():
    assert is_video_file("a/movie.mp4")
    assert not is_video_file("a/clip.MP4")
    assert not is_video_file("a/clip.Mov")


def test_extension_uses_last_component_of_last_segment():
    assert video_extension("a.b/c.tar.mkv") == "mkv"
    assert video_extension(Path("x") / "y.webm") == "webm"
    assert video_extension("x/y.mov/") == "mov"
    assert video_extension("..mp4") == "mp4"
    assert video_extension("clip.") == ""
    assert video_extension(".hidden") is None
    assert video_extension("plain") is None


def test_accepts_path_objects(tmp_path):
    assert is_video_file(tmp_path / "nonexistent" / "x.3gp")


def test_guess_video_mime():
    assert guess_video_mime("0.mp4") == "video/mp4"
    assert guess_video_mime("a/b.mkv").startswith("video/")
    assert guess_video_mime("unknown.zzz") == "application/octet-stream"

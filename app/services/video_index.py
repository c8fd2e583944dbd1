from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Iterator, List, Optional, Set, Tuple

from app.config import verbose_index_enabled
from app.services.exceptions import FilesystemError
from app.services.video_types import PathLike, is_video_file, video_extension


def make_server_key(sequence: int, extension: str) -> str:
    """服务端路径 "{id}.{ext}"：首个视频为 "0.mp4"，下一个 mov 为 "1.mov"。"""
    return f"{sequence}.{extension}"


@dataclass(frozen=True)
class VideoEntry:
    key: str
    path: str
    sequence: int
    extension: str


@dataclass(frozen=True)
class IndexSnapshot:
    root_path: str
    next_sequence: int
    generation: int
    entries: Tuple[VideoEntry, ...] = ()

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class ReloadResult:
    count: int
    previous_count: int
    generation: int
    elapsed: float


@dataclass
class _IndexPass:
    """一次完整遍历的中间结果，成功后才会整体替换到索引中。"""

    verbose: bool = False
    entries: Dict[str, VideoEntry] = field(default_factory=dict)
    keys_by_path: Dict[str, str] = field(default_factory=dict)
    next_sequence: int = 0
    ancestor_dirs: Set[Tuple[int, int]] = field(default_factory=set)

    def add(self, path: str, extension: str) -> VideoEntry:
        key = make_server_key(self.next_sequence, extension)
        entry = VideoEntry(key=key, path=path, sequence=self.next_sequence, extension=extension)
        if self.verbose:
            print(f"[index] {path} -> {key}")
        self.next_sequence += 1
        self.entries[key] = entry
        self.keys_by_path[path] = key
        return entry


class VideoIndex:
    """视频索引：server key <-> 源文件路径的双向映射。

    所有读写都在同一把锁下完成；遍历本身在锁外进行，成功后才原子替换映射，
    因此 reload 失败时旧索引保持可用。读接口返回拷贝，调用方渲染时无需持锁。
    """

    def __init__(self, root_path: PathLike) -> None:
        self._lock = Lock()
        # 串行化 build/reload，避免两次遍历交错
        self._reload_lock = Lock()
        self._root_path = os.fspath(root_path)
        self._entries: Dict[str, VideoEntry] = {}
        self._keys_by_path: Dict[str, str] = {}
        self._next_sequence = 0
        self._generation = 0

    @classmethod
    def build(cls, root_path: PathLike) -> "VideoIndex":
        index = cls(root_path)
        index.reload()
        return index

    # ------------------------------------------------------------------
    # 只读接口

    @property
    def root_path(self) -> str:
        return self._root_path

    @property
    def next_sequence(self) -> int:
        with self._lock:
            return self._next_sequence

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def lookup(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
        return entry.path if entry is not None else None

    def get_entry(self, key: str) -> Optional[VideoEntry]:
        with self._lock:
            return self._entries.get(key)

    def key_for(self, path: PathLike) -> Optional[str]:
        with self._lock:
            return self._keys_by_path.get(os.fspath(path))

    def list_all(self) -> List[VideoEntry]:
        with self._lock:
            return list(self._entries.values())

    def snapshot(self) -> IndexSnapshot:
        with self._lock:
            return IndexSnapshot(
                root_path=self._root_path,
                next_sequence=self._next_sequence,
                generation=self._generation,
                entries=tuple(self._entries.values()),
            )

    # ------------------------------------------------------------------
    # 构建 / 重建

    def reload(self) -> ReloadResult:
        """从头重新遍历 root_path，返回本次安装的索引信息。

        失败时抛出 FilesystemError，当前映射与计数器保持不变。
        """
        with self._reload_lock:
            started = time.perf_counter()
            index_pass = _IndexPass(verbose=verbose_index_enabled())
            self._walk_root(index_pass)
            with self._lock:
                previous_count = len(self._entries)
                self._entries = index_pass.entries
                self._keys_by_path = index_pass.keys_by_path
                self._next_sequence = index_pass.next_sequence
                self._generation += 1
                generation = self._generation
            elapsed = time.perf_counter() - started
            print(
                f"[index] 已索引 {len(index_pass.entries)} 个视频，根目录：{self._root_path}"
                f"（耗时 {elapsed:.3f}s）"
            )
            return ReloadResult(
                count=len(index_pass.entries),
                previous_count=previous_count,
                generation=generation,
                elapsed=elapsed,
            )

    def _walk_root(self, index_pass: _IndexPass) -> None:
        root = self._root_path
        if not os.path.isdir(root):
            print(f"[index] 根目录不存在或不是文件夹，索引为空：{root}")
            return
        try:
            iterator = os.scandir(root)
        except OSError as exc:
            raise FilesystemError(f"无法读取根目录：{root}（{exc}）", path=root) from exc
        self._descend(index_pass, root, iterator)

    def _visit_dir(self, index_pass: _IndexPass, directory: str) -> None:
        if self._dir_marker(directory) in index_pass.ancestor_dirs:
            print(f"[index] 检测到目录环，跳过：{directory}")
            return
        try:
            iterator = os.scandir(directory)
        except OSError as exc:
            # 子目录打不开视为空目录
            print(f"[index] 跳过无法打开的目录：{directory}（{exc}）")
            return
        self._descend(index_pass, directory, iterator)

    def _descend(self, index_pass: _IndexPass, directory: str, iterator: Iterator[os.DirEntry]) -> None:
        # 只记录当前递归路径上的目录：同一目录经别名再次出现时照常索引
        marker = self._dir_marker(directory)
        if marker is not None:
            index_pass.ancestor_dirs.add(marker)
        try:
            self._visit_entries(index_pass, directory, iterator)
        finally:
            if marker is not None:
                index_pass.ancestor_dirs.discard(marker)

    def _visit_entries(self, index_pass: _IndexPass, directory: str, iterator: Iterator[os.DirEntry]) -> None:
        with iterator:
            while True:
                try:
                    entry = next(iterator)
                except StopIteration:
                    break
                except OSError as exc:
                    raise FilesystemError(f"读取目录项失败：{directory}（{exc}）", path=directory) from exc

                path = os.path.join(directory, entry.name)
                try:
                    is_dir = entry.is_dir()
                    is_file = not is_dir and entry.is_file()
                except OSError as exc:
                    raise FilesystemError(f"读取目录项失败：{path}（{exc}）", path=path) from exc

                if is_dir:
                    self._visit_dir(index_pass, path)
                elif is_file and is_video_file(entry.name):
                    index_pass.add(path, video_extension(entry.name) or "")
                # 其他类型的文件直接忽略

    @staticmethod
    def _dir_marker(directory: str) -> Optional[Tuple[int, int]]:
        try:
            stat = os.stat(directory)
        except OSError:
            return None
        return (stat.st_dev, stat.st_ino)

# saenggibu/services/kv_store.py
"""
클라이언트 저장소(키-값, 값은 직렬화된 문자열 blob)를 대신하는 저장소 서비스.

- 모든 값은 문자열이며 키 하나에 blob 하나가 대응합니다.
- 트랜잭션 밖의 쓰기는 즉시 반영(write-through)됩니다.
- transaction() 블록 안의 쓰기는 모아 두었다가 블록이 정상 종료될 때 한 번에 반영하고,
  예외가 발생하면 모두 버립니다.
"""
import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union
from urllib.parse import quote, unquote

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    키-값 저장소의 공통 동작을 구현한 기반 클래스.
    하위 클래스는 _load_all / _persist 만 구현하면 됩니다.
    """

    def __init__(self, autoflush: bool = True):
        self.autoflush = autoflush
        self._data: Dict[str, str] = {}
        self._dirty: Dict[str, Optional[str]] = {}
        self._pending: Optional[Dict[str, Optional[str]]] = None
        self._depth = 0
        self._lock = threading.RLock()
        self._opened = False

    # --- 수명 주기 ---
    def open(self) -> "KeyValueStore":
        """백엔드에서 저장된 blob을 읽어 들입니다. 여러 번 호출해도 안전합니다."""
        with self._lock:
            if not self._opened:
                self._data = dict(self._load_all())
                self._opened = True
                logger.info(f"{type(self).__name__}: {len(self._data)}개의 키를 불러왔습니다.")
        return self

    def flush(self) -> None:
        """반영되지 않은 변경 사항을 백엔드에 기록합니다."""
        with self._lock:
            if not self._dirty:
                return
            changes, self._dirty = self._dirty, {}
            try:
                self._persist(changes)
            except Exception:
                # 기록에 실패한 변경은 다음 flush에서 다시 시도합니다.
                changes.update(self._dirty)
                self._dirty = changes
                raise

    def close(self) -> None:
        with self._lock:
            if self._opened:
                self.flush()
                self._opened = False

    def __enter__(self) -> "KeyValueStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- 읽기/쓰기 ---
    def get(self, key: str) -> Optional[str]:
        with self._lock:
            self._ensure_open()
            if self._pending is not None and key in self._pending:
                return self._pending[key]
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"저장소 값은 문자열이어야 합니다: {type(value).__name__}")
        self._stage(key, value)

    def remove(self, key: str) -> None:
        self._stage(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            self._ensure_open()
            merged = set(self._data)
            for key, value in (self._pending or {}).items():
                if value is None:
                    merged.discard(key)
                else:
                    merged.add(key)
            return sorted(merged)

    @contextmanager
    def transaction(self) -> Iterator["KeyValueStore"]:
        """
        블록 안의 쓰기를 하나의 단위로 반영합니다.
        중첩된 transaction()은 바깥 트랜잭션에 합류합니다.
        """
        with self._lock:
            self._ensure_open()
            outermost = self._depth == 0
            if outermost:
                self._pending = {}
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    logger.debug("트랜잭션이 롤백되었습니다.")
                    self._pending = None
                raise
            self._depth -= 1
            if outermost:
                changes, self._pending = self._pending, None
                self._commit(changes)

    # --- 내부 동작 ---
    def _ensure_open(self) -> None:
        if not self._opened:
            raise RuntimeError(f"{type(self).__name__}가 열려 있지 않습니다. open()을 먼저 호출해주세요.")

    def _stage(self, key: str, value: Optional[str]) -> None:
        with self._lock:
            self._ensure_open()
            if self._depth:
                self._pending[key] = value
                return
            self._commit({key: value})

    def _commit(self, changes: Dict[str, Optional[str]]) -> None:
        if not changes:
            return
        previous = {key: self._data.get(key) for key in changes}
        previous_dirty = dict(self._dirty)
        self._apply(changes)
        self._dirty.update(changes)
        if not self.autoflush:
            return
        try:
            self.flush()
        except Exception:
            # 백엔드에 기록되지 못한 변경은 메모리에서도 되돌려 호출자가 실패를 그대로 보게 합니다.
            self._apply(previous)
            self._dirty = previous_dirty
            logger.error(f"{type(self).__name__}: 변경 사항 기록 실패로 {len(changes)}개의 키를 되돌렸습니다.")
            try:
                # 일부만 기록되었을 수 있으므로 이전 값을 다시 기록해 백엔드도 맞춥니다.
                self._persist(previous)
            except Exception as e:
                logger.error(f"{type(self).__name__}: 이전 값 복원 기록에도 실패했습니다: {e}")
            raise

    def _apply(self, changes: Dict[str, Optional[str]]) -> None:
        for key, value in changes.items():
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value

    def _load_all(self) -> Dict[str, str]:
        raise NotImplementedError

    def _persist(self, changes: Dict[str, Optional[str]]) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    """프로세스 메모리에만 존재하는 저장소. 테스트와 testing 설정에서 사용합니다."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__(autoflush=True)
        self._initial = dict(initial or {})

    def _load_all(self) -> Dict[str, str]:
        return self._initial

    def _persist(self, changes: Dict[str, Optional[str]]) -> None:
        # 메모리 저장소는 _data 자체가 저장 상태입니다.
        pass


class JsonFileKeyValueStore(KeyValueStore):
    """
    키마다 디렉터리 안의 파일 하나에 blob을 저장하는 저장소.
    임시 파일에 먼저 쓴 뒤 원자적으로 교체하므로 파일은 항상 완전한 스냅샷입니다.

    여러 키를 한 번에 기록할 때는 변경 내용 전체를 저널 파일에 먼저 기록한 뒤 파일을 교체하고,
    모두 끝나면 저널을 지웁니다. 교체 도중 프로세스가 중단되면 다음 open()에서 저널을 다시 적용하므로
    컬렉션 blob과 상호작용 blob이 디스크에서 서로 어긋난 상태로 남지 않습니다.
    """
    SUFFIX = ".json"
    JOURNAL_NAME = "_pending.journal"

    def __init__(self, directory: Union[str, Path], autoflush: bool = True):
        super().__init__(autoflush=autoflush)
        self.directory = Path(directory)

    @property
    def journal_path(self) -> Path:
        return self.directory / self.JOURNAL_NAME

    def _path_for(self, key: str) -> Path:
        # 퍼센트 인코딩으로 경로 구분자 등 위험한 문자를 제거합니다.
        return self.directory / f"{quote(key, safe='')}{self.SUFFIX}"

    def _load_all(self) -> Dict[str, str]:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._recover()
        data = {}
        for path in sorted(self.directory.glob(f"*{self.SUFFIX}")):
            key = unquote(path.name[:-len(self.SUFFIX)])
            try:
                data[key] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"저장소 파일을 읽지 못해 건너뜁니다 ({path}): {e}")
        return data

    def _persist(self, changes: Dict[str, Optional[str]]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        journaled = len(changes) > 1
        if journaled:
            self._replace_file(self.journal_path, json.dumps(changes, ensure_ascii=False))
        self._write_files(changes)
        if journaled:
            self.journal_path.unlink()
        logger.debug(f"JsonFileKeyValueStore: {len(changes)}개의 키를 기록했습니다.")

    def _recover(self) -> None:
        """중단된 다중 키 기록이 남긴 저널을 다시 적용합니다."""
        journal = self.journal_path
        if not journal.exists():
            return
        try:
            changes = json.loads(journal.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"저널을 읽지 못해 버립니다 ({journal}): {e}")
            journal.unlink()
            return
        if isinstance(changes, dict):
            self._write_files({key: value for key, value in changes.items()
                               if value is None or isinstance(value, str)})
            logger.warning(f"중단된 기록 {len(changes)}건을 저널에서 복구했습니다 ({journal}).")
        journal.unlink()

    def _write_files(self, changes: Dict[str, Optional[str]]) -> None:
        for key, value in changes.items():
            path = self._path_for(key)
            if value is None:
                if path.exists():
                    path.unlink()
            else:
                self._replace_file(path, value)

    @staticmethod
    def _replace_file(path: Path, content: str) -> None:
        tmp = path.with_name(path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)


def create_store(config) -> KeyValueStore:
    """
    설정에 맞는 저장소 인스턴스를 생성합니다.
    STORAGE_PATH가 있으면 파일 저장소, 없으면 메모리 저장소를 사용합니다.
    """
    storage_path = config.get('STORAGE_PATH') if hasattr(config, 'get') else getattr(config, 'STORAGE_PATH', None)
    if storage_path:
        return JsonFileKeyValueStore(storage_path)
    return MemoryKeyValueStore()

import asyncio
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TypeVar

import aiofiles
from filelock import FileLock
from loguru import logger
from pydantic import BaseModel

from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.validation import Validation
from agentpair.domain.ports.artifact_store_port import ArtifactStorePort

SOLUTION_FILE = "solution.json"
VALIDATION_FILE = "validation.json"
LOCK_FILE = ".agentpair.lock"

M = TypeVar("M", bound=BaseModel)


class JsonArtifactStore(ArtifactStorePort):
    """Stores ``solution.json`` and ``validation.json`` in one output directory.

    Writes go through a temp file and rename, under a file lock on the
    directory, so a reader never sees a half-written artifact.
    """

    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir

    @property
    def solution_path(self) -> Path:
        return self.out_dir / SOLUTION_FILE

    @property
    def validation_path(self) -> Path:
        return self.out_dir / VALIDATION_FILE

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.out_dir / LOCK_FILE)
        # Acquire in a worker thread; FileLock blocks
        await asyncio.to_thread(lock.acquire)
        try:
            yield
        finally:
            await asyncio.to_thread(lock.release)

    async def _atomic_write(self, path: Path, content: str) -> None:
        fd, temp_path_str = tempfile.mkstemp(dir=str(path.parent), prefix=".tmp_", suffix=path.suffix)
        temp_path = Path(temp_path_str)
        try:
            async with aiofiles.open(fd, mode="w", encoding="utf-8", closefd=True) as f:
                await f.write(content)
            await asyncio.to_thread(os.replace, temp_path, path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    async def _save(self, path: Path, artifact: Solution | Validation) -> Path:
        async with self._locked():
            await self._atomic_write(path, artifact.dump_json() + "\n")
        logger.debug(f"[STORE] Wrote {path}")
        return path

    async def _load(self, path: Path, model: type[M]) -> M | None:
        if not path.exists():
            return None
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
        return model.model_validate_json(content)

    async def save_solution(self, solution: Solution) -> Path:
        return await self._save(self.solution_path, solution)

    async def save_validation(self, validation: Validation) -> Path:
        return await self._save(self.validation_path, validation)

    async def load_solution(self) -> Solution | None:
        return await self._load(self.solution_path, Solution)

    async def load_validation(self) -> Validation | None:
        return await self._load(self.validation_path, Validation)

    async def discard_validation(self) -> None:
        async with self._locked():
            if self.validation_path.exists():
                self.validation_path.unlink()
                logger.debug(f"[STORE] Removed stale {self.validation_path}")

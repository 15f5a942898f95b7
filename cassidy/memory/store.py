import json
import os
import tempfile
from abc import ABC, abstractmethod

from cassidy.errors import InvalidBankShape, StorageError
from cassidy.memory.models import MemoryBank
from cassidy.observability.logger import get_logger

log = get_logger("memory")


def _reject_constant(name: str):
    raise ValueError(f"non-finite number {name} in memory file")


class MemoryStore(ABC):
    """Whole-document storage for the memory bank.

    ``replace`` overwrites the stored document; there is no merge and no
    locking, so concurrent writers race and the last one wins.
    """

    @abstractmethod
    def load(self) -> dict:
        pass

    @abstractmethod
    def replace(self, new_bank) -> dict:
        pass


class FileMemoryStore(MemoryStore):
    """Memory bank kept as a single JSON file on local disk."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)

    def load(self) -> dict:
        if not os.path.exists(self.path):
            bank = MemoryBank.defaults().model_dump()
            self._write(bank)
            log.info("memory_initialized", path=self.path)
            return bank

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f, parse_constant=_reject_constant)
        except (OSError, ValueError) as e:
            log.error("memory_read_failed", path=self.path, error=str(e))
            raise StorageError() from e

        if not isinstance(data, dict):
            log.error("memory_file_not_object", path=self.path, found=type(data).__name__)
            raise StorageError()
        return data

    def replace(self, new_bank) -> dict:
        if not isinstance(new_bank, dict):
            raise InvalidBankShape()
        self._write(new_bank)
        log.info("memory_replaced", keys=sorted(new_bank.keys()))
        return new_bank

    def _write(self, data: dict):
        directory = os.path.dirname(self.path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".memory-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False, allow_nan=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            log.error("memory_write_failed", path=self.path, error=str(e))
            raise StorageError() from e

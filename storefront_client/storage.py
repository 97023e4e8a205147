import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """
    A small persisted key-value store backed by one JSON file.

    Writes go to a temporary file that replaces the original, so a crash
    mid-write never leaves a truncated store behind.
    """
    def __init__(self, path):
        self.path = os.fspath(path)

    def _read_all(self):
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning(f"Storage file '{self.path}' is corrupt; starting empty")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data):
        directory = os.path.dirname(self.path) or '.'
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def load(self, key, default=None):
        return self._read_all().get(key, default)

    def save(self, key, value):
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key):
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

import json
import os
from copy import deepcopy
from typing import Callable, Dict, List

from foodlib.utils.logger import logger, CustomJSONEncoder

SESSION_KEY = 'user'
CART_KEY = 'cart'


class AppState:
    """
    Session and cart slots shared by every client view.
    Values are optionally persisted to a JSON file, every change is pushed to the subscribers
    as callback(key, value), value is None when the slot was cleared.
    """

    def __init__(self, storage_path: str = None):
        self.storage_path = storage_path
        self._subscribers: List[Callable] = []
        self._values: Dict = self._read_storage()

    def _read_storage(self) -> Dict:
        if not self.storage_path or not os.path.exists(self.storage_path):
            return {}
        try:
            with open(self.storage_path, encoding='utf-8') as storage_file:
                values = json.load(storage_file)
        except (OSError, ValueError) as error:
            logger.warning(f'_read_storage ::: state file {self.storage_path} is not readable, starting empty, '
                           f'{error=}')
            return {}
        if not isinstance(values, dict):
            logger.warning(f'_read_storage ::: state file {self.storage_path} is corrupt, starting empty')
            return {}
        return values

    def _write_storage(self):
        if not self.storage_path:
            return
        tmp_path = f'{self.storage_path}.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as storage_file:
            json.dump(self._values, storage_file, cls=CustomJSONEncoder)
        os.replace(tmp_path, self.storage_path)

    def _notify(self, key: str, value):
        for callback in list(self._subscribers):
            callback(key, deepcopy(value))

    def get(self, key: str, default=None):
        return deepcopy(self._values.get(key, default))

    def set(self, key: str, value):
        self._values[key] = deepcopy(value)
        self._write_storage()
        self._notify(key, value)

    def clear(self, key: str):
        if key not in self._values:
            return
        del self._values[key]
        self._write_storage()
        self._notify(key, None)

    def subscribe(self, callback: Callable) -> Callable:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def reload(self) -> List[str]:
        """
        Re-reads the backing file after another process wrote it, last write wins.
        :return:
        keys whose values changed, subscribers are notified about each of them
        """
        old_values, new_values = self._values, self._read_storage()
        changed_keys = sorted(
            key for key in set(old_values) | set(new_values) if old_values.get(key) != new_values.get(key)
        )
        self._values = new_values
        for key in changed_keys:
            self._notify(key, new_values.get(key))
        return changed_keys

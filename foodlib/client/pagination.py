import math
from typing import List, Dict


class Paginator:
    """
    Fixed size, 1-indexed pages over an already filtered list
    """

    def __init__(self, page_size: int):
        if not isinstance(page_size, int) or page_size < 1:
            raise ValueError(f'page_size must be a positive integer, got {page_size}')
        self.page_size = page_size

    def total_pages(self, items: List) -> int:
        return max(1, math.ceil(len(items) / self.page_size))

    def page(self, items: List, n: int) -> List:
        if not isinstance(n, int) or n < 1:
            raise ValueError(f'Pages are numbered from 1, got {n}')
        start = (n - 1) * self.page_size
        return list(items[start:start + self.page_size])


class PagedListView:
    """
    Search, sort by creation date and pagination shared by the list views.
    Subclasses implement matches() and fill self.items in load()
    """

    sort_key = 'createdAt'

    def __init__(self, page_size: int, ascending: bool = True):
        self.paginator = Paginator(page_size)
        self.items: List[Dict] = []
        self.filtered: List[Dict] = []
        self.term: str = ''
        self.ascending: bool = ascending
        self.current_page: int = 1

    def matches(self, item: Dict, term: str) -> bool:
        return True

    def _apply(self):
        term = self.term.strip().lower()
        self.filtered = [item for item in self.items if not term or self.matches(item, term)]
        if self.sort_key:
            self.filtered.sort(key=lambda item: str(item.get(self.sort_key) or ''), reverse=not self.ascending)

    def set_items(self, items: List[Dict]):
        self.items = list(items or [])
        self._apply()
        self.current_page = min(self.current_page, self.total_pages())

    def search(self, term: str = '') -> List[Dict]:
        self.term = term or ''
        self.current_page = 1
        self._apply()
        return self.filtered

    def toggle_sort(self) -> bool:
        self.ascending = not self.ascending
        self._apply()
        return self.ascending

    def page(self, n: int = None) -> List[Dict]:
        n = self.current_page if n is None else n
        items = self.paginator.page(self.filtered, n)
        self.current_page = n
        return items

    def total_pages(self) -> int:
        return self.paginator.total_pages(self.filtered)

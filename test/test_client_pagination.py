import pytest

from foodlib.client.pagination import Paginator, PagedListView


def test_paginator_pages():
    paginator = Paginator(6)
    items = list(range(13))
    assert paginator.total_pages(items) == 3
    assert paginator.page(items, 1) == [0, 1, 2, 3, 4, 5]
    assert paginator.page(items, 3) == [12]
    assert paginator.page(items, 4) == []


def test_paginator_empty_list():
    paginator = Paginator(5)
    assert paginator.total_pages([]) == 1
    assert paginator.page([], 1) == []


@pytest.mark.parametrize('page_size', [0, -2, 1.5])
def test_paginator_rejects_page_size(page_size):
    with pytest.raises(ValueError):
        Paginator(page_size)


def test_paginator_rejects_page_number():
    with pytest.raises(ValueError):
        Paginator(5).page([1, 2], 0)


class NameList(PagedListView):
    def matches(self, item, term):
        return term in item['name'].lower()


def make_items():
    return [
        {'name': 'Charlie', 'createdAt': '2024-01-03'},
        {'name': 'alpha', 'createdAt': '2024-01-01'},
        {'name': 'Bravo', 'createdAt': '2024-01-02'},
        {'name': 'Alphonse', 'createdAt': '2024-01-04'},
    ]


def test_list_view_sorts_by_creation_date():
    view = NameList(page_size=2)
    view.set_items(make_items())
    assert [item['name'] for item in view.page(1)] == ['alpha', 'Bravo']
    assert view.total_pages() == 2

    assert view.toggle_sort() is False
    assert [item['name'] for item in view.page(1)] == ['Alphonse', 'Charlie']


def test_list_view_search_resets_page():
    view = NameList(page_size=1)
    view.set_items(make_items())
    view.page(3)
    assert view.current_page == 3

    found = view.search('ALPH')
    assert [item['name'] for item in found] == ['alpha', 'Alphonse']
    assert view.current_page == 1
    assert view.total_pages() == 2

    assert len(view.search('')) == 4


def test_list_view_clamps_page_after_reload():
    view = NameList(page_size=1)
    view.set_items(make_items())
    view.page(4)
    view.set_items(make_items()[:2])
    assert view.current_page == 2

from decimal import Decimal

from fakes import seeded_store
from tableside.config import Settings
from tableside.models import MenuCategory, MenuItem
from tableside.ordering.menu import MenuCatalog


def _catalog():
    items = list(seeded_store().menu.values())
    items.append(MenuItem(name="Draft special", price=Decimal("9.00"), category=MenuCategory.MAIN_COURSE))
    return MenuCatalog.from_items(items)


def test_unsaved_items_are_not_indexed():
    catalog = _catalog()
    assert len(catalog) == 3
    assert MenuCategory.MAIN_COURSE not in catalog.categories()


def test_lookups():
    catalog = _catalog()
    assert 1 in catalog
    assert catalog.get(3).name == "Tiramisu"
    assert catalog.get(99) is None
    assert [it.id for it in catalog.available()] == [1, 2]
    assert [it.name for it in catalog.by_category(MenuCategory.SALADS)] == ["Garden Salad"]


def test_categories_follow_menu_order():
    assert _catalog().categories() == [MenuCategory.APPETIZERS, MenuCategory.DESSERTS, MenuCategory.SALADS]


def test_currency_symbol():
    assert Settings(currency="GBP").currency_symbol == "£"
    assert Settings(currency="JPY").currency_symbol == ""

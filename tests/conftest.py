from decimal import Decimal

import pytest

from mrlister.schema import InventoryRecord
from mrlister.storage import InMemoryInventoryStore


def make_record(**overrides):
    fields = dict(
        id=1,
        user_id=1,
        sku="VTG-LAMP-01",
        title="Brass desk lamp",
        description="Working brass lamp, minor patina.",
        category="home",
        subcategory="lighting",
        condition="good",
        price=Decimal("24.5"),
        quantity=1,
        image_urls=["http://img/1.jpg", "http://img/2.jpg"],
        metadata={"barcode": "012345678905"},
    )
    fields.update(overrides)
    return InventoryRecord(**fields)


@pytest.fixture
def record():
    return make_record()


@pytest.fixture
def store():
    return InMemoryInventoryStore([
        make_record(id=1),
        make_record(id=2, sku="CAM-2", title="Film camera", category="electronics", condition="Like New"),
        make_record(id=3, user_id=2, sku="OTHER-3", title="Someone else's book", category="books"),
    ])

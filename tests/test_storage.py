"""
Storage contract tests.

Run against both DatabaseStorage and InMemoryStorage via the ``storage``
fixture.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from kitchen_orders.core.security import verify_password
from kitchen_orders.schemas import (
    ChatDirectionEnum,
    ChatLogCreate,
    MenuItemInsert,
    OrderInsert,
    OrderItemInsert,
    OrderStatusEnum,
    RestaurantCreate,
    UserCreate,
)
from kitchen_orders.services.storage import DuplicateUsernameError, InMemoryStorage


def make_restaurant(name="Test Kitchen"):
    return RestaurantCreate(
        name=name,
        type="cloud_kitchen",
        address="1 Test Road",
        phone_number="9811111111",
        image="https://example.com/kitchen.jpg",
    )


def make_menu_item(restaurant_id, name="Veg Momo", price="99.50"):
    return MenuItemInsert(
        restaurant_id=restaurant_id,
        name=name,
        description="Steamed dumplings",
        price=Decimal(price),
        category="Momo",
    )


@pytest.mark.unit
class TestRestaurants:

    @pytest.mark.asyncio
    async def test_create_restaurant_returns_stored_fields(self, storage):
        payload = make_restaurant()
        created = await storage.create_restaurant(payload)

        assert created.id is not None
        assert created.model_dump(exclude={"id"}) == payload.model_dump()

        fetched = await storage.get_restaurant(created.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_get_missing_restaurant_returns_none(self, storage):
        assert await storage.get_restaurant(404) is None

    @pytest.mark.asyncio
    async def test_get_restaurants_lists_all(self, storage):
        assert await storage.get_restaurants() == []

        await storage.create_restaurant(make_restaurant("One"))
        await storage.create_restaurant(make_restaurant("Two"))

        names = sorted(r.name for r in await storage.get_restaurants())
        assert names == ["One", "Two"]


@pytest.mark.unit
class TestMenuItems:

    @pytest.mark.asyncio
    async def test_menu_items_are_scoped_to_restaurant(self, storage):
        first = await storage.create_restaurant(make_restaurant("First"))
        second = await storage.create_restaurant(make_restaurant("Second"))

        await storage.create_menu_item(make_menu_item(first.id, "Momo"))
        await storage.create_menu_item(make_menu_item(first.id, "Thukpa"))
        await storage.create_menu_item(make_menu_item(second.id, "Burger"))

        first_menu = await storage.get_menu_items(first.id)
        assert sorted(i.name for i in first_menu) == ["Momo", "Thukpa"]
        assert all(i.restaurant_id == first.id for i in first_menu)
        assert await storage.get_menu_items(999) == []

    @pytest.mark.asyncio
    async def test_price_keeps_two_decimal_places(self, storage):
        restaurant = await storage.create_restaurant(make_restaurant())
        item = await storage.create_menu_item(make_menu_item(restaurant.id, price="120"))

        fetched = await storage.get_menu_item(item.id)
        assert fetched.price == Decimal("120.00")
        assert fetched.model_dump(mode="json", by_alias=True)["price"] == "120.00"
        assert fetched.is_available is True

    @pytest.mark.asyncio
    async def test_get_missing_menu_item_returns_none(self, storage):
        assert await storage.get_menu_item(12345) is None


@pytest.mark.unit
class TestOrders:

    @pytest.mark.asyncio
    async def test_create_order_and_enrich(self, storage, menu):
        momo, chowmein = menu[0], menu[1]
        order = await storage.create_order(
            OrderInsert(user_id=1, total_amount=Decimal("420.00")),
            [
                OrderItemInsert(menu_item_id=momo.id, quantity=2, price=momo.price),
                OrderItemInsert(menu_item_id=chowmein.id, quantity=1, price=chowmein.price),
            ],
        )

        assert order.status == "pending"
        assert order.total_amount == Decimal("420.00")

        detail = await storage.get_order(order.id)
        assert detail.id == order.id
        assert [i.menu_item_id for i in detail.items] == [momo.id, chowmein.id]
        assert all(i.order_id == order.id for i in detail.items)
        assert detail.items[0].menu_item.name == "Chicken Momo"
        assert detail.items[1].menu_item == chowmein

    @pytest.mark.asyncio
    async def test_line_price_is_independent_of_menu_price(self, storage, menu):
        momo = menu[0]
        order = await storage.create_order(
            OrderInsert(user_id=1, total_amount=Decimal("99.00")),
            [OrderItemInsert(menu_item_id=momo.id, quantity=1, price=Decimal("99.00"))],
        )

        detail = await storage.get_order(order.id)
        assert detail.items[0].price == Decimal("99.00")
        assert detail.items[0].menu_item.price == Decimal("150.00")

    @pytest.mark.asyncio
    async def test_get_orders_newest_first(self, storage, menu):
        created = []
        for _ in range(3):
            created.append(await storage.create_order(
                OrderInsert(user_id=1, total_amount=Decimal("150.00")),
                [OrderItemInsert(menu_item_id=menu[0].id, quantity=1, price=menu[0].price)],
            ))

        orders = await storage.get_orders()
        assert [o.id for o in orders] == [o.id for o in reversed(created)]
        assert all(len(o.items) == 1 for o in orders)

    @pytest.mark.asyncio
    async def test_order_without_items(self, storage):
        order = await storage.create_order(
            OrderInsert(user_id=1, total_amount=Decimal("0")), []
        )
        detail = await storage.get_order(order.id)
        assert detail.items == []
        assert detail.total_amount == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_get_missing_order_returns_none(self, storage):
        assert await storage.get_order(77) is None

    @pytest.mark.asyncio
    async def test_update_order_status(self, storage, menu):
        order = await storage.create_order(
            OrderInsert(user_id=1, total_amount=Decimal("150.00")),
            [OrderItemInsert(menu_item_id=menu[0].id, quantity=1, price=menu[0].price)],
        )

        updated = await storage.update_order_status(order.id, OrderStatusEnum.PREPARING.value)
        assert updated.id == order.id
        assert updated.status == "preparing"
        assert updated.total_amount == order.total_amount

        detail = await storage.get_order(order.id)
        assert detail.status == "preparing"

    @pytest.mark.asyncio
    async def test_update_missing_order_returns_none(self, storage):
        assert await storage.update_order_status(999, "confirmed") is None


@pytest.mark.unit
class TestOrderAtomicity:

    @pytest.mark.asyncio
    async def test_failed_line_insert_leaves_no_order(self, database_storage):
        restaurant = await database_storage.create_restaurant(make_restaurant())
        item = await database_storage.create_menu_item(make_menu_item(restaurant.id))

        good_line = OrderItemInsert(menu_item_id=item.id, quantity=1, price=item.price)
        # quantity is NOT NULL in the database
        bad_line = OrderItemInsert.model_construct(
            menu_item_id=item.id, quantity=None, price=item.price
        )

        with pytest.raises(IntegrityError):
            await database_storage.create_order(
                OrderInsert(user_id=1, total_amount=Decimal("199.00")),
                [good_line, bad_line],
            )

        assert await database_storage.get_orders() == []

    @pytest.mark.asyncio
    async def test_memory_storage_rejects_unknown_menu_item_without_writing(self):
        storage = InMemoryStorage()

        with pytest.raises(LookupError):
            await storage.create_order(
                OrderInsert(user_id=1, total_amount=Decimal("10.00")),
                [OrderItemInsert(menu_item_id=42, quantity=1, price=Decimal("10.00"))],
            )

        assert await storage.get_orders() == []


@pytest.mark.unit
class TestUsers:

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, storage):
        user = await storage.create_user(UserCreate(
            username="kitchen_staff",
            password="s3cret-pass",
            role="staff",
            phone_number="9822222222",
        ))

        assert user.password != "s3cret-pass"
        assert verify_password("s3cret-pass", user.password)
        assert "password" not in user.model_dump()

    @pytest.mark.asyncio
    async def test_lookup_by_id_and_username(self, storage):
        user = await storage.create_user(UserCreate(username="rider", password="rider-pass-1"))

        assert (await storage.get_user(user.id)).username == "rider"
        assert (await storage.get_user_by_username("rider")).id == user.id
        assert await storage.get_user_by_username("nobody") is None
        assert await storage.get_user(999) is None

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, storage):
        first = await storage.create_user(UserCreate(username="dupuser", password="first-pass"))

        with pytest.raises(DuplicateUsernameError) as exc_info:
            await storage.create_user(UserCreate(username="dupuser", password="second-pass"))
        assert exc_info.value.username == "dupuser"

        # The original account is untouched
        stored = await storage.get_user_by_username("dupuser")
        assert stored.id == first.id
        assert verify_password("first-pass", stored.password)


@pytest.mark.unit
class TestChatLogs:

    @pytest.mark.asyncio
    async def test_chat_logs_newest_first(self, storage):
        first = await storage.create_chat_log(ChatLogCreate(
            phone_number="9833333333", message="hello"
        ))
        second = await storage.create_chat_log(ChatLogCreate(
            phone_number="9833333333",
            message="your order is ready",
            direction=ChatDirectionEnum.OUTGOING,
        ))

        logs = await storage.get_chat_logs()
        assert [log.id for log in logs] == [second.id, first.id]
        assert logs[0].direction == "outgoing"
        assert logs[1].direction == "incoming"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_health_check(storage):
    assert await storage.health_check() is True

"""
In-Memory Storage Implementation

Keeps every table in a dictionary inside the process. Used with
STORAGE_BACKEND=memory to:
    - Run the API locally without a database server
    - Exercise the route handlers in tests

Behavior:
    - Ids are generated per table, starting at 1
    - Records are copied on the way in and out, so callers never share state
    - Data is lost when the process exits
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from kitchen_orders.core.security import hash_password
from kitchen_orders.schemas import (
    ChatLogCreate,
    ChatLogResponse,
    MenuItemInsert,
    MenuItemResponse,
    OrderDetailResponse,
    OrderInsert,
    OrderItemDetail,
    OrderItemInsert,
    OrderItemResponse,
    OrderResponse,
    RestaurantCreate,
    RestaurantResponse,
    UserCreate,
    UserRecord,
    quantize_money,
)
from kitchen_orders.services.storage.base import BaseStorage, DuplicateUsernameError

logger = logging.getLogger(__name__)


class InMemoryStorage(BaseStorage):
    """
    Dictionary-backed implementation of the storage contract.

    Example:
        >>> storage = InMemoryStorage()
        >>> restaurant = await storage.create_restaurant(
        ...     RestaurantCreate(name="Test Kitchen")
        ... )
        >>> restaurant.id
        1
    """

    def __init__(self):
        self._users: Dict[int, UserRecord] = {}
        self._restaurants: Dict[int, RestaurantResponse] = {}
        self._menu_items: Dict[int, MenuItemResponse] = {}
        self._orders: Dict[int, OrderResponse] = {}
        self._order_items: Dict[int, OrderItemResponse] = {}
        self._chat_logs: Dict[int, ChatLogResponse] = {}
        self._ids: Dict[str, itertools.count] = {}
        # Serializes multi-record writes (order + lines)
        self._write_lock = asyncio.Lock()

    @property
    def provider_name(self) -> str:
        return "memory"

    def _next_id(self, table: str) -> int:
        counter = self._ids.setdefault(table, itertools.count(1))
        return next(counter)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # =========================================================================
    # USERS
    # =========================================================================

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    async def create_user(self, user: UserCreate) -> UserRecord:
        if await self.get_user_by_username(user.username):
            raise DuplicateUsernameError(user.username)

        record = UserRecord(
            id=self._next_id("users"),
            username=user.username,
            password=hash_password(user.password),
            role=user.role,
            phone_number=user.phone_number,
        )
        self._users[record.id] = record
        return record.model_copy()

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    async def get_restaurants(self) -> List[RestaurantResponse]:
        return [r.model_copy() for r in self._restaurants.values()]

    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantResponse]:
        restaurant = self._restaurants.get(restaurant_id)
        return restaurant.model_copy() if restaurant else None

    async def create_restaurant(self, restaurant: RestaurantCreate) -> RestaurantResponse:
        record = RestaurantResponse(id=self._next_id("restaurants"), **restaurant.model_dump())
        self._restaurants[record.id] = record
        return record.model_copy()

    # =========================================================================
    # MENU ITEMS
    # =========================================================================

    async def get_menu_items(self, restaurant_id: int) -> List[MenuItemResponse]:
        return [
            item.model_copy()
            for item in self._menu_items.values()
            if item.restaurant_id == restaurant_id
        ]

    async def get_menu_item(self, item_id: int) -> Optional[MenuItemResponse]:
        item = self._menu_items.get(item_id)
        return item.model_copy() if item else None

    async def create_menu_item(self, item: MenuItemInsert) -> MenuItemResponse:
        data = item.model_dump()
        data["price"] = quantize_money(data["price"])
        record = MenuItemResponse(id=self._next_id("menu_items"), **data)
        self._menu_items[record.id] = record
        return record.model_copy()

    # =========================================================================
    # ORDERS
    # =========================================================================

    def _enrich(self, order: OrderResponse) -> OrderDetailResponse:
        items = [
            OrderItemDetail(
                **line.model_dump(),
                menu_item=self._menu_items[line.menu_item_id].model_copy(),
            )
            for line in self._order_items.values()
            if line.order_id == order.id
        ]
        return OrderDetailResponse(**order.model_dump(), items=items)

    async def get_orders(self) -> List[OrderDetailResponse]:
        orders = sorted(
            self._orders.values(),
            key=lambda o: (o.created_at, o.id),
            reverse=True,
        )
        return [self._enrich(order) for order in orders]

    async def get_order(self, order_id: int) -> Optional[OrderDetailResponse]:
        order = self._orders.get(order_id)
        return self._enrich(order) if order else None

    async def create_order(
        self,
        order: OrderInsert,
        items: List[OrderItemInsert],
    ) -> OrderResponse:
        async with self._write_lock:
            # Validate every line before anything is written
            for item in items:
                if item.menu_item_id not in self._menu_items:
                    raise LookupError(f"Menu item {item.menu_item_id} does not exist")

            record = OrderResponse(
                id=self._next_id("orders"),
                user_id=order.user_id,
                total_amount=quantize_money(order.total_amount),
                status=order.status.value,
                created_at=self._now(),
            )
            lines = [
                OrderItemResponse(
                    id=self._next_id("order_items"),
                    order_id=record.id,
                    menu_item_id=item.menu_item_id,
                    quantity=item.quantity,
                    price=quantize_money(item.price),
                )
                for item in items
            ]

            self._orders[record.id] = record
            for line in lines:
                self._order_items[line.id] = line

        logger.debug(f"Stored order #{record.id} with {len(lines)} item(s)")
        return record.model_copy()

    async def update_order_status(self, order_id: int, status: str) -> Optional[OrderResponse]:
        order = self._orders.get(order_id)
        if order is None:
            return None
        updated = order.model_copy(update={"status": status})
        self._orders[order_id] = updated
        return updated.model_copy()

    # =========================================================================
    # CHAT
    # =========================================================================

    async def create_chat_log(self, log: ChatLogCreate) -> ChatLogResponse:
        record = ChatLogResponse(
            id=self._next_id("chat_logs"),
            phone_number=log.phone_number,
            message=log.message,
            direction=log.direction.value,
            created_at=self._now(),
        )
        self._chat_logs[record.id] = record
        return record.model_copy()

    async def get_chat_logs(self) -> List[ChatLogResponse]:
        logs = sorted(
            self._chat_logs.values(),
            key=lambda c: (c.created_at, c.id),
            reverse=True,
        )
        return [log.model_copy() for log in logs]

    # =========================================================================
    # HEALTH
    # =========================================================================

    async def health_check(self) -> bool:
        return True

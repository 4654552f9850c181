"""
Database Storage Implementation

Implements the storage contract on top of SQLAlchemy's asyncio extension.
Every call opens its own session and round-trips to the database; nothing is
cached between calls.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from kitchen_orders.core.security import hash_password
from kitchen_orders.models import ChatLog, MenuItem, Order, OrderItem, Restaurant, User
from kitchen_orders.schemas import (
    ChatLogCreate,
    ChatLogResponse,
    MenuItemInsert,
    MenuItemResponse,
    OrderDetailResponse,
    OrderInsert,
    OrderItemDetail,
    OrderItemInsert,
    OrderResponse,
    RestaurantCreate,
    RestaurantResponse,
    UserCreate,
    UserRecord,
)
from kitchen_orders.services.storage.base import BaseStorage, DuplicateUsernameError

logger = logging.getLogger(__name__)


class DatabaseStorage(BaseStorage):
    """
    Storage backed by a relational database.

    Attributes:
        session_maker: Factory producing one AsyncSession per call

    Example:
        >>> storage = DatabaseStorage(async_session_maker)
        >>> restaurants = await storage.get_restaurants()
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    @property
    def provider_name(self) -> str:
        return "database"

    # =========================================================================
    # USERS
    # =========================================================================

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        async with self.session_maker() as session:
            user = await session.get(User, user_id)
            return UserRecord.model_validate(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self.session_maker() as session:
            result = await session.execute(select(User).where(User.username == username))
            user = result.scalar_one_or_none()
            return UserRecord.model_validate(user) if user else None

    async def create_user(self, user: UserCreate) -> UserRecord:
        new_user = User(
            username=user.username,
            password=hash_password(user.password),
            role=user.role,
            phone_number=user.phone_number,
        )
        async with self.session_maker() as session:
            session.add(new_user)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateUsernameError(user.username) from e
            await session.refresh(new_user)
        return UserRecord.model_validate(new_user)

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    async def get_restaurants(self) -> List[RestaurantResponse]:
        async with self.session_maker() as session:
            result = await session.execute(select(Restaurant).order_by(Restaurant.id))
            return [RestaurantResponse.model_validate(r) for r in result.scalars().all()]

    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantResponse]:
        async with self.session_maker() as session:
            restaurant = await session.get(Restaurant, restaurant_id)
            return RestaurantResponse.model_validate(restaurant) if restaurant else None

    async def create_restaurant(self, restaurant: RestaurantCreate) -> RestaurantResponse:
        new_restaurant = Restaurant(**restaurant.model_dump())
        async with self.session_maker() as session:
            session.add(new_restaurant)
            await session.commit()
            await session.refresh(new_restaurant)
        return RestaurantResponse.model_validate(new_restaurant)

    # =========================================================================
    # MENU ITEMS
    # =========================================================================

    async def get_menu_items(self, restaurant_id: int) -> List[MenuItemResponse]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(MenuItem)
                .where(MenuItem.restaurant_id == restaurant_id)
                .order_by(MenuItem.id)
            )
            return [MenuItemResponse.model_validate(i) for i in result.scalars().all()]

    async def get_menu_item(self, item_id: int) -> Optional[MenuItemResponse]:
        async with self.session_maker() as session:
            item = await session.get(MenuItem, item_id)
            return MenuItemResponse.model_validate(item) if item else None

    async def create_menu_item(self, item: MenuItemInsert) -> MenuItemResponse:
        new_item = MenuItem(**item.model_dump())
        async with self.session_maker() as session:
            session.add(new_item)
            await session.commit()
            await session.refresh(new_item)
        return MenuItemResponse.model_validate(new_item)

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def _get_order_items(self, order_id: int) -> List[OrderItemDetail]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(OrderItem)
                .options(selectinload(OrderItem.menu_item))
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
            )
            return [OrderItemDetail.model_validate(i) for i in result.scalars().all()]

    async def _enrich(self, order: Order) -> OrderDetailResponse:
        items = await self._get_order_items(order.id)
        base = OrderResponse.model_validate(order)
        return OrderDetailResponse(**base.model_dump(), items=items)

    async def get_orders(self) -> List[OrderDetailResponse]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(Order).order_by(Order.created_at.desc(), Order.id.desc())
            )
            orders = result.scalars().all()

        # One item lookup per order, run concurrently; gather keeps the order
        return list(await asyncio.gather(*(self._enrich(order) for order in orders)))

    async def get_order(self, order_id: int) -> Optional[OrderDetailResponse]:
        async with self.session_maker() as session:
            order = await session.get(Order, order_id)
        if order is None:
            return None
        return await self._enrich(order)

    async def create_order(
        self,
        order: OrderInsert,
        items: List[OrderItemInsert],
    ) -> OrderResponse:
        new_order = Order(
            user_id=order.user_id,
            total_amount=order.total_amount,
            status=order.status.value,
        )
        async with self.session_maker() as session:
            # Commits on exit, rolls back if any insert fails
            async with session.begin():
                session.add(new_order)
                await session.flush()
                session.add_all([
                    OrderItem(
                        order_id=new_order.id,
                        menu_item_id=item.menu_item_id,
                        quantity=item.quantity,
                        price=item.price,
                    )
                    for item in items
                ])
            await session.refresh(new_order)

        logger.debug(f"Stored order #{new_order.id} with {len(items)} item(s)")
        return OrderResponse.model_validate(new_order)

    async def update_order_status(self, order_id: int, status: str) -> Optional[OrderResponse]:
        async with self.session_maker() as session:
            order = await session.get(Order, order_id)
            if order is None:
                return None
            order.status = status
            await session.commit()
            await session.refresh(order)
        return OrderResponse.model_validate(order)

    # =========================================================================
    # CHAT
    # =========================================================================

    async def create_chat_log(self, log: ChatLogCreate) -> ChatLogResponse:
        new_log = ChatLog(
            phone_number=log.phone_number,
            message=log.message,
            direction=log.direction.value,
        )
        async with self.session_maker() as session:
            session.add(new_log)
            await session.commit()
            await session.refresh(new_log)
        return ChatLogResponse.model_validate(new_log)

    async def get_chat_logs(self) -> List[ChatLogResponse]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(ChatLog).order_by(ChatLog.created_at.desc(), ChatLog.id.desc())
            )
            return [ChatLogResponse.model_validate(c) for c in result.scalars().all()]

    # =========================================================================
    # HEALTH
    # =========================================================================

    async def health_check(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(select(1))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

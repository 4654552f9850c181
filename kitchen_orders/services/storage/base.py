"""
Storage Abstract Base Class

Defines the interface contract for every storage implementation.
Route handlers and the seed routine only talk to this interface, so the
database-backed and in-memory implementations are interchangeable.

Contract:
    - Reads return the record(s), or None when a single record is not found
    - Creates return the stored record including its generated id
    - Persistence failures propagate to the caller
    - A duplicate username raises DuplicateUsernameError
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from kitchen_orders.schemas import (
    ChatLogCreate,
    ChatLogResponse,
    MenuItemInsert,
    MenuItemResponse,
    OrderDetailResponse,
    OrderInsert,
    OrderItemInsert,
    OrderResponse,
    RestaurantCreate,
    RestaurantResponse,
    UserCreate,
    UserRecord,
)


class DuplicateUsernameError(ValueError):
    """Raised by create_user when the username is already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already exists: {username}")


class BaseStorage(ABC):
    """
    Abstract base class for storage services.

    Example:
        >>> storage = get_storage()  # Database or in-memory
        >>> restaurant = await storage.get_restaurant(1)
        >>> if restaurant is None:
        ...     raise HTTPException(status_code=404)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the storage provider name ("database", "memory")."""
        pass

    # =========================================================================
    # USERS
    # =========================================================================

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def create_user(self, user: UserCreate) -> UserRecord:
        """
        Store a user; the password is hashed before it is written.

        Raises:
            DuplicateUsernameError: A user with this username already exists
        """
        pass

    # =========================================================================
    # RESTAURANTS
    # =========================================================================

    @abstractmethod
    async def get_restaurants(self) -> List[RestaurantResponse]:
        pass

    @abstractmethod
    async def get_restaurant(self, restaurant_id: int) -> Optional[RestaurantResponse]:
        pass

    @abstractmethod
    async def create_restaurant(self, restaurant: RestaurantCreate) -> RestaurantResponse:
        pass

    # =========================================================================
    # MENU ITEMS
    # =========================================================================

    @abstractmethod
    async def get_menu_items(self, restaurant_id: int) -> List[MenuItemResponse]:
        pass

    @abstractmethod
    async def get_menu_item(self, item_id: int) -> Optional[MenuItemResponse]:
        pass

    @abstractmethod
    async def create_menu_item(self, item: MenuItemInsert) -> MenuItemResponse:
        pass

    # =========================================================================
    # ORDERS
    # =========================================================================

    @abstractmethod
    async def get_orders(self) -> List[OrderDetailResponse]:
        """
        All orders, newest first, each with its lines and their menu items.
        """
        pass

    @abstractmethod
    async def get_order(self, order_id: int) -> Optional[OrderDetailResponse]:
        pass

    @abstractmethod
    async def create_order(
        self,
        order: OrderInsert,
        items: List[OrderItemInsert],
    ) -> OrderResponse:
        """
        Store an order and its lines atomically.

        Either the order and every line are stored, or nothing is.
        """
        pass

    @abstractmethod
    async def update_order_status(self, order_id: int, status: str) -> Optional[OrderResponse]:
        pass

    # =========================================================================
    # CHAT
    # =========================================================================

    @abstractmethod
    async def create_chat_log(self, log: ChatLogCreate) -> ChatLogResponse:
        pass

    @abstractmethod
    async def get_chat_logs(self) -> List[ChatLogResponse]:
        """Chat logs, newest first."""
        pass

    # =========================================================================
    # HEALTH
    # =========================================================================

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the backing store answers."""
        pass

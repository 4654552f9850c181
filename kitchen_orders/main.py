"""
FastAPI Application Entry Point

Kitchen Orders API - restaurants, menus, orders and a chat webhook stub.

Endpoints:
    - GET/POST /api/restaurants: List and create restaurants
    - GET/POST /api/restaurants/{id}/menu-items: Restaurant menu
    - GET/POST /api/orders: List and place orders
    - PATCH /api/orders/{id}/status: Move an order through its workflow
    - POST /api/chat/webhook: Chat provider webhook (logged, not interpreted)
    - GET /api/chat/logs: Chat log history
    - GET /health: System health check
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Tuple

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kitchen_orders.core.config import get_settings, setup_logging
from kitchen_orders.database import engine, init_db
from kitchen_orders.schemas import (
    ChatDirectionEnum,
    ChatLogCreate,
    ChatLogResponse,
    ErrorResponse,
    HealthResponse,
    MAX_MONEY,
    MenuItemCreate,
    MenuItemInsert,
    MenuItemResponse,
    OrderCreate,
    OrderDetailResponse,
    OrderInsert,
    OrderItemCreate,
    OrderItemInsert,
    OrderResponse,
    OrderStatusEnum,
    OrderStatusUpdate,
    RestaurantCreate,
    RestaurantResponse,
    WebhookAck,
    quantize_money,
)
from kitchen_orders.services.seed import seed_database
from kitchen_orders.services.storage import BaseStorage, get_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

WEBHOOK_PHONE_NUMBER = "unknown"
WEBHOOK_MESSAGE = "Incoming message (webhook)"


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Storage: {settings.storage_backend.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if not settings.use_memory_storage:
        await init_db()
        logger.info("Database initialized")

    storage = get_storage()
    if settings.seed_on_startup:
        seeded = await seed_database(storage)
        logger.info("Demo data seeded" if seeded else "Existing data found, seed skipped")

    logger.info("Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Order management backend for restaurants, menus and orders.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def price_order_items(
    storage: BaseStorage,
    items: List[OrderItemCreate],
) -> Tuple[Decimal, List[OrderItemInsert]]:
    """
    Resolve requested lines against the menu and compute the order total.

    Each line takes the menu item's current price as its snapshot. Lines
    whose menu item does not exist are dropped without failing the order.

    Returns:
        (total_amount, lines to store)

    Raises:
        HTTPException: 400 when the total does not fit a money column
    """
    total = Decimal("0")
    lines: List[OrderItemInsert] = []

    for item in items:
        menu_item = await storage.get_menu_item(item.menu_item_id)
        if menu_item is None:
            logger.warning(f"Dropping order line: menu item #{item.menu_item_id} not found")
            continue

        total += menu_item.price * item.quantity
        lines.append(OrderItemInsert(
            menu_item_id=menu_item.id,
            quantity=item.quantity,
            price=menu_item.price,
        ))

    total = quantize_money(total)
    if total > MAX_MONEY:
        raise HTTPException(
            status_code=400,
            detail=f"totalAmount: Order total {total} exceeds the maximum of {MAX_MONEY}",
        )

    return total, lines


def first_error_message(exc: RequestValidationError) -> str:
    """Human-readable message for the first validation failure."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    # Drop the "body"/"path"/"query" prefix from the location
    location = ".".join(str(part) for part in error.get("loc", ())[1:])
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(storage: BaseStorage = Depends(get_storage)) -> HealthResponse:
    """Verify the storage backend is reachable."""
    healthy = await storage.health_check()
    return HealthResponse(
        status="operational" if healthy else "degraded",
        storage="healthy" if healthy else "unhealthy",
        storage_backend=storage.provider_name,
        timestamp=datetime.now(),
    )


# =============================================================================
# RESTAURANT ENDPOINTS
# =============================================================================

@app.get(
    "/api/restaurants",
    response_model=List[RestaurantResponse],
    tags=["Restaurants"],
)
async def list_restaurants(storage: BaseStorage = Depends(get_storage)):
    return await storage.get_restaurants()


@app.get(
    "/api/restaurants/{restaurant_id}",
    response_model=RestaurantResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Restaurants"],
)
async def get_restaurant(restaurant_id: int, storage: BaseStorage = Depends(get_storage)):
    restaurant = await storage.get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


@app.post(
    "/api/restaurants",
    response_model=RestaurantResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    tags=["Restaurants"],
)
async def create_restaurant(
    restaurant: RestaurantCreate,
    storage: BaseStorage = Depends(get_storage),
):
    created = await storage.create_restaurant(restaurant)
    logger.info(f"Restaurant #{created.id} created: {created.name}")
    return created


# =============================================================================
# MENU ITEM ENDPOINTS
# =============================================================================

@app.get(
    "/api/restaurants/{restaurant_id}/menu-items",
    response_model=List[MenuItemResponse],
    tags=["Menu"],
)
async def list_menu_items(restaurant_id: int, storage: BaseStorage = Depends(get_storage)):
    return await storage.get_menu_items(restaurant_id)


@app.post(
    "/api/restaurants/{restaurant_id}/menu-items",
    response_model=MenuItemResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def create_menu_item(
    restaurant_id: int,
    item: MenuItemCreate,
    storage: BaseStorage = Depends(get_storage),
):
    if await storage.get_restaurant(restaurant_id) is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    created = await storage.create_menu_item(
        MenuItemInsert(restaurant_id=restaurant_id, **item.model_dump())
    )
    logger.info(f"Menu item #{created.id} added to restaurant #{restaurant_id}: {created.name}")
    return created


@app.get(
    "/api/menu-items/{item_id}",
    response_model=MenuItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def get_menu_item(item_id: int, storage: BaseStorage = Depends(get_storage)):
    item = await storage.get_menu_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return item


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.get(
    "/api/orders",
    response_model=List[OrderDetailResponse],
    tags=["Orders"],
)
async def list_orders(storage: BaseStorage = Depends(get_storage)):
    """All orders, newest first, with their items and menu items."""
    return await storage.get_orders()


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderDetailResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(order_id: int, storage: BaseStorage = Depends(get_storage)):
    order = await storage.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.post(
    "/api/orders",
    response_model=OrderDetailResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def create_order(
    order_data: OrderCreate,
    storage: BaseStorage = Depends(get_storage),
):
    """
    Place an order.

    Prices come from the menu at the time of the request; unknown menu items
    are skipped. The order is assigned to the configured default user and
    starts as "pending".
    """
    total_amount, lines = await price_order_items(storage, order_data.items)

    order = await storage.create_order(
        OrderInsert(
            user_id=settings.default_user_id,
            total_amount=total_amount,
            status=OrderStatusEnum.PENDING,
        ),
        lines,
    )

    logger.info(
        f"Order #{order.id} created: {len(lines)}/{len(order_data.items)} item(s), "
        f"total {order.total_amount}"
    )
    return await storage.get_order(order.id)


@app.patch(
    "/api/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    storage: BaseStorage = Depends(get_storage),
):
    order = await storage.update_order_status(order_id, update.status.value)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    logger.info(f"Order #{order_id} status -> {order.status}")
    return order


# =============================================================================
# CHAT ENDPOINTS
# =============================================================================

@app.post(
    "/api/chat/webhook",
    response_model=WebhookAck,
    tags=["Chat"],
    summary="Chat Provider Webhook",
)
async def chat_webhook(
    request: Request,
    storage: BaseStorage = Depends(get_storage),
) -> WebhookAck:
    """
    Receive a message notification from the chat provider.

    The payload is logged as-is and not interpreted; every call records the
    same placeholder incoming chat log entry.
    """
    body = await request.body()
    try:
        payload: Any = json.loads(body) if body else None
    except ValueError:
        payload = body.decode("utf-8", errors="replace")

    logger.info(f"Chat webhook received: {json.dumps(payload, indent=2, default=str)}")

    await storage.create_chat_log(ChatLogCreate(
        phone_number=WEBHOOK_PHONE_NUMBER,
        message=WEBHOOK_MESSAGE,
        direction=ChatDirectionEnum.INCOMING,
    ))

    return WebhookAck()


@app.get(
    "/api/chat/logs",
    response_model=List[ChatLogResponse],
    tags=["Chat"],
)
async def list_chat_logs(storage: BaseStorage = Depends(get_storage)):
    return await storage.get_chat_logs()


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report the first validation failure as a 400."""
    message = first_error_message(exc)
    logger.debug(f"Validation failed on {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "message": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kitchen_orders.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )

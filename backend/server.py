from fastapi import FastAPI, APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
import os
import logging
import secrets
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional, Union

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from sarisari import SariSariSystem
from sarisari.accounts import LoginRequest, RegisterRequest, VerifyCodeRequest
from sarisari.analytics import inventory_csv, inventory_pdf
from sarisari.config import database as database_config, server as server_config, sessions as session_config
from sarisari.database import connect, ensure_indexes
from sarisari.errors import NotFound, SariSariError
from sarisari.models import Store, StoreSettings, User

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


# ============== Request Models ==============

class ResendCodeRequest(BaseModel):
    email: str


class SwapRequest(BaseModel):
    ids: List[str] = []


class MassDeleteRequest(BaseModel):
    ids: Union[str, List[str]] = []


class ReplyRequest(BaseModel):
    guest_id: str
    content: str = Field(..., min_length=1)


class AddToCartRequest(BaseModel):
    item_id: str
    quantity: int = 1


class GuestMessageRequest(BaseModel):
    guest_id: str
    content: str = Field(..., min_length=1)


class AiChatRequest(BaseModel):
    guest_id: str
    input: str = Field(..., min_length=1)


# ============== Dependencies ==============

def get_system(request: Request) -> SariSariSystem:
    return request.app.state.system


def get_session_token(request: Request) -> Optional[str]:
    """Session token from the cookie or a Bearer header"""
    session_token = request.cookies.get(session_config.session_cookie)
    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header.split(" ")[1]
    return session_token


async def get_current_user(request: Request, system: SariSariSystem = Depends(get_system)) -> Optional[User]:
    return await system.accounts.get_user_by_session(get_session_token(request))


async def require_auth(user: Optional[User] = Depends(get_current_user)) -> User:
    """Dependency that requires authentication"""
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def get_seller_store(user: User = Depends(require_auth),
                           system: SariSariSystem = Depends(get_system)) -> Store:
    return await system.stores.get_or_create_for_owner(user)


def get_cart_session(request: Request, response: Response) -> str:
    """Visitor cart session id, issued on first use.

    The cookie is re-sent on every request so its max-age slides along with
    the cart's idle expiry.
    """
    session_id = request.cookies.get(session_config.cart_cookie)
    if not session_id:
        session_id = secrets.token_urlsafe(24)
    response.set_cookie(
        key=session_config.cart_cookie,
        value=session_id,
        httponly=True,
        samesite="lax",
        max_age=session_config.cart_idle_minutes * 60,
    )
    return session_id


async def require_shop_store(store_id: str, system: SariSariSystem = Depends(get_system)) -> Store:
    store = await system.stores.get(store_id)
    if store is None:
        raise NotFound("Store not found.")
    return store


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=session_config.session_cookie,
        value=token,
        httponly=True,
        secure=True,
        samesite="none",
        path="/",
        max_age=session_config.session_expiry_days * 24 * 60 * 60,
    )


# ============== Authentication Endpoints ==============

@api_router.get("/")
async def root():
    return {"message": "Sari-Sari Store API"}


@api_router.get("/status")
async def get_status(system: SariSariSystem = Depends(get_system)):
    return system.get_status()


@api_router.post("/auth/register")
async def register(payload: RegisterRequest, system: SariSariSystem = Depends(get_system)):
    user = await system.accounts.register(payload)
    return {"success": True, "needs_verification": True, "email": user.email}


@api_router.post("/auth/login")
async def login(payload: LoginRequest, response: Response, system: SariSariSystem = Depends(get_system)):
    result = await system.accounts.login(payload)
    if not result.success:
        response.status_code = 401
        body = {"success": False, "message": result.message}
        if result.needs_verification:
            body.update({"needs_verification": True, "email": result.user.email})
        return body

    _set_session_cookie(response, result.session_token)
    return {"success": True, "redirect_url": result.redirect_url, "session_token": result.session_token}


@api_router.post("/auth/verify")
async def verify_code(payload: VerifyCodeRequest, response: Response,
                      system: SariSariSystem = Depends(get_system)):
    result = await system.accounts.verify_code(payload)
    if not result.success:
        return {"success": False, "message": result.message}
    _set_session_cookie(response, result.session_token)
    return {"success": True, "redirect_url": result.redirect_url, "session_token": result.session_token}


@api_router.post("/auth/resend")
async def resend_code(payload: ResendCodeRequest, system: SariSariSystem = Depends(get_system)):
    await system.accounts.resend_code(payload.email)
    return {"success": True, "message": "New code sent."}


@api_router.get("/auth/me")
async def get_me(user: User = Depends(require_auth)):
    return user.model_dump()


@api_router.post("/auth/logout")
async def logout(request: Request, response: Response, system: SariSariSystem = Depends(get_system)):
    await system.accounts.logout(get_session_token(request))
    response.delete_cookie(key=session_config.session_cookie, path="/")
    return {"success": True}


# ============== Seller Dashboard Endpoints ==============

@api_router.get("/dash")
async def get_dashboard(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    items = await system.inventory.list_items(store.id)
    return {"store": store.model_dump(), "items": [i.public() for i in items]}


@api_router.put("/dash/store")
async def update_store(settings: StoreSettings, user: User = Depends(require_auth),
                       system: SariSariSystem = Depends(get_system)):
    store = await system.stores.update_settings(user, settings)
    return {"success": True, "message": "Store updated!", "store": store.model_dump()}


async def _read_logo(logo: Optional[UploadFile]):
    if logo is None or not logo.filename:
        return None, None
    data = await logo.read()
    if not data:
        return None, None
    return data, logo.content_type


@api_router.post("/dash/items")
async def add_item(
    name: str = Form(...),
    category: str = Form("General"),
    quantity: int = Form(0),
    price: float = Form(0),
    cost_price: float = Form(0),
    logo: Optional[UploadFile] = File(None),
    store: Store = Depends(get_seller_store),
    system: SariSariSystem = Depends(get_system),
):
    logo_data, content_type = await _read_logo(logo)
    item = await system.inventory.add_item(
        store.id,
        {"name": name, "category": category, "quantity": quantity, "price": price, "cost_price": cost_price},
        logo_data, content_type,
    )
    return item.public()


@api_router.put("/dash/items/{item_id}")
async def edit_item(
    item_id: str,
    name: str = Form(...),
    category: str = Form("General"),
    quantity: int = Form(0),
    price: float = Form(0),
    cost_price: float = Form(0),
    logo: Optional[UploadFile] = File(None),
    store: Store = Depends(get_seller_store),
    system: SariSariSystem = Depends(get_system),
):
    logo_data, content_type = await _read_logo(logo)
    item = await system.inventory.edit_item(
        store.id, item_id,
        {"name": name, "category": category, "quantity": quantity, "price": price, "cost_price": cost_price},
        logo_data, content_type,
    )
    return item.public()


@api_router.delete("/dash/items/{item_id}")
async def delete_item(item_id: str, store: Store = Depends(get_seller_store),
                      system: SariSariSystem = Depends(get_system)):
    deleted = await system.positions.delete(store.id, item_id)
    return {"deleted": 1 if deleted else 0}


@api_router.post("/dash/items/mass-delete")
async def mass_delete_items(payload: MassDeleteRequest, store: Store = Depends(get_seller_store),
                            system: SariSariSystem = Depends(get_system)):
    deleted = await system.positions.mass_delete(store.id, payload.ids)
    return {"deleted": deleted}


@api_router.post("/dash/items/swap")
async def swap_items(payload: SwapRequest, store: Store = Depends(get_seller_store),
                     system: SariSariSystem = Depends(get_system)):
    swapped = await system.positions.swap(store.id, payload.ids)
    return {"swapped": swapped}


@api_router.post("/dash/items/reindex")
async def reindex_items(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    writes = await system.positions.reindex(store.id)
    return {"updated": writes}


@api_router.post("/dash/seed")
async def seed_inventory(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    created = await system.insights.seed_inventory(store)
    return {"created": len(created), "items": [i.public() for i in created]}


@api_router.get("/dash/insight")
async def get_ai_insight(mode: str = "summary", input: str = "",
                         store: Store = Depends(get_seller_store),
                         system: SariSariSystem = Depends(get_system)):
    message = await system.insights.insight(store, mode, input)
    return {"message": message}


@api_router.get("/dash/messages")
async def fetch_messages(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    messages = await system.chat.store_messages(store.id)
    return {"messages": [m.model_dump() for m in messages]}


@api_router.post("/dash/messages/reply")
async def reply_message(payload: ReplyRequest, store: Store = Depends(get_seller_store),
                        system: SariSariSystem = Depends(get_system)):
    await system.chat.reply_as_seller(store.id, payload.guest_id, payload.content)
    return {"success": True}


@api_router.get("/dash/notifications")
async def fetch_notifications(store: Store = Depends(get_seller_store),
                              system: SariSariSystem = Depends(get_system)):
    notifications = await system.notifications.get_unread(store.id)
    return {"notifications": system.notifications.serialize(notifications)}


@api_router.post("/dash/notifications/clear")
async def clear_notifications(store: Store = Depends(get_seller_store),
                              system: SariSariSystem = Depends(get_system)):
    await system.notifications.mark_all_read(store.id)
    return {"success": True}


# ============== Report Endpoints ==============

@api_router.get("/reports")
async def get_report(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    return await system.reports.generate_store_report(store)


@api_router.post("/reports/analyze")
async def analyze_report(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    result = await system.insights.analyze(store)
    return {
        "success": result.ok,
        "message": result.message,
        "report": result.report.model_dump() if result.report else None,
    }


@api_router.post("/reports/seed-history")
async def seed_history(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    created = await system.reports.seed_history(store.id)
    return {"created": created}


@api_router.get("/reports/export/csv")
async def export_csv(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    items = await system.inventory.list_items(store.id)
    return Response(
        content=inventory_csv(items),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="inventory.csv"'},
    )


@api_router.get("/reports/export/pdf")
async def export_pdf(store: Store = Depends(get_seller_store), system: SariSariSystem = Depends(get_system)):
    items = await system.inventory.list_items(store.id)
    _, orders = await system.reports.load(store.id)
    kpis = system.reports.calculate_kpis(orders)
    return Response(
        content=inventory_pdf(store, items, kpis),
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="inventory.pdf"'},
    )


@api_router.get("/items/{item_id}/logo")
async def get_item_logo(item_id: str, system: SariSariSystem = Depends(get_system)):
    item = await system.inventory.get_logo(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Logo not found")
    return Response(content=item.logo_data, media_type=item.logo_content_type or "application/octet-stream")


# ============== Storefront Endpoints ==============

@api_router.get("/shop")
async def marketplace(user: Optional[User] = Depends(get_current_user), system: SariSariSystem = Depends(get_system)):
    stores = await system.stores.list_marketplace(user)
    return {"view": "marketplace", "stores": [s.model_dump(exclude={"report"}) for s in stores]}


@api_router.get("/shop/search")
async def search(q: str = "", store_id: Optional[str] = None, system: SariSariSystem = Depends(get_system)):
    items = await system.storefront.search(q, store_id)
    return {"view": "search_results", "items": [i.public() for i in items]}


@api_router.get("/shop/suggestions")
async def search_suggestions(term: str = "", store_id: Optional[str] = None,
                             system: SariSariSystem = Depends(get_system)):
    return await system.storefront.suggestions(term, store_id)


@api_router.get("/shop/{store_id}")
async def store_catalog(sort: Optional[str] = None, min_price: Optional[float] = None,
                        max_price: Optional[float] = None,
                        store: Store = Depends(require_shop_store),
                        system: SariSariSystem = Depends(get_system)):
    items = await system.storefront.catalog(store.id, sort, min_price, max_price)
    return {
        "view": "shop",
        "store": store.model_dump(exclude={"report"}),
        "items": [i.public() for i in items],
    }


@api_router.get("/shop/{store_id}/cart")
async def view_cart(store: Store = Depends(require_shop_store), session_id: str = Depends(get_cart_session),
                    system: SariSariSystem = Depends(get_system)):
    details, total = await system.cart.load_cart(session_id, store.id)
    return {
        "view": "cart",
        "items": [dict(d.model_dump(), total=d.total) for d in details],
        "grand_total": total,
    }


@api_router.post("/shop/{store_id}/cart")
async def add_to_cart(payload: AddToCartRequest, store: Store = Depends(require_shop_store),
                      session_id: str = Depends(get_cart_session),
                      system: SariSariSystem = Depends(get_system)):
    count = await system.cart.add_to_cart(session_id, store.id, payload.item_id, payload.quantity)
    return {"success": True, "count": count}


@api_router.post("/shop/{store_id}/checkout")
async def checkout(store: Store = Depends(require_shop_store), session_id: str = Depends(get_cart_session),
                   user: Optional[User] = Depends(get_current_user),
                   system: SariSariSystem = Depends(get_system)):
    result = await system.checkout.checkout(session_id, store.id, user.username if user else None)
    if result.status == 'empty':
        return {"success": False, "message": result.message, "redirect": f"/shop/{store.id}?view=shop"}
    if not result.ok:
        return {
            "success": False,
            "message": result.message,
            "short_items": result.short_items,
            "redirect": f"/shop/{store.id}?view=cart",
        }
    return {
        "success": True,
        "order_id": result.order.id,
        "order_code": result.order.order_code,
        "redirect": f"/shop/{store.id}?view=receipt&orderId={result.order.id}",
    }


@api_router.get("/shop/{store_id}/orders/{order_id}")
async def get_receipt(order_id: str, store: Store = Depends(require_shop_store),
                      system: SariSariSystem = Depends(get_system)):
    order = await system.checkout.get_receipt(store.id, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"view": "receipt", "order": order.model_dump()}


@api_router.post("/shop/{store_id}/messages")
async def send_user_message(payload: GuestMessageRequest, store: Store = Depends(require_shop_store),
                            system: SariSariSystem = Depends(get_system)):
    await system.chat.send_user_message(store.id, payload.guest_id, payload.content)
    return {"success": True}


@api_router.get("/shop/{store_id}/messages")
async def check_messages(guest_id: str, store: Store = Depends(require_shop_store),
                         system: SariSariSystem = Depends(get_system)):
    messages = await system.chat.conversation(store.id, guest_id)
    return {"messages": [m.model_dump() for m in messages]}


@api_router.post("/shop/{store_id}/chat")
async def ai_chat(payload: AiChatRequest, store: Store = Depends(require_shop_store),
                  system: SariSariSystem = Depends(get_system)):
    reply = await system.chat.ai_chat(store.id, payload.guest_id, payload.input)
    return {"reply": reply.reply, "handoff": reply.handoff}


# ============== Application ==============

def create_app(system: Optional[SariSariSystem] = None) -> FastAPI:
    """Build the app. A system is created against MongoDB on startup unless one is given."""
    app = FastAPI(title="Sari-Sari Store API")
    app.state.system = system
    app.state.mongo_client = None

    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=server_config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SariSariError)
    async def handle_domain_error(request: Request, exc: SariSariError):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.message})

    @app.exception_handler(PyMongoError)
    async def handle_database_error(request: Request, exc: PyMongoError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.on_event("startup")
    async def startup_event():
        logger.info("Server starting up...")
        if app.state.system is None:
            client = connect(database_config)
            app.state.mongo_client = client
            app.state.system = SariSariSystem(client[database_config.db_name])
        try:
            await ensure_indexes(app.state.system.db)
        except PyMongoError as e:
            logger.warning(f"Could not create indexes: {e}")
        logger.info("Server startup complete")

    @app.on_event("shutdown")
    async def shutdown_db_client():
        if app.state.mongo_client is not None:
            app.state.mongo_client.close()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8001")))

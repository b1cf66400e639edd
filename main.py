from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field

import catalog
import order_status
import reports
from cart import CartEngine
from checkout import checkout as run_checkout
from config import get_settings
from database import connect, create_document, oid
from errors import Conflict, Forbidden, NotFound, OrderingError, StorageUnavailable, Unauthenticated
from logger import configure_logging, get_logger
from notifications import NoticeCollector
from repositories import MongoCartStore, MongoOrderRepository, MongoProductRepository
from schemas import Identity, OrderStatus, Role, User as UserSchema

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger("api")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

app = FastAPI(title="B2B Ordering API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderingError)
async def ordering_error_handler(request, exc: OrderingError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Dependencies
def get_db():
    database = connect()
    if database is None:
        raise StorageUnavailable("Database not available")
    return database


def current_identity(x_user_id: Optional[str] = Header(None), db=Depends(get_db)) -> Optional[Identity]:
    if not x_user_id:
        return None
    _id = oid(x_user_id)
    doc = db["user"].find_one({"_id": _id}) if _id else None
    if not doc:
        return None
    return Identity(id=str(doc["_id"]), name=doc.get("name", ""), role=doc.get("role"))


def require_identity(identity: Optional[Identity] = Depends(current_identity)) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


def require_client(identity: Identity = Depends(require_identity)) -> Identity:
    if identity.role != Role.CLIENT:
        raise Forbidden("Only clients have a cart.")
    return identity


def require_supplier(identity: Identity = Depends(require_identity)) -> Identity:
    if identity.role != Role.SUPPLIER:
        raise Forbidden("Only suppliers can do that.")
    return identity


def product_repo(db=Depends(get_db)) -> MongoProductRepository:
    return MongoProductRepository(db)


def order_repo(db=Depends(get_db)) -> MongoOrderRepository:
    return MongoOrderRepository(db)


def cart_engine(identity: Identity = Depends(require_client), db=Depends(get_db)) -> CartEngine:
    return CartEngine(MongoCartStore(db), identity.id, NoticeCollector())


def cart_view(engine: CartEngine) -> dict:
    subtotal = engine.cart_total
    tax = round(subtotal * settings.tax_rate / 100, 2)
    return {
        "items": [line.model_dump(mode="json") for line in engine.cart.items],
        "supplier_id": engine.cart.supplier_id,
        "item_count": engine.item_count,
        "subtotal": subtotal,
        "tax_rate": settings.tax_rate,
        "tax": tax,
        "total": round(subtotal + tax, 2),
        "notices": [n.model_dump(mode="json") for n in engine.notifier.notices],
    }


# Request bodies
class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    role: Role


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ProductCreate(BaseModel):
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    stock_quantity: int = Field(0, ge=0)
    moq: int = Field(1, ge=1)
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    moq: Optional[int] = Field(None, ge=1)
    image_url: Optional[str] = None


class AddToCart(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateQuantity(BaseModel):
    quantity: int


class StatusChange(BaseModel):
    status: OrderStatus


# Health
@app.get("/")
def read_root():
    return {"message": "B2B Ordering Backend running"}


@app.get("/test")
def test_database():
    try:
        db = connect()
        collections = db.list_collection_names() if db is not None else []
        return {"backend": "ok", "db": "ok" if db is not None else "not_configured", "collections": collections}
    except Exception as e:
        return {"backend": "ok", "db": f"error: {str(e)[:80]}"}


# Auth (sessionless - callers send the returned id as X-User-Id)
@app.post("/api/auth/register")
def register(user: UserCreate, db=Depends(get_db)):
    if db["user"].find_one({"email": user.email}):
        raise Conflict("Email already registered")
    password_hash = pwd_context.hash(user.password)
    user_doc = UserSchema(name=user.name, email=user.email, password_hash=password_hash, role=user.role)
    user_id = create_document(db, "user", user_doc)
    logger.info("Registered %s user %s", user.role.value, user_id)
    return {"user_id": user_id, "name": user.name, "email": user.email, "role": user.role.value}


@app.post("/api/auth/login")
def login(creds: UserLogin, db=Depends(get_db)):
    doc = db["user"].find_one({"email": creds.email})
    if not doc or not pwd_context.verify(creds.password, doc.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"user_id": str(doc["_id"]), "name": doc.get("name"), "email": doc.get("email"), "role": doc.get("role")}


# Products
@app.get("/api/products")
def list_products(products=Depends(product_repo)):
    return catalog.browse(products)


@app.get("/api/products/mine")
def my_products(supplier: Identity = Depends(require_supplier), products=Depends(product_repo)):
    return catalog.supplier_products(products, supplier)


@app.get("/api/products/{product_id}")
def get_product(product_id: str, products=Depends(product_repo)):
    return catalog.get_product(products, product_id)


@app.post("/api/products", status_code=201)
def create_product(p: ProductCreate, supplier: Identity = Depends(require_supplier),
                   products=Depends(product_repo)):
    return catalog.create_product(products, supplier, p.model_dump())


@app.put("/api/products/{product_id}")
def update_product(product_id: str, p: ProductUpdate, supplier: Identity = Depends(require_supplier),
                   products=Depends(product_repo)):
    return catalog.update_product(products, supplier, product_id, p.model_dump(exclude_unset=True))


@app.delete("/api/products/{product_id}", status_code=204)
def delete_product(product_id: str, supplier: Identity = Depends(require_supplier),
                   products=Depends(product_repo)):
    catalog.delete_product(products, supplier, product_id)


# Cart
@app.get("/api/cart")
def get_cart(engine: CartEngine = Depends(cart_engine)):
    return cart_view(engine)


@app.post("/api/cart/items")
def add_to_cart(payload: AddToCart, engine: CartEngine = Depends(cart_engine),
                products=Depends(product_repo)):
    product = catalog.get_product(products, payload.product_id)
    result = engine.add_to_cart(product, payload.quantity)
    return dict(cart_view(engine), outcome=result.outcome.value)


@app.put("/api/cart/items/{product_id}")
def update_cart_item(product_id: str, payload: UpdateQuantity, engine: CartEngine = Depends(cart_engine)):
    result = engine.update_quantity(product_id, payload.quantity)
    return dict(cart_view(engine), outcome=result.outcome.value)


@app.delete("/api/cart/items/{product_id}")
def remove_cart_item(product_id: str, engine: CartEngine = Depends(cart_engine)):
    result = engine.remove_from_cart(product_id)
    return dict(cart_view(engine), outcome=result.outcome.value)


@app.delete("/api/cart")
def clear_cart(engine: CartEngine = Depends(cart_engine)):
    result = engine.clear_cart()
    return dict(cart_view(engine), outcome=result.outcome.value)


# Checkout -> one order per supplier in the cart
@app.post("/api/checkout")
def checkout(identity: Identity = Depends(require_client), engine: CartEngine = Depends(cart_engine),
             orders=Depends(order_repo)):
    result = run_checkout(engine, identity, orders)
    if result.ok:
        status = "created"
    elif result.partial:
        status = "partial"
    else:
        status = "failed"
    body = {
        "status": status,
        "orders_created": result.orders_created,
        "partitions": [dict(p._asdict(), ok=p.ok) for p in result.partitions],
        "cart": cart_view(engine),
    }
    if status == "failed":
        return JSONResponse(status_code=503, content=body)
    return body


# Orders
@app.get("/api/orders")
def list_orders(identity: Identity = Depends(require_identity), orders=Depends(order_repo)):
    field = "client_id" if identity.role == Role.CLIENT else "supplier_id"
    return orders.list_by(field, identity.id)


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, identity: Identity = Depends(require_identity), orders=Depends(order_repo)):
    order = orders.get(order_id)
    if order is None:
        raise NotFound("Order not found.")
    if identity.id not in (order.client_id, order.supplier_id):
        raise Forbidden("This order belongs to someone else.")
    return dict(order.model_dump(), allowed_transitions=_choices(order.status, identity, order.supplier_id))


@app.patch("/api/orders/{order_id}/status")
def change_status(order_id: str, payload: StatusChange, identity: Identity = Depends(require_identity),
                  orders=Depends(order_repo)):
    order = order_status.set_status(orders, order_id, payload.status, identity)
    return dict(order.model_dump(), allowed_transitions=_choices(order.status, identity, order.supplier_id))


def _choices(status, identity: Identity, supplier_id: str) -> List[str]:
    # Clients only ever see the status, never the choices
    if identity.id != supplier_id:
        return []
    return sorted(s.value for s in order_status.allowed_transitions(status))


# Reports
@app.get("/api/reports/dashboard")
def dashboard(supplier: Identity = Depends(require_supplier), orders=Depends(order_repo),
              products=Depends(product_repo)):
    return reports.supplier_dashboard(orders, products, supplier)


@app.get("/api/reports/clients")
def client_report(supplier: Identity = Depends(require_supplier), orders=Depends(order_repo)):
    return [s._asdict() for s in reports.aggregate_clients(orders.list_by("supplier_id", supplier.id))]


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)

"""FastAPI application factory for the ordering service."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import cart_router, order_router
from ordering.domain import ordering
from ordering.utils.logging import add_context, clear_context

_DOMAIN_PREFIXES = ("/cart", "/orders")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Local Eats Ordering API",
        description="Cart, checkout and order lifecycle",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and bind request fields onto log lines."""
        if not request.url.path.startswith(_DOMAIN_PREFIXES):
            return await call_next(request)

        clear_context()
        add_context(path=request.url.path, method=request.method, user_id=request.headers.get("x-user-id"))
        with ordering.domain_context():
            response = await call_next(request)
        return response

    app.include_router(cart_router)
    app.include_router(order_router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": ordering.name})

    return app

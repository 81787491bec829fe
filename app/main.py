from fastapi import FastAPI

from app.middleware.rate_limit import RateLimitMiddleware

from .error_handlers import register_error_handlers
from .routes import alternatives, health

app = FastAPI(title="SwapFit")

register_error_handlers(app)
app.add_middleware(RateLimitMiddleware)

app.include_router(health.router)
app.include_router(alternatives.router)

"""Per-client inbound rate limiting."""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from fundbadge.ingestion.rate_limiter import RateLimiterRegistry


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token bucket per client IP. Allow-listed hosts bypass the limit."""

    def __init__(
        self,
        app,
        registry: RateLimiterRegistry,
        allow_list: tuple[str, ...] = ("127.0.0.1",),
    ) -> None:
        super().__init__(app)
        self.registry = registry
        self.allow_list = allow_list

    async def dispatch(self, request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        if client in self.allow_list:
            return await call_next(request)

        limiter = self.registry.get(client)
        limit = str(self.registry.max_requests)

        if not limiter.try_acquire():
            retry_after = str(limiter.retry_after)
            return JSONResponse(
                status_code=429,
                content={"error": {"message": "Too Many Requests", "status_code": 429}},
                headers={
                    "x-ratelimit-limit": limit,
                    "x-ratelimit-remaining": "0",
                    "x-ratelimit-reset": retry_after,
                    "retry-after": retry_after,
                },
            )

        response = await call_next(request)
        response.headers["x-ratelimit-limit"] = limit
        response.headers["x-ratelimit-remaining"] = str(limiter.remaining)
        return response

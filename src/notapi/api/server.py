"""
HTTP gateway server.

Wires the request pipeline together: request context, access filter,
execution queue, provider registry, notification sink and keep-alive
scheduler. Also owns the lifecycle of the Discord bot that shares the
process.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import AsyncIterator, Optional

from aiohttp import web

from notapi.api.access import AccessDecision, AccessFilter
from notapi.api.context import RequestContextBuilder, context_middleware, get_context
from notapi.api.pages import INDEX, NOT_FOUND, render_page
from notapi.bot.channel import DiscordChannel
from notapi.bot.client import NotAPIBot
from notapi.config import AppConfig
from notapi.pipeline.keepalive import KeepAliveScheduler
from notapi.pipeline.notify import NotificationSink
from notapi.pipeline.queue import QUEUE_CONCURRENCY, ExecutionQueue
from notapi.providers.lyrics import GeniusClient
from notapi.providers.registry import ProviderRegistry
from notapi.providers.spamwatch import SpamWatchClient
from notapi.utils.logging import get_logger, log_operation_timing

API_PARAMETERS = ("en", "de", "id", "q")

CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "content-type",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
}


class Gateway:
    """
    The /api/{name} request handler and its collaborators.

    Attributes:
        access: Blacklist filter applied before queueing
        queue: Process-wide execution queue
        registry: Provider dispatch
        sink: Operator audit channel
        scheduler: Keep-alive scheduler suspended around notifications
    """

    def __init__(
        self,
        access: AccessFilter,
        queue: ExecutionQueue,
        registry: ProviderRegistry,
        sink: NotificationSink,
        scheduler: KeepAliveScheduler,
    ) -> None:
        self.access = access
        self.queue = queue
        self.registry = registry
        self.sink = sink
        self.scheduler = scheduler
        self.logger = get_logger(__name__)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        context = get_context(request)

        decision = self.access.check(context)
        if decision is AccessDecision.FORBIDDEN:
            return web.Response(status=403, text="Bot not allowed.")
        if decision is AccessDecision.FALL_THROUGH:
            return render_page(NOT_FOUND, status=404)

        name = request.match_info["api"]
        params = {key: request.query[key] for key in API_PARAMETERS if request.query.get(key)}

        with log_operation_timing("provider_invocation", provider=name, ip=context.ip):
            result = await self.queue.submit(lambda: self.registry.invoke(name, params))

        if not result.is_recognized:
            raise web.HTTPFound(location="/")

        payload = result.to_payload()
        async with self.scheduler.suspended():
            await self.sink.notify(name, payload, context)

        response = web.json_response(payload)
        response.headers.update(CORS_HEADERS)
        set_no_cache(response)
        return response


def set_no_cache(response: web.StreamResponse) -> None:
    expired = datetime.now(timezone.utc) - timedelta(days=365)
    response.headers["Expires"] = format_datetime(expired, usegmt=True)
    response.headers["Pragma"] = "no-cache"
    response.headers["Cache-Control"] = "public, no-cache"


async def index(request: web.Request) -> web.Response:
    return render_page(INDEX)


async def not_found(request: web.Request) -> web.Response:
    return render_page(NOT_FOUND, status=404)


CONFIG_KEY = web.AppKey("config", AppConfig)
GATEWAY_KEY = web.AppKey("gateway", Gateway)
BOT_KEY = web.AppKey("bot", object)
CONTEXT_BUILDER_KEY = web.AppKey("context_builder", RequestContextBuilder)


async def _bot_lifecycle(app: web.Application) -> AsyncIterator[None]:
    bot: Optional[NotAPIBot] = app[BOT_KEY]
    config = app[CONFIG_KEY]
    logger = get_logger(__name__)
    task: Optional[asyncio.Task] = None

    if bot is None:
        logger.warning("No Discord token configured, bot and audit channel disabled")
    else:
        await bot.setup()
        task = asyncio.create_task(bot.start(config.discord.token))

        def _report(finished: asyncio.Task) -> None:
            if not finished.cancelled() and finished.exception() is not None:
                logger.error("Discord bot stopped", error=str(finished.exception()))

        task.add_done_callback(_report)

    yield

    if bot is not None:
        await bot.close()
    if task is not None and not task.done():
        task.cancel()


async def _scheduler_lifecycle(app: web.Application) -> AsyncIterator[None]:
    config = app[CONFIG_KEY]
    scheduler = app[GATEWAY_KEY].scheduler
    if config.is_production:
        scheduler.start()
        scheduler.resume()

    yield

    scheduler.stop()


async def _on_cleanup(app: web.Application) -> None:
    await app[GATEWAY_KEY].registry.close()
    app[CONTEXT_BUILDER_KEY].close()


def create_app(
    config: AppConfig,
    *,
    registry: Optional[ProviderRegistry] = None,
    sink: Optional[NotificationSink] = None,
    scheduler: Optional[KeepAliveScheduler] = None,
    bot: Optional[NotAPIBot] = None,
    context_builder: Optional[RequestContextBuilder] = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Collaborators default to the production ones built from ``config``;
    tests pass their own.

    Args:
        config: Application configuration
        registry: Provider registry
        sink: Notification sink
        scheduler: Keep-alive scheduler
        bot: Discord bot; built from the token when omitted and one is set
        context_builder: Request context builder

    Returns:
        The configured application
    """
    if bot is None and sink is None and config.discord.token:
        bot = NotAPIBot(config)

    if registry is None:
        registry = ProviderRegistry(
            config.providers,
            spamwatch=SpamWatchClient(config.spamwatch),
            genius=GeniusClient(config.genius),
        )
    if sink is None:
        sink = NotificationSink(
            DiscordChannel(bot),
            config.discord.log_channel_id if bot is not None else None,
        )
    if scheduler is None:
        scheduler = KeepAliveScheduler(config.keepalive)
    if context_builder is None:
        context_builder = RequestContextBuilder(config.geoip, trust_proxy=config.server.trust_proxy)

    gateway = Gateway(
        access=AccessFilter.from_config(config.access),
        queue=ExecutionQueue(QUEUE_CONCURRENCY),
        registry=registry,
        sink=sink,
        scheduler=scheduler,
    )

    app = web.Application(middlewares=[context_middleware(context_builder)])
    app[CONFIG_KEY] = config
    app[GATEWAY_KEY] = gateway
    app[BOT_KEY] = bot
    app[CONTEXT_BUILDER_KEY] = context_builder

    app.router.add_get("/", index)
    app.router.add_get("/api/{api}", gateway.handle)
    app.router.add_route("*", "/{tail:.*}", not_found)

    app.cleanup_ctx.append(_bot_lifecycle)
    app.cleanup_ctx.append(_scheduler_lifecycle)
    app.on_cleanup.append(_on_cleanup)
    return app

from relaybot import settings  # load .env
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager

from relaybot.context import build_context
from relaybot.logger import get_logger
from relaybot.session import build_session
from relaybot.settings import (
    validate_data_settings,
    validate_irc_settings,
    validate_tracker_settings,
)
from relaybot.tracker.webhook import handle_tracker_event


logger = get_logger("relaybot.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Validate critical configuration early
    validate_irc_settings()
    validate_tracker_settings()
    validate_data_settings()

    ctx = build_context()
    lifecycle = build_session(ctx)

    app.state.ctx = ctx
    app.state.lifecycle = lifecycle

    # Startup: IRC session runs on the same loop as the webhook receiver
    lifecycle.start()
    logger.info("IRC session started (%s mode)", settings.RECONNECT_MODE)

    try:
        yield
    finally:
        await lifecycle.stop()
        logger.info("IRC session stopped")


async def tracker_webhook(request: Request):
    body = await request.body()

    ctx = request.app.state.ctx
    lifecycle = request.app.state.lifecycle

    handle_tracker_event(
        body,
        channel=ctx.channel,
        browse_url=ctx.browse_url,
        projects=ctx.projects,
        send=lifecycle.send_reply,
    )

    # Always 200: the tracker does not act on the answer
    return PlainTextResponse(
        f"You requested {request.url.path}",
        headers={"Server": settings.WEBHOOK_SERVER_HEADER},
    )


def create_app(webhook_path: str = settings.WEBHOOK_PATH) -> FastAPI:
    app = FastAPI(lifespan=lifespan)
    app.add_api_route(webhook_path, tracker_webhook, methods=["POST"])
    return app


app = create_app()


# Makes `python -m relaybot.main` start the bot and the webhook receiver
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "relaybot.main:app",
        host=settings.WEBHOOK_HOST,
        port=settings.WEBHOOK_PORT,
        reload=False,
        server_header=False,
    )

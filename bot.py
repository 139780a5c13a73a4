"""
Bot Framework channel for the support dialog.

SupportBot answers message activities through the shared DialogRouter; the
adapter authenticates inbound activities with the bot's app credentials and
delivers replies through the channel connector.
"""
from botbuilder.core import (
    ActivityHandler,
    BotFrameworkAdapter,
    BotFrameworkAdapterSettings,
    TurnContext,
)
from botbuilder.schema import Activity, DeliveryModes

from core.settings import Settings
from flows import DialogRouter
from utils.logger import get_logger
from utils.replies import EMPTY_MESSAGE_REPLY, GENERIC_ERROR_REPLY
from utils.session_store import new_session_id

logger = get_logger(__name__)


class SupportBot(ActivityHandler):
    """Routes each message activity to the dialog keyed by its conversation id."""

    def __init__(self, router: DialogRouter):
        self.router = router

    async def on_message_activity(self, turn_context: TurnContext):
        activity = turn_context.activity
        text = (activity.text or "").strip()
        if not text:
            await turn_context.send_activity(EMPTY_MESSAGE_REPLY)
            return

        conversation_id = activity.conversation.id if activity.conversation and activity.conversation.id else None
        _, reply = await self.router.handle_message(conversation_id or new_session_id(), text)
        await turn_context.send_activity(reply.text)


async def on_turn_error(turn_context: TurnContext, error: Exception):
    """Log the failure and tell the user something went wrong."""
    logger.error(f"Unhandled bot error: {error}", exc_info=error)
    try:
        await turn_context.send_activity(GENERIC_ERROR_REPLY)
    except Exception as e:
        logger.error(f"Failed to send error reply: {e}")


def create_adapter(settings: Settings) -> BotFrameworkAdapter:
    """
    Build the Bot Framework adapter.

    With empty BOT_APP_ID / BOT_APP_PASSWORD authentication is disabled,
    which is what the local emulator expects.
    """
    adapter = BotFrameworkAdapter(
        BotFrameworkAdapterSettings(settings.bot_app_id, settings.bot_app_password)
    )
    adapter.on_turn_error = on_turn_error
    if not settings.bot_app_id:
        logger.warning("BOT_APP_ID not set, /api/messages accepts unauthenticated activities")
    return adapter


def prefer_inline_replies(activity: Activity) -> None:
    """
    Ask for replies in the HTTP response when the channel runs on localhost.

    The emulator cannot be reached back from a remote bot, so its replies are
    returned inline instead of being posted to its service URL.
    """
    if "localhost" in (activity.service_url or ""):
        activity.delivery_mode = DeliveryModes.expect_replies

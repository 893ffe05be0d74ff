"""Main entry point for the settlement calculation bot."""
import sys
import logging
from telegram.ext import Application, CommandHandler, MessageHandler, CallbackQueryHandler, filters
import config
from liquidacao.calculo import storage
from liquidacao.handlers.calculations import (
    cmd_start,
    cmd_help,
    cmd_queue,
    cmd_remove,
    cmd_clear,
    cmd_instructions,
    cmd_employer_pct,
    cmd_model,
    cmd_calculate,
    cmd_history,
    cmd_open,
    cmd_clear_history,
    cmd_export,
    cmd_export_history,
    handle_document_upload,
    handle_photo_upload,
    handle_calc_callback,
)
from liquidacao.handlers.editing import (
    cmd_edit,
    cmd_set,
    cmd_item,
    cmd_month,
    cmd_add_item,
    cmd_del_item,
    cmd_add_month,
    cmd_del_month,
    cmd_save,
    cmd_cancel,
)

# Suppress httpx request logging (leaks the bot token in URLs)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def main():
    """Start the bot."""
    if not config.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN not set. Please check your .env file.")
        return

    if not config.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set. Calculations will fail until it is configured.")

    logger.info("Starting settlement calculation bot...")

    storage.initialize()

    if not config.ALLOWED_USER_IDS:
        logger.warning("=" * 60)
        logger.warning("SECURITY WARNING: ALLOWED_USER_IDS is not set!")
        logger.warning("Anyone can use this bot. To restrict access:")
        logger.warning("1. Message @userinfobot on Telegram to get your user ID")
        logger.warning("2. Add it to .env: ALLOWED_USER_IDS=123456789")
        logger.warning("=" * 60)

    application = Application.builder().token(config.TELEGRAM_BOT_TOKEN).build()

    # Input and processing
    application.add_handler(CommandHandler("start", cmd_start))
    application.add_handler(CommandHandler("help", cmd_help))
    application.add_handler(CommandHandler("queue", cmd_queue))
    application.add_handler(CommandHandler("remove", cmd_remove))
    application.add_handler(CommandHandler("clear", cmd_clear))
    application.add_handler(CommandHandler("instructions", cmd_instructions))
    application.add_handler(CommandHandler("employer_pct", cmd_employer_pct))
    application.add_handler(CommandHandler("model", cmd_model))
    application.add_handler(CommandHandler("calculate", cmd_calculate))

    # History and export
    application.add_handler(CommandHandler("history", cmd_history))
    application.add_handler(CommandHandler("open", cmd_open))
    application.add_handler(CommandHandler("clear_history", cmd_clear_history))
    application.add_handler(CommandHandler("export", cmd_export))
    application.add_handler(CommandHandler("export_history", cmd_export_history))

    # Manual adjustment
    application.add_handler(CommandHandler("edit", cmd_edit))
    application.add_handler(CommandHandler("set", cmd_set))
    application.add_handler(CommandHandler("item", cmd_item))
    application.add_handler(CommandHandler("month", cmd_month))
    application.add_handler(CommandHandler("add_item", cmd_add_item))
    application.add_handler(CommandHandler("del_item", cmd_del_item))
    application.add_handler(CommandHandler("add_month", cmd_add_month))
    application.add_handler(CommandHandler("del_month", cmd_del_month))
    application.add_handler(CommandHandler("save", cmd_save))
    application.add_handler(CommandHandler("cancel", cmd_cancel))

    # Lawsuit uploads (PDF or image documents, and photos)
    application.add_handler(MessageHandler(filters.Document.ALL, handle_document_upload))
    application.add_handler(MessageHandler(filters.PHOTO, handle_photo_upload))

    application.add_handler(CallbackQueryHandler(handle_calc_callback, pattern=r"^calc_"))

    logger.info("Bot is running. Press Ctrl+C to stop.")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()

"""Telegram channel broadcasts for newly published listings."""

import asyncio
import html
import os
import re
from typing import Any, Dict, List, Optional
import logging

from telegram import Bot, InputMediaPhoto, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import TelegramError

from shared.exceptions import NotificationError

logger = logging.getLogger(__name__)

# Telegram limits
MAX_MEDIA_GROUP_SIZE = 10
MAX_CAPTION_LENGTH = 1024

REQUEST_TIMEOUT_SECONDS = 10

TIMEOUTS = {
    'connect_timeout': REQUEST_TIMEOUT_SECONDS,
    'read_timeout': REQUEST_TIMEOUT_SECONDS,
    'write_timeout': REQUEST_TIMEOUT_SECONDS,
}

SEPARATOR = '--------------------------------'


def format_channel_id(raw: str) -> str:
    """
    Normalise a channel id.

    Usernames (``@name``) and negative ids pass through; bare positive numeric
    ids are supergroup/channel ids and get the ``-100`` prefix.
    """
    raw = (raw or '').strip()
    if raw.startswith('@') or raw.startswith('-'):
        return raw
    if raw.isdigit() and int(raw) > 0:
        return f"-100{raw}"
    return raw


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=False)


def _format_price(price: Any) -> Optional[str]:
    digits = re.sub(r'[^\d]', '', str(price).split('.')[0]) if price not in (None, '') else ''
    if not digits:
        return None
    return f"{int(digits):,} ETB"


def _format_storage(storage: Any) -> Optional[str]:
    if not isinstance(storage, list):
        return None

    drives = []
    for drive in storage:
        if not isinstance(drive, dict):
            continue
        size = f"{drive['Size_GB']:g}GB" if drive.get('Size_GB') else ''
        parts = [part for part in (size, drive.get('Type') or '') if part]
        if parts:
            drives.append(' '.join(parts))

    return ' + '.join(drives) or None


def format_listing_message(listing: Dict[str, Any], site_url: Optional[str] = None) -> str:
    """
    Render a listing as an HTML-formatted Telegram message.

    Args:
        listing: Listing record (as stored)
        site_url: Optional storefront link for the footer

    Returns:
        Message text for ``parse_mode=HTML``
    """
    extras = listing.get('extras') or {}
    lines = [f"🖥️ <b>{_esc(listing.get('title') or 'PC Listing')}</b>"]

    price = _format_price(listing.get('price'))
    if price:
        lines.append(f"💰 <b>Price:</b> {price}")

    lines.append('')
    lines.append('📋 <b>Specifications:</b>')

    brand_model = ' '.join(str(v) for v in (listing.get('brand'), listing.get('model')) if v)
    if brand_model:
        lines.append(f"🖥️ <b>Brand/Model:</b> {_esc(brand_model)}")

    if listing.get('cpu'):
        lines.append(f"⚙️ <b>CPU:</b> {_esc(listing['cpu'])}")

    if listing.get('ram_gb'):
        ram = [f"{listing['ram_gb']}GB", listing.get('ram_type')]
        if listing.get('ram_speed_mhz'):
            ram.append(f"{listing['ram_speed_mhz']}MHz")
        lines.append(f"💾 <b>RAM:</b> {_esc(' '.join(str(p) for p in ram if p))}")

    storage = _format_storage(listing.get('storage'))
    if storage:
        lines.append(f"💿 <b>Storage:</b> {_esc(storage)}")

    if listing.get('gpu'):
        lines.append(f"🎮 <b>GPU:</b> {_esc(listing['gpu'])}")

    resolution = listing.get('display_resolution')
    screen = f'{listing["screen_size_inch"]}"' if listing.get('screen_size_inch') else None
    if resolution and screen:
        lines.append(f"🖥️ <b>Display:</b> {_esc(resolution)} ({_esc(screen)})")
    elif resolution or screen:
        lines.append(f"🖥️ <b>Display:</b> {_esc(resolution or screen)}")

    if listing.get('os'):
        lines.append(f"💻 <b>OS:</b> {_esc(listing['os'])}")

    negotiable = extras.get('negotiable')
    if extras.get('condition') or extras.get('battery') or negotiable is not None:
        lines.append('')
        lines.append('ℹ️ <b>Additional Info:</b>')

        if extras.get('condition'):
            lines.append(f"📦 <b>Condition:</b> {_esc(extras['condition'])}")
        if extras.get('battery'):
            lines.append(f"🔋 <b>Battery:</b> {_esc(extras['battery'])}")
        if negotiable is not None:
            lines.append(f"💬 <b>Price:</b> {'Negotiable' if negotiable else 'Fixed'}")

    features = extras.get('special_features')
    if isinstance(features, list) and features:
        lines.append(f"✨ <b>Special Features:</b> {_esc(', '.join(str(f) for f in features))}")

    guarantee = [
        f"{extras['guarantee_months']:g} months" if extras.get('guarantee_months') else None,
        extras.get('guarantee_provider') or None
    ]
    guarantee = ' - '.join(str(part) for part in guarantee if part)
    if guarantee:
        lines.append(f"🛡️ <b>Guarantee:</b> {_esc(guarantee)}")

    if site_url:
        lines.append(SEPARATOR)
        lines.append(f"📢 <b>check our website:</b> {_esc(site_url)}")
        lines.append(SEPARATOR)

    return '\n'.join(lines)


class TelegramNotifier:
    """
    Broadcasts listings to a Telegram channel through the Bot API.

    Without a bot token or channel id the notifier is inert: every send logs a
    warning and returns False. Sends never raise.
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        channel_id: Optional[str] = None,
        site_url: Optional[str] = None,
        bot: Optional[Bot] = None
    ):
        """Initialize notifier from arguments or environment."""
        self.bot_token = bot_token or os.environ.get('TELEGRAM_BOT_TOKEN')
        self.channel_id = format_channel_id(channel_id or os.environ.get('TELEGRAM_CHANNEL_ID', ''))
        self.site_url = site_url or os.environ.get('SITE_URL')
        if bot is None and self.enabled:
            bot = Bot(token=self.bot_token)
        self.bot = bot

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.channel_id)

    def send_listing(self, listing: Dict[str, Any]) -> bool:
        """
        Post a listing, as a photo album when it has images.

        Args:
            listing: Listing record

        Returns:
            True if Telegram accepted the message
        """
        if not self.enabled:
            logger.warning("Telegram not configured, skipping listing notification")
            return False

        try:
            message = format_listing_message(listing, self.site_url)
            images = [url for url in (listing.get('images') or []) if url]

            asyncio.run(self._broadcast(message, images))

            logger.info(f"Listing {listing.get('id')} sent to Telegram")
            return True
        except NotificationError as e:
            logger.error(f"Telegram notification failed for listing {listing.get('id')}: {e.message}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending listing to Telegram: {e}", exc_info=True)
            return False

    async def _broadcast(self, message: str, photo_urls: List[str]) -> None:
        try:
            async with self.bot:
                if photo_urls:
                    await self._send_media_group(photo_urls, message)
                else:
                    await self._send_message(message)
        except TelegramError as e:
            raise NotificationError(f"Telegram rejected broadcast to {self.channel_id}: {e}")

    async def _send_media_group(self, photo_urls: List[str], caption: str) -> None:
        # Captions are capped; a longer message follows the album as text
        inline_caption = len(caption) <= MAX_CAPTION_LENGTH

        media = []
        for index, url in enumerate(photo_urls[:MAX_MEDIA_GROUP_SIZE]):
            if index == 0 and inline_caption:
                media.append(InputMediaPhoto(media=url, caption=caption, parse_mode=ParseMode.HTML))
            else:
                media.append(InputMediaPhoto(media=url))

        await self.bot.send_media_group(chat_id=self.channel_id, media=media, **TIMEOUTS)

        if not inline_caption:
            await self._send_message(caption)

    async def _send_message(self, text: str) -> None:
        await self.bot.send_message(
            chat_id=self.channel_id,
            text=text,
            parse_mode=ParseMode.HTML,
            link_preview_options=LinkPreviewOptions(is_disabled=True),
            **TIMEOUTS
        )

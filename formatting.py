"""Digest rendering for chat delivery and the clipboard.

format_digest turns the current digest into a Slack Block Kit payload:

    header   "🌍 Daily Global News Digest - Mon, Oct 19"
    divider
    section  one per story, numbered from 1
    context  attribution note

The output depends only on the items and the date, so two calls with the
same inputs produce identical payloads.
"""

from datetime import date

from models.news import NewsItem
from models.payload import (
    ChatPayload,
    ContextBlock,
    DividerBlock,
    HeaderBlock,
    SectionBlock,
    TextObject,
)

HIGH_RELEVANCE_ICON = "🔥"
NORMAL_ICON = "📰"
ATTRIBUTION = "Curated by AI based on global importance and your preferences."


def format_date(day: date) -> str:
    """Render a date as weekday, month and day (e.g. 'Mon, Oct 19')."""
    return f"{day.strftime('%a')}, {day.strftime('%b')} {day.day}"


def format_section(index: int, item: NewsItem) -> str:
    """Render one story as Slack mrkdwn."""
    icon = HIGH_RELEVANCE_ICON if item.is_high_relevance else NORMAL_ICON
    source = item.source or "Unknown"
    url = item.url or "#"
    return f"*{index}. {icon} {item.title}*\n{item.summary}\n_{source}_ | <{url}|Read More>"


def format_digest(items: list[NewsItem], today: date | None = None) -> ChatPayload:
    """Build the chat payload for a digest.

    Args:
        items: Stories in display order
        today: Date to stamp (defaults to the local date)

    Returns:
        ChatPayload with header, divider, sections and context blocks
    """
    date_str = format_date(today or date.today())

    blocks = [
        HeaderBlock(
            text=TextObject(
                type="plain_text",
                text=f"🌍 Daily Global News Digest - {date_str}",
                emoji=True,
            )
        ),
        DividerBlock(),
    ]
    for index, item in enumerate(items, start=1):
        blocks.append(SectionBlock(text=TextObject(type="mrkdwn", text=format_section(index, item))))
    blocks.append(ContextBlock(elements=[TextObject(type="mrkdwn", text=ATTRIBUTION)]))

    return ChatPayload(text=f"Daily News Digest - {date_str}", blocks=blocks)


def to_plain_text(payload: ChatPayload) -> str:
    """Clipboard rendering: section texts separated by blank lines."""
    sections = payload.sections()
    if not sections:
        return payload.text
    return "\n\n".join(section.text.text for section in sections)

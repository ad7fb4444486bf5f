"""Slack Block Kit payload models for digest delivery.

Only the four block types the digest uses are modelled. Serialize with
``ChatPayload.to_dict()`` so optional keys (``emoji``) are only emitted
where Slack expects them.
"""

from typing import Literal, Union

from pydantic import BaseModel, Field


class TextObject(BaseModel):
    """Text composition object (plain_text or mrkdwn)."""

    type: Literal["plain_text", "mrkdwn"]
    text: str
    emoji: bool | None = None


class HeaderBlock(BaseModel):
    type: Literal["header"] = "header"
    text: TextObject


class DividerBlock(BaseModel):
    type: Literal["divider"] = "divider"


class SectionBlock(BaseModel):
    type: Literal["section"] = "section"
    text: TextObject


class ContextBlock(BaseModel):
    type: Literal["context"] = "context"
    elements: list[TextObject]


Block = Union[HeaderBlock, DividerBlock, SectionBlock, ContextBlock]


class ChatPayload(BaseModel):
    """Outbound webhook message.

    Attributes:
        text: One-line fallback for clients that cannot render blocks
        blocks: Header, divider, one section per story, context note
    """

    text: str
    blocks: list[Block] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(exclude_none=True, indent=indent)

    def sections(self) -> list[SectionBlock]:
        return [block for block in self.blocks if isinstance(block, SectionBlock)]

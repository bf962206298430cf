"""
Router: POST /roll, /roll/many, /roll/bincount, /roll/inline, /parse
Cienkie opakowania na DiceCommands; `seed` w treści żądania wybiera
SeededRandomSource, więc to samo żądanie zawsze rzuca tymi samymi kośćmi.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from adapters.notation.printer import to_notation
from adapters.randomness.seeded_source import SeededRandomSource
from adapters.renderer.markdown_renderer import render_bincount, split_messages
from api.dependencies import get_commands, get_engine, get_settings
from api.schemas import (
    BincountRequest,
    BincountResponse,
    InlineRequest,
    InlineResponse,
    ParseRequest,
    ParseResponse,
    RollManyRequest,
    RollManyResponse,
    RollRequest,
    RollResponse,
)
from ports.randomness import RandomnessSource

router = APIRouter(tags=["roll"])


def _source(seed: Optional[int]) -> Optional[RandomnessSource]:
    return SeededRandomSource(seed) if seed is not None else None


@router.post("/roll", response_model=RollResponse)
async def roll(body: RollRequest, commands=Depends(get_commands)) -> RollResponse:
    outcome = commands.roll(body.text, body.user_id, body.channel_id, _source(body.seed))
    return RollResponse(
        expression=outcome.result.expression,
        total=outcome.result.total,
        text=outcome.text,
        result=outcome.result,
    )


@router.post("/roll/many", response_model=RollManyResponse)
async def roll_many(body: RollManyRequest, commands=Depends(get_commands)) -> RollManyResponse:
    messages = commands.roll_many(
        body.count, body.text, body.user_id, body.channel_id, _source(body.seed)
    )
    return RollManyResponse(messages=messages)


@router.post("/roll/bincount", response_model=BincountResponse)
async def roll_bincount(
    body: BincountRequest,
    commands=Depends(get_commands),
    settings=Depends(get_settings),
) -> BincountResponse:
    counts = commands.roll_bincount(
        body.count, body.text, body.user_id, body.channel_id, _source(body.seed)
    )
    return BincountResponse(
        counts=counts,
        messages=split_messages(render_bincount(counts), settings.message_limit),
    )


@router.post("/roll/inline", response_model=InlineResponse)
async def roll_inline(body: InlineRequest, commands=Depends(get_commands)) -> InlineResponse:
    text = commands.inline(
        body.nick, body.message, body.user_id, body.channel_id, _source(body.seed)
    )
    return InlineResponse(text=text)


@router.post("/parse", response_model=ParseResponse)
async def parse(body: ParseRequest, engine=Depends(get_engine)) -> ParseResponse:
    expr = engine.parse(body.text)
    return ParseResponse(notation=to_notation(expr), ast=expr.model_dump(mode="json"))

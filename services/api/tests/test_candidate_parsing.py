import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from book_service.domain.errors import CandidateGenerationError
from book_service.domain.types import Format, UserProfile
from book_service.services.recommendation.generator import (
    OpenAICandidateGenerator,
    build_generator,
    parse_candidates,
)
from book_service.services.recommendation.prompts import render_recommendation_prompt

ODYSSEY = {
    "title": "The Odyssey",
    "author": "Homer",
    "isbn_13": "978-0-14-044933-4",
    "isbn_10": None,
    "publication_year": 1996,
    "reasoning": "Epic classic",
}


def test_parses_fenced_json_array():
    text = "```json\n" + json.dumps([ODYSSEY]) + "\n```"
    [book] = parse_candidates(text)

    assert book.title == "The Odyssey"
    assert book.isbn_13 == "9780140449334"
    assert book.publication_year == 1996
    assert book.reasoning == "Epic classic"


def test_skips_invalid_items_and_applies_defaults():
    items = [
        "not an object",
        {"title": "No ISBN", "author": "Nobody"},
        {"title": "Bad ISBN", "author": "Nobody", "isbn_13": "9780140449335"},
        {"title": "The Hobbit", "author": "J.R.R. Tolkien", "isbn_13": "054792822X", "publication_year": "1937"},
    ]
    [book] = parse_candidates(json.dumps(items))

    assert book.title == "The Hobbit"
    assert book.isbn_13 == "9780547928227"
    assert book.isbn_10 == "054792822X"
    assert book.publication_year == datetime.now(timezone.utc).year
    assert book.reasoning == "Matches user interests"


def test_string_isbn10_from_item_is_kept():
    item = {**ODYSSEY, "isbn_10": "0140449337"}
    [book] = parse_candidates(json.dumps([item]))
    assert book.isbn_10 == "0140449337"


@pytest.mark.parametrize("text", ["not json at all", '{"title": "x"}'])
def test_unusable_output_raises(text):
    with pytest.raises(CandidateGenerationError):
        parse_candidates(text)


def test_prompt_mentions_profile_constraints():
    profile = UserProfile(
        id="p",
        interests=["space opera"],
        previously_read=["9780441172719"],
        disliked_authors=["Someone"],
        price_ceiling=10,
        formats_accepted=[Format.ebook],
    )
    prompt = render_recommendation_prompt(profile, 7)

    assert "recommend 7 books" in prompt["user"]
    assert "space opera" in prompt["user"]
    assert "9780441172719" in prompt["user"]
    assert "Authors to avoid: Someone" in prompt["user"]
    assert '"isbn_13"' in prompt["user"]


def _fake_openai(content):
    calls = []

    async def create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, calls


@pytest.mark.asyncio
async def test_openai_generator_sends_prompt_and_parses():
    client, calls = _fake_openai(json.dumps([ODYSSEY]))
    generator = OpenAICandidateGenerator(None, "gpt-4o-mini", client=client)
    profile = UserProfile(id="p", interests=["epics"], price_ceiling=20, formats_accepted=[Format.ebook])

    [book] = await generator.generate(profile, 5)

    assert book.isbn_13 == "9780140449334"
    assert calls[0]["model"] == "gpt-4o-mini"
    assert calls[0]["temperature"] == 0.7
    assert calls[0]["max_tokens"] == 4000
    assert [m["role"] for m in calls[0]["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_openai_generator_empty_response():
    client, _ = _fake_openai("")
    generator = OpenAICandidateGenerator(None, "gpt-4o-mini", client=client)
    profile = UserProfile(id="p", price_ceiling=20, formats_accepted=[Format.ebook])

    with pytest.raises(CandidateGenerationError, match="Empty response"):
        await generator.generate(profile, 5)


def test_build_generator(cfg):
    with pytest.raises(CandidateGenerationError, match="API key"):
        build_generator(cfg.model_copy(update={"openai_api_key": None}))

    with pytest.raises(CandidateGenerationError, match="Unsupported LLM provider"):
        build_generator(cfg.model_copy(update={"llm_provider": "anthropic"}))

    generator = build_generator(cfg.model_copy(update={"openai_api_key": "sk-test"}))
    assert isinstance(generator, OpenAICandidateGenerator)

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from sourcing_agent.agents.extractor import PageDataExtractor, parse_extraction_text
from sourcing_agent.core.schemas import ExtractionError, ExtractionOk
from sourcing_agent.utils.helpers import AgentLogger

from conftest import FAKE_PNG, make_fake_page


def fake_llm(answer):
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=answer))
    return llm


def test_parse_fenced_json():
    result = parse_extraction_text('```json\n{"products": [{"supplierName": "Acme"}]}\n```')

    assert isinstance(result, ExtractionOk)
    assert result.data == {"products": [{"supplierName": "Acme"}]}


def test_parse_bare_json_and_empty_answer():
    assert parse_extraction_text('{"suppliers": []}').data == {"suppliers": []}
    assert parse_extraction_text("").data == {}


def test_parse_malformed_json_keeps_raw_text():
    result = parse_extraction_text("Here are the products: {oops")

    assert isinstance(result, ExtractionError)
    assert result.kind == "parse_error"
    assert result.raw_text == "Here are the products: {oops"
    assert result.error


@pytest.mark.asyncio
async def test_extract_sends_prompt_markup_and_screenshot():
    page = make_fake_page("https://www.alibaba.com/trade/search?q=bolts")
    llm = fake_llm('```json\n{"products": []}\n```')
    extractor = PageDataExtractor(llm=llm)
    logger = AgentLogger("Alibaba Scraper")

    result = await extractor.extract(page, "Return JSON with products", logger)

    assert isinstance(result, ExtractionOk)
    assert result.data == {"products": []}
    assert logger.logs == []

    (message,) = llm.ainvoke.await_args.args[0]
    text_part, image_part = message.content
    assert "https://www.alibaba.com/trade/search?q=bolts" in text_part["text"]
    assert "Return JSON with products" in text_part["text"]
    assert "Hex bolt" in text_part["text"]
    expected = base64.b64encode(FAKE_PNG).decode("utf-8")
    assert image_part["image_url"]["url"] == f"data:image/png;base64,{expected}"


@pytest.mark.asyncio
async def test_extract_without_markup_skips_page_content():
    page = make_fake_page()
    llm = fake_llm('{"products": []}')
    extractor = PageDataExtractor(llm=llm, include_markup=False)

    await extractor.extract(page, "Return JSON", AgentLogger("Alibaba Scraper"))

    page.content.assert_not_awaited()
    (message,) = llm.ainvoke.await_args.args[0]
    assert "PAGE CONTENT" not in message.content[0]["text"]


@pytest.mark.asyncio
async def test_extract_logs_decode_failure():
    page = make_fake_page()
    extractor = PageDataExtractor(llm=fake_llm("I could not find any products, sorry."))
    logger = AgentLogger("Alibaba Scraper")

    result = await extractor.extract(page, "Return JSON", logger)

    assert isinstance(result, ExtractionError)
    assert [e.action for e in logger.logs] == ["Data extraction failed"]
    assert logger.logs[0].status == "error"


@pytest.mark.asyncio
async def test_extract_network_errors_propagate():
    page = make_fake_page()
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=ConnectionError("quota exceeded"))
    extractor = PageDataExtractor(llm=llm)

    with pytest.raises(ConnectionError):
        await extractor.extract(page, "Return JSON", AgentLogger("Alibaba Scraper"))

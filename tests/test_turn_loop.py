import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sourcing_agent.agents.computer_use import ComputerUseAgent
from sourcing_agent.agents.decision import BLOCKED_BY_SAFETY_ERROR
from sourcing_agent.agents.policies import SentinelPhrasePolicy
from sourcing_agent.core.executor import ActionExecutor
from sourcing_agent.core.schemas import Decision, ExtractionOk

from conftest import FAKE_PNG, FakeBrowser, StubDecider, click

START_URL = "https://www.alibaba.com/"


def make_agent(decider, browser, **kwargs):
    return ComputerUseAgent(
        "Test Agent",
        decision_step=decider,
        browser_factory=lambda: browser,
        **kwargs,
    )


def actions_of(logs):
    return [entry.action for entry in logs]


@pytest.mark.asyncio
async def test_zero_actions_completes_on_first_turn():
    browser = FakeBrowser()
    decider = StubDecider([Decision(texts=["The results page is showing bolts."])])
    agent = make_agent(decider, browser, max_turns=5)

    result = await agent.run_task("Find M8 bolts", START_URL)

    assert result.success is True
    assert result.outcome == "completed"
    assert result.turns == 1
    assert result.result == "The results page is showing bolts."
    assert browser.navigated == [START_URL]
    assert browser.close_calls == 1
    assert "Task completed" in actions_of(result.logs)
    assert agent.is_running is False


@pytest.mark.asyncio
async def test_loop_stops_after_max_turns():
    browser = FakeBrowser()
    decider = StubDecider([Decision(actions=[click(500, 500)])])
    agent = make_agent(decider, browser, max_turns=3)

    result = await agent.run_task("Keep clicking", START_URL)

    assert len(decider.calls) == 3
    assert result.turns == 3
    assert result.outcome == "inconclusive"
    assert result.success is True
    assert browser.page.mouse.click.await_count == 3
    assert "Turn limit reached" in actions_of(result.logs)
    assert browser.close_calls == 1


@pytest.mark.asyncio
async def test_empty_model_response_is_inconclusive():
    browser = FakeBrowser()
    decider = StubDecider([None])
    agent = make_agent(decider, browser)

    result = await agent.run_task("Anything", START_URL)

    assert result.outcome == "inconclusive"
    assert result.turns == 1
    assert len(decider.calls) == 1
    assert "No response from model" in actions_of(result.logs)


@pytest.mark.asyncio
async def test_action_results_are_fed_back_with_screenshot():
    browser = FakeBrowser()
    decider = StubDecider([
        Decision(actions=[click(100, 200)]),
        Decision(texts=["Done looking."]),
    ])
    agent = make_agent(decider, browser)

    await agent.run_task("Click once", START_URL)

    assert len(decider.calls) == 2
    second_contents = decider.calls[1]
    # initial goal message + function responses
    assert len(second_contents) == 2
    response = second_contents[-1].parts[0].function_response
    assert response.name == "click_at"
    assert response.response == {"url": START_URL}
    assert response.parts[0].inline_data.data == FAKE_PNG
    browser.page.mouse.click.assert_awaited_once_with(144, 180)


@pytest.mark.asyncio
async def test_blocked_action_is_never_executed():
    browser = FakeBrowser()
    blocked = click(
        500, 500,
        safety_decision={"decision": "require_confirmation", "explanation": "Places an order"},
    )
    decider = StubDecider([Decision(actions=[blocked]), Decision(texts=["Stopping."])])
    agent = make_agent(decider, browser)

    with patch.object(ActionExecutor, "execute", new_callable=AsyncMock) as execute:
        result = await agent.run_task("Buy it", START_URL)

    execute.assert_not_awaited()
    browser.page.mouse.click.assert_not_awaited()

    response = decider.calls[1][-1].parts[0].function_response
    assert response.response["error"] == BLOCKED_BY_SAFETY_ERROR
    assert response.parts is None

    safety_logs = [e for e in result.logs if e.action == "Safety confirmation required"]
    assert len(safety_logs) == 1
    assert safety_logs[0].status == "error"
    assert safety_logs[0].details == "Places an order"


@pytest.mark.asyncio
async def test_sentinel_phrase_ends_loop_before_acting():
    browser = FakeBrowser()
    decider = StubDecider([
        Decision(actions=[click()], texts=["DONE - search results are visible"]),
    ])
    agent = make_agent(decider, browser, completion_policy=SentinelPhrasePolicy())

    result = await agent.run_task("Search", START_URL)

    assert result.outcome == "completed"
    assert result.turns == 1
    browser.page.mouse.click.assert_not_awaited()
    assert "Results visible" in actions_of(result.logs)


@pytest.mark.asyncio
async def test_default_policy_ignores_sentinel_phrases():
    browser = FakeBrowser()
    decider = StubDecider([
        Decision(actions=[click()], texts=["DONE"]),
        Decision(texts=["finished"]),
    ])
    agent = make_agent(decider, browser)

    result = await agent.run_task("Search", START_URL)

    assert result.turns == 2
    browser.page.mouse.click.assert_awaited_once()


@pytest.mark.asyncio
async def test_decider_exception_fails_task_and_closes_browser_once():
    browser = FakeBrowser()
    decider = StubDecider([RuntimeError("model unavailable")])
    agent = make_agent(decider, browser)

    result = await agent.run_task("Search", START_URL)

    assert result.success is False
    assert result.outcome == "failed"
    assert browser.close_calls == 1
    failed = [e for e in result.logs if e.action == "Task failed"]
    assert failed and failed[0].details == "model unavailable"
    assert agent.is_running is False


@pytest.mark.asyncio
async def test_extract_path_propagates_errors_and_closes_browser_once():
    browser = FakeBrowser()
    decider = StubDecider([RuntimeError("model unavailable")])
    agent = make_agent(decider, browser)

    with pytest.raises(RuntimeError, match="model unavailable"):
        await agent.run_task_and_extract("Search", START_URL, "Return JSON")

    assert browser.close_calls == 1
    assert agent.is_running is False


@pytest.mark.asyncio
async def test_run_task_and_extract_uses_same_session():
    browser = FakeBrowser()
    decider = StubDecider([Decision(texts=["ready"])])
    extractor = MagicMock()
    extractor.extract = AsyncMock(return_value=ExtractionOk(data={"products": []}))
    agent = make_agent(decider, browser, extractor=extractor)

    task, extraction = await agent.run_task_and_extract("Search", START_URL, "Return JSON")

    assert task.outcome == "completed"
    assert extraction.data == {"products": []}
    extractor.extract.assert_awaited_once()
    page_arg, prompt_arg, _logger = extractor.extract.await_args.args
    assert page_arg is browser.page
    assert prompt_arg == "Return JSON"
    assert browser.start_calls == 1
    assert browser.close_calls == 1


@pytest.mark.asyncio
async def test_second_run_while_running_is_rejected():
    browser = FakeBrowser()
    release = asyncio.Event()

    class BlockingDecider:
        async def decide(self, contents):
            await release.wait()
            return Decision(texts=["done"])

    agent = make_agent(BlockingDecider(), browser)
    first = asyncio.create_task(agent.run_task("Search", START_URL))
    while not agent.is_running:
        await asyncio.sleep(0)

    with pytest.raises(RuntimeError, match="already running"):
        await agent.run_task("Search again", START_URL)

    release.set()
    result = await first
    assert result.outcome == "completed"
    assert browser.start_calls == 1
    assert browser.close_calls == 1


@pytest.mark.asyncio
async def test_logs_are_forwarded_to_callback_in_order():
    received = []
    browser = FakeBrowser()
    decider = StubDecider([Decision(texts=["ok"])])
    agent = make_agent(decider, browser, log_callback=received.append)

    result = await agent.run_task("Search", START_URL)

    assert [e.id for e in received] == [e.id for e in result.logs] + [received[-1].id]
    assert received[0].action == "Initializing browser"
    assert received[-1].action == "Browser closed"
    assert all(e.agent_name == "Test Agent" for e in received)


def test_max_turns_must_be_positive():
    with pytest.raises(ValueError):
        ComputerUseAgent("Test Agent", decision_step=StubDecider([None]), max_turns=0)


@pytest.mark.asyncio
async def test_unreadable_safety_decision_blocks_action_and_loop_continues():
    browser = FakeBrowser()
    odd = click(500, 500, safety_decision={"decision": None})
    decider = StubDecider([
        Decision(actions=[odd]),
        Decision(actions=[click(100, 100)]),
        Decision(texts=["Results are showing."]),
    ])
    agent = make_agent(decider, browser)

    result = await agent.run_task("Search", START_URL)

    assert result.success is True
    assert result.outcome == "completed"
    assert result.turns == 3
    blocked = decider.calls[1][-1].parts[0].function_response
    assert blocked.response["error"] == BLOCKED_BY_SAFETY_ERROR
    browser.page.mouse.click.assert_awaited_once_with(144, 90)
    assert "Task failed" not in actions_of(result.logs)

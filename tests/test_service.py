import orjson
import pytest

from retail_assistant.actions.dispatcher import ActionDispatcher, builtin_executors
from retail_assistant.errors import InputError
from retail_assistant.matching.templates import ActionId, build_default_registry


def _host_executors(fail: set[ActionId] = frozenset()) -> dict:
    def make(action: ActionId):
        def run(params: dict) -> dict:
            if action in fail:
                raise RuntimeError(f"{action.value} backend unavailable")
            return {"action": action.value, "params": params}

        return run

    builtins = builtin_executors(build_default_registry())
    return {a: make(a) for a in ActionId if a not in builtins}


def test_dispatcher_requires_every_action() -> None:
    executors = _host_executors()
    executors.pop(ActionId.GET_SALES_REPORT)
    with pytest.raises(ValueError, match="getSalesReport"):
        ActionDispatcher.with_builtins(build_default_registry(), executors)


def test_builtin_capabilities() -> None:
    registry = build_default_registry()
    dispatcher = ActionDispatcher.with_builtins(registry, _host_executors())

    caps = dispatcher.dispatch(ActionId.GET_CAPABILITIES)
    help_ = dispatcher.dispatch(ActionId.SHOW_HELP, {})

    assert len(caps["capabilities"]) == 6
    assert len(caps["use_cases"]) == 6
    assert len(help_["commands"]) == len(registry)
    assert ActionId.SHOW_HELP in dispatcher


def test_ask_runs_the_dispatched_action(make_service) -> None:
    service = make_service(
        dispatcher=ActionDispatcher.with_builtins(build_default_registry(), _host_executors())
    )

    response = service.ask("top products in delhi")

    assert response["type"] == "tool"
    assert response["result"] == {
        "action": "getTopProductsInCity",
        "params": {"city": "delhi"},
    }


def test_ask_reports_executor_failure(make_service) -> None:
    executors = _host_executors(fail={ActionId.GET_DISCOUNT_IMPACT})
    service = make_service(
        dispatcher=ActionDispatcher.with_builtins(build_default_registry(), executors)
    )

    response = service.ask("what is the discount impact")

    assert response["type"] == "template"
    assert "result" not in response
    assert "backend unavailable" in response["result_error"]


def test_ask_skips_dispatch_when_inputs_missing(make_service) -> None:
    service = make_service(
        dispatcher=ActionDispatcher.with_builtins(build_default_registry(), _host_executors())
    )

    response = service.ask("find product by name")

    assert response["type"] == "template"
    assert response["missing_inputs"] == ["name"]
    assert response["input_prompt"] == "Please provide the product name to search for:"
    assert "result" not in response


def test_ask_without_dispatcher_returns_outcome_only(service) -> None:
    response = service.ask("hello")
    assert response["type"] == "greeting"
    assert "result" not in response


def test_list_templates_unknown_category(service) -> None:
    with pytest.raises(InputError):
        service.list_templates("weather")


def test_list_templates_by_category(service) -> None:
    product = service.list_templates("product")
    assert len(product) == 4
    assert {t["category"] for t in product} == {"product"}


def test_match_template_reports_suggestions(service) -> None:
    payload = service.match_template("show me store performance")
    assert payload["match"]["template"]["action_id"] == "getStorePerformance"
    assert payload["match"]["score"] is None
    assert "show me store performance" in payload["suggestions"]


def test_resolutions_recorded_when_enabled(make_service, cfg, tmp_path) -> None:
    cfg.RECORD_RESOLUTIONS = True
    service = make_service()

    service.resolve("hi")

    records = (tmp_path / "logs" / "resolutions.jsonl").read_bytes().splitlines()
    record = orjson.loads(records[0])
    assert record["question"] == "hi"
    assert record["outcome"]["type"] == "greeting"
    assert record["latency_ms"] >= 0

import json
import logging

import httpx
import pytest
import pytest_asyncio
import yaml

from healthshare_plans.catalog import (
    DEFAULT_CATALOG_PATH,
    FileCatalogSource,
    PlanCatalog,
    StaticCatalogSource,
    SupabaseCatalogSource,
    ingest_plans,
)
from healthshare_plans.errors import CatalogUnavailableError, ValidationError


@pytest_asyncio.fixture
async def static_catalog(plan_row):
    return PlanCatalog(StaticCatalogSource([plan_row("alpha"), plan_row("bravo")]))


def test_ingest_drops_invalid_rows_with_warning(plan_row, caplog):
    broken = plan_row("broken", costs=((0, 1000),))

    with caplog.at_level(logging.WARNING, logger="healthshare_plans.catalog"):
        plans = ingest_plans([plan_row("alpha"), broken])

    assert [plan.id for plan in plans] == ["alpha"]
    assert "broken" in caplog.text


def test_ingest_strict_mode_raises(plan_row):
    with pytest.raises(ValidationError):
        ingest_plans([plan_row("alpha"), plan_row("broken", costs=((0, 1000),))], strict=True)


def test_ingest_keeps_first_duplicate(plan_row):
    plans = ingest_plans([plan_row("alpha"), plan_row("alpha", costs=((99, 500),))])

    assert len(plans) == 1
    assert plans[0].plan_matrix[0].costs[0].monthly_premium == 200

    with pytest.raises(ValidationError):
        ingest_plans([plan_row("alpha"), plan_row("alpha")], strict=True)


@pytest.mark.asyncio
async def test_catalog_loads_lazily_and_looks_up_plans(static_catalog):
    plans = await static_catalog.plans()

    assert isinstance(plans, tuple)
    assert [plan.id for plan in plans] == ["alpha", "bravo"]
    assert (await static_catalog.get("bravo")).id == "bravo"
    assert await static_catalog.get("missing") is None


@pytest.mark.asyncio
async def test_refresh_swaps_snapshot(plan_row):
    source = StaticCatalogSource([plan_row("alpha")])
    catalog = PlanCatalog(source)
    old = await catalog.plans()

    source._rows.append(plan_row("bravo"))
    new = await catalog.refresh()

    assert [plan.id for plan in old] == ["alpha"]
    assert [plan.id for plan in new] == ["alpha", "bravo"]
    assert await catalog.plans() is new


@pytest.mark.asyncio
async def test_file_source_reads_yaml_and_wrapped_json(plan_row, tmp_path):
    yaml_path = tmp_path / "catalog.yaml"
    yaml_path.write_text(yaml.safe_dump([plan_row("alpha")]), encoding="utf-8")
    json_path = tmp_path / "catalog.json"
    json_path.write_text(json.dumps({"plans": [plan_row("bravo")]}), encoding="utf-8")

    yaml_rows = await FileCatalogSource(yaml_path).fetch_plans()
    json_rows = await FileCatalogSource(str(json_path)).fetch_plans()

    assert [row["id"] for row in yaml_rows] == ["alpha"]
    assert [row["id"] for row in json_rows] == ["bravo"]


@pytest.mark.asyncio
async def test_file_source_defaults_to_bundled_catalog():
    source = FileCatalogSource()

    assert source.path == DEFAULT_CATALOG_PATH
    assert len(await source.fetch_plans()) == 10


@pytest.mark.asyncio
async def test_supabase_source_fetches_rows(plan_row):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["select"] = request.url.params["select"]
        seen["apikey"] = request.headers["apikey"]
        seen["authorization"] = request.headers["Authorization"]
        return httpx.Response(200, json=[plan_row("alpha")])

    source = SupabaseCatalogSource(
        url="https://demo.supabase.co/",
        api_key="anon-key",
        table="health_plans",
        transport=httpx.MockTransport(handler),
    )
    plans = await PlanCatalog(source).plans()

    assert [plan.id for plan in plans] == ["alpha"]
    assert seen["path"] == "/rest/v1/health_plans"
    assert seen["select"] == "*"
    assert seen["apikey"] == "anon-key"
    assert seen["authorization"] == "Bearer anon-key"


@pytest.mark.asyncio
async def test_supabase_errors_become_catalog_unavailable():
    source = SupabaseCatalogSource(
        url="https://demo.supabase.co",
        api_key="anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "down"})),
    )

    with pytest.raises(CatalogUnavailableError) as exc_info:
        await source.fetch_plans()

    assert "500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_supabase_rejects_non_list_payload():
    source = SupabaseCatalogSource(
        url="https://demo.supabase.co",
        api_key="anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"plans": []})),
    )

    with pytest.raises(CatalogUnavailableError):
        await source.fetch_plans()


def test_supabase_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("SUPABASE_PLANS_TABLE", raising=False)

    with pytest.raises(ValueError):
        SupabaseCatalogSource()

    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    with pytest.raises(ValueError):
        SupabaseCatalogSource()

    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    source = SupabaseCatalogSource()
    assert source.table == "plans"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, content",
    [
        ("missing.json", None),
        ("broken.json", '[{"id": "alpha",'),
        ("broken.yaml", "plans: [alpha\n"),
        ("scalar.json", '"just a string"'),
    ],
)
async def test_unreadable_catalog_file_is_unavailable(tmp_path, name, content):
    path = tmp_path / name
    if content is not None:
        path.write_text(content, encoding="utf-8")

    with pytest.raises(CatalogUnavailableError) as exc_info:
        await FileCatalogSource(path).fetch_plans()

    assert name in str(exc_info.value)

import pytest

from healthshare_plans.catalog import FileCatalogSource, SupabaseCatalogSource
from healthshare_plans.config import Settings, build_catalog_source, load_recommendation_config
from healthshare_plans.models import RecommendationConfig


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("HEALTHSHARE_CATALOG_PATH", "/srv/catalog.yaml")
    monkeypatch.setenv("HEALTHSHARE_LOG_LEVEL", "debug")
    monkeypatch.setenv("HEALTHSHARE_STRICT_INGESTION", "true")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    monkeypatch.delenv("HEALTHSHARE_WEIGHTS_PATH", raising=False)

    settings = Settings.from_env()

    assert settings.catalog_path == "/srv/catalog.yaml"
    assert settings.log_level == "DEBUG"
    assert settings.strict_ingestion is True
    assert settings.weights_path is None


def test_catalog_source_selection():
    assert isinstance(build_catalog_source(Settings()), FileCatalogSource)

    source = build_catalog_source(
        Settings(supabase_url="https://demo.supabase.co", supabase_key="anon", supabase_table="plans_v2")
    )
    assert isinstance(source, SupabaseCatalogSource)
    assert source.table == "plans_v2"


def test_weights_file_overrides_defaults(tmp_path):
    path = tmp_path / "weights.yaml"
    path.write_text(
        "maternity_weight: 3.0\n"
        "top_k: 5\n"
        "spend_unshared_multipliers:\n"
        "  '>5000': 2.0\n",
        encoding="utf-8",
    )

    config = load_recommendation_config(path)

    assert config.maternity_weight == 3.0
    assert config.top_k == 5
    assert config.spend_unshared_multipliers == {"<1000": 1.0, "1000-5000": 1.25, ">5000": 2.0}
    assert config.lower_monthly_premium_multiplier == 2.5


def test_weights_file_rejects_unknown_keys(tmp_path):
    path = tmp_path / "weights.yaml"
    path.write_text("premium_wieght: 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="premium_wieght"):
        load_recommendation_config(path)


def test_no_weights_file_means_defaults():
    assert load_recommendation_config() == RecommendationConfig()


@pytest.mark.parametrize(
    "overrides, key",
    [
        ({"premium_weight": -1}, "premium_weight"),
        ({"maternity_weight": -0.5}, "maternity_weight"),
        ({"premium_weight": 0, "unshared_weight": 0}, "premium_weight"),
        ({"lower_monthly_premium_multiplier": 0, "lower_monthly_unshared_multiplier": 0}, "lower_monthly"),
        ({"pre_existing_max_wait_months": 0}, "pre_existing_max_wait_months"),
        ({"spend_unshared_multipliers": {">5000": -1.0}}, "spend_unshared_multipliers"),
        ({"top_k": 0}, "top_k"),
    ],
)
def test_config_rejects_unusable_weights(overrides, key):
    with pytest.raises(ValueError, match=key):
        RecommendationConfig(**overrides)


def test_weights_file_with_zero_weights_is_rejected(tmp_path):
    path = tmp_path / "weights.yaml"
    path.write_text("premium_weight: 0\nunshared_weight: 0\n", encoding="utf-8")

    with pytest.raises(ValueError, match="unshared_weight"):
        load_recommendation_config(path)


def test_zero_premium_weight_alone_is_allowed():
    config = RecommendationConfig(premium_weight=0)

    assert config.unshared_weight == 1.0

"""
Settings loading: bundled defaults, override files, environment, and the
bootstrap bridge into the kernel.
"""

import pytest
import yaml
from sqlalchemy import inspect

from storefront_config import CONFIG_PATH_ENV, DATABASE_URL_ENV, get_settings
from storefront_config.bootstrap import build_orchestrator, init_storefront
from storefront_config.loader import compute_checksum, deep_merge, parse_settings
from storefront_kernel.db.engine import get_session, reset_engine
from storefront_kernel.models.product import Product
from storefront_kernel.models.user import User


def _write_yaml(path, data) -> str:
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestDefaults:

    def test_bundled_defaults(self):
        settings = get_settings(environ={})

        assert settings.database.url == "sqlite:///storefront.db"
        assert settings.database.lock_timeout == 30.0
        assert settings.payment.currency == "GHS"
        assert settings.payment.providers == ("mock",)
        assert settings.payment.default_provider == "mock"
        assert settings.logging.level == "INFO"
        assert len(settings.checksum) == 64

    def test_settings_are_frozen(self):
        settings = get_settings(environ={})
        with pytest.raises(AttributeError):
            settings.payment.currency = "USD"

    def test_trace_logged(self, captured_logs):
        get_settings(environ={})
        traces = [r for r in captured_logs() if r["message"] == "STOREFRONT_CONFIG_TRACE"]
        assert traces and traces[0]["config_source"] == "defaults"


class TestOverrides:

    def test_override_file_is_deep_merged(self, tmp_path):
        path = _write_yaml(tmp_path / "shop.yaml", {"payment": {"currency": "usd"}})

        settings = get_settings(path, environ={})

        assert settings.payment.currency == "USD"
        assert settings.payment.providers == ("mock",)
        assert settings.database.url == "sqlite:///storefront.db"

    def test_config_path_from_environment(self, tmp_path):
        path = _write_yaml(tmp_path / "shop.yaml", {"logging": {"level": "debug"}})

        settings = get_settings(environ={CONFIG_PATH_ENV: path})

        assert settings.logging.level == "DEBUG"

    def test_database_url_from_environment_wins(self, tmp_path):
        path = _write_yaml(tmp_path / "shop.yaml", {"database": {"url": "sqlite:///file.db"}})

        settings = get_settings(path, environ={DATABASE_URL_ENV: "postgresql://u:p@db/shop"})

        assert settings.database.url == "postgresql://u:p@db/shop"

    def test_checksum_tracks_content(self, tmp_path):
        base = get_settings(environ={})
        path = _write_yaml(tmp_path / "shop.yaml", {"database": {"echo": True}})

        assert get_settings(path, environ={}).checksum != base.checksum
        assert get_settings(environ={}).checksum == base.checksum

    def test_missing_override_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_settings(tmp_path / "absent.yaml", environ={})


class TestInvalidSettings:

    @pytest.mark.parametrize(
        "override",
        [
            {"payment": {"currency": "cedis"}},
            {"payment": {"providers": "mock"}},
            {"payment": {"providers": ["mock"], "default_provider": "stripe"}},
            {"logging": {"level": "chatty"}},
            {"database": {"url": ""}},
        ],
    )
    def test_rejected_with_value_error(self, tmp_path, override):
        path = _write_yaml(tmp_path / "bad.yaml", override)
        with pytest.raises(ValueError):
            get_settings(path, environ={})

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            get_settings(path, environ={})

    def test_database_url_required(self):
        with pytest.raises(KeyError):
            parse_settings({"database": {}})


class TestLoaderHelpers:

    def test_deep_merge_does_not_mutate_inputs(self):
        base = {"a": {"b": 1, "c": 2}}
        merged = deep_merge(base, {"a": {"c": 3}, "d": 4})

        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}
        assert base == {"a": {"b": 1, "c": 2}}

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestBootstrap:

    @pytest.fixture
    def settings(self, tmp_path):
        path = _write_yaml(
            tmp_path / "shop.yaml",
            {
                "database": {"url": f"sqlite:///{tmp_path / 'boot.db'}", "lock_timeout": 5},
                "payment": {"currency": "NGN"},
            },
        )
        return get_settings(path, environ={})

    @pytest.fixture
    def booted(self, settings):
        engine = init_storefront(settings, create_schema=True)
        yield engine
        reset_engine()

    def test_init_creates_schema(self, booted):
        tables = set(inspect(booted).get_table_names())
        assert {"products", "orders", "payments", "product_stock_history"} <= tables

    def test_orchestrator_uses_configured_currency(self, settings, booted):
        session = get_session()
        try:
            user = User(username="boot", email="boot@example.com")
            item = Product(name="Boot", price=5, stock=2)
            session.add_all([user, item])
            session.commit()

            orchestrator = build_orchestrator(session, settings)
            order = orchestrator.create_order(
                user.id, [{"product_id": item.id, "quantity": 2}], "x"
            ).value.order
            intent = orchestrator.create_payment_intent(order.id, user.id).value

            assert intent.payment.currency == "NGN"
            assert intent.payment.provider == "mock"
        finally:
            session.close()

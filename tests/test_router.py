"""
Tests for URL routing, handler loading, snapshots and the integration check.
"""

from unittest.mock import MagicMock

import pytest

from card_fetcher.card_fetcher.config import CardFetcherConfig, IntegrationConfig
from card_fetcher.card_fetcher.factory import build_handlers, load_handler
from card_fetcher.card_fetcher.handler import SourceHandler
from card_fetcher.card_fetcher.logging import ConfigError
from card_fetcher.card_fetcher.mock import MockConfig, MockHandler
from card_fetcher.card_fetcher.router import IntegrationStatus, Router
from card_fetcher.card_fetcher.sheet import CharacterCard
from card_fetcher.card_fetcher.snapshots import load_snapshot, save_snapshot, snapshot_path

from factories import CHARACTER_URL, make_mock_data, make_sheet


def make_handler(source_id="mock", main_url="mock.example/characters/", alternate_urls=None, is_up=True, **data):
    config = MockConfig(
        source_id=source_id,
        main_url=main_url,
        alternate_urls=alternate_urls or [],
        is_up=is_up,
    )
    return MockHandler(config, make_mock_data(**data))


@pytest.fixture
def integration(tmp_path):
    return IntegrationConfig(
        _env_file=None,
        snapshot_dir=tmp_path / "snapshots",
        resource_urls={"mock": CHARACTER_URL},
    )


@pytest.fixture
def router(integration):
    return Router(session=MagicMock(), integration=integration)


class TestRouting:
    def test_sources_in_registration_order(self, router):
        router.register_handler(make_handler("one", "one.example/"))
        router.register_handlers(make_handler("two", "two.example/"), make_handler("three", "three.example/"))
        assert router.sources() == ["one", "two", "three"]

    def test_handlers_returns_copy(self, router):
        router.register_handler(make_handler())
        handlers = router.handlers()
        handlers.clear()
        assert len(router.handlers()) == 1

    def test_first_registered_match_wins(self, router):
        first = make_handler("first", "mock.example/characters/")
        second = make_handler("second", "mock.example/")
        router.register_handlers(first, second)
        assert router.task_of(CHARACTER_URL).source_id == "first"

        reversed_router = Router(session=MagicMock())
        reversed_router.register_handlers(second, first)
        assert reversed_router.task_of(CHARACTER_URL).source_id == "second"

    def test_alternate_url(self, router):
        router.register_handler(make_handler(alternate_urls=["alt.example/c/"]))
        task = router.task_of("https://alt.example/c/xyz")
        assert task.character_id == "xyz"
        assert task.normalized_url == "mock.example/characters/xyz"
        assert task.original_url == "https://alt.example/c/xyz"

    def test_no_match(self, router):
        router.register_handler(make_handler())
        assert router.task_of("https://unknown.example/abc") is None
        assert Router(session=MagicMock()).task_of(CHARACTER_URL) is None

    def test_task_map_collapses_duplicates(self, router):
        router.register_handler(make_handler(alternate_urls=["alt.example/c/"]))
        bucket = router.task_map_of([CHARACTER_URL, "https://alt.example/c/abc", "https://bad.example/1"])

        assert list(bucket.tasks) == ["mock.example/characters/abc"]
        assert bucket.valid_urls == ["mock.example/characters/abc", "mock.example/characters/abc"]
        assert bucket.invalid_urls == ["https://bad.example/1"]

    def test_task_slice_keeps_input_order(self, router):
        router.register_handler(make_handler())
        urls = [
            "https://mock.example/characters/b",
            "https://bad.example/1",
            "https://mock.example/characters/a",
            "https://mock.example/characters/b",
        ]
        container = router.task_slice_of(urls)

        assert [t.character_id for t in container.tasks] == ["b", "a", "b"]
        assert container.valid_urls == [
            "mock.example/characters/b",
            "mock.example/characters/a",
            "mock.example/characters/b",
        ]
        assert container.invalid_urls == ["https://bad.example/1"]

    def test_source_tag_option_reaches_tasks(self, integration):
        router = Router(session=MagicMock(), integration=integration, add_source_tag=True)
        router.register_handler(make_handler())
        metadata, card = router.task_of(CHARACTER_URL).fetch_all()
        assert "Mock" in card.sheet.tags
        assert metadata.is_consistent_with(card.sheet)

    def test_each_call_builds_a_new_task(self, router):
        router.register_handler(make_handler())
        assert router.task_of(CHARACTER_URL) is not router.task_of(CHARACTER_URL)


class TestFactory:
    def test_load_handler(self):
        session = MagicMock()
        handler = load_handler("card_fetcher.card_fetcher.mock:build", session)
        assert isinstance(handler, SourceHandler)
        assert handler.source_id() == "mock"
        assert handler.defaults.session is session

    @pytest.mark.parametrize("path", [
        "no_colon",
        ":build",
        "card_fetcher.card_fetcher.mock:",
        "card_fetcher.card_fetcher.does_not_exist:build",
        "card_fetcher.card_fetcher.mock:missing",
        "card_fetcher.card_fetcher.binder:BookBinder",
    ])
    def test_bad_paths(self, path):
        with pytest.raises(ConfigError):
            load_handler(path, MagicMock())

    def test_build_handlers_keeps_order(self):
        handlers = build_handlers(["card_fetcher.card_fetcher.mock:build"] * 2, MagicMock())
        assert len(handlers) == 2
        assert handlers[0] is not handlers[1]

    def test_router_from_config(self, integration):
        config = CardFetcherConfig(
            _env_file=None,
            handlers=["card_fetcher.card_fetcher.mock:build"],
            integration=integration,
            add_source_tag=True,
        )
        router = Router.from_config(config)
        assert router.sources() == ["mock"]
        assert router.integration.resource_url("mock") == CHARACTER_URL
        assert router.add_source_tag


class TestSnapshots:
    def test_missing_snapshot(self, integration):
        with pytest.raises(FileNotFoundError):
            load_snapshot("mock", integration)

    def test_save_and_load(self, router, integration):
        router.register_handler(make_handler())
        task = router.task_of(CHARACTER_URL)

        path = save_snapshot(task, integration)
        assert path == snapshot_path("mock", integration)
        assert path.exists()

        card = load_snapshot("mock", integration)
        assert card == task.fetch_character_card()


class TestIntegrationCheck:
    def save_reference(self, handler, integration):
        reference = Router(session=MagicMock(), integration=integration)
        reference.register_handler(handler)
        save_snapshot(reference.task_of(CHARACTER_URL), integration)

    def test_success(self, router, integration):
        handler = make_handler()
        self.save_reference(handler, integration)
        router.register_handler(handler)
        assert router.check_integrations() == {"mock": IntegrationStatus.INTEGRATION_SUCCESS}

    def test_missing_local_resource(self, router):
        handler = make_handler(is_up=False)
        router.register_handler(handler)
        assert router.check_integrations() == {"mock": IntegrationStatus.MISSING_LOCAL_RESOURCE}
        assert handler.call_count("is_source_up") == 0

    def test_source_down(self, router, integration):
        self.save_reference(make_handler(), integration)
        router.register_handler(make_handler(is_up=False))
        assert router.check_integrations() == {"mock": IntegrationStatus.SOURCE_DOWN}

    def test_no_resource_url(self, router, integration):
        self.save_reference(make_handler(), integration)
        integration.resource_urls.clear()
        router.register_handler(make_handler())
        assert router.check_integrations() == {"mock": IntegrationStatus.MISMATCHED_REMOTE_RESOURCE}

    def test_resource_url_routed_elsewhere(self, router, integration):
        self.save_reference(make_handler(), integration)
        integration.resource_urls["mock"] = "https://other.example/characters/abc"
        router.register_handler(make_handler())
        assert router.check_integrations() == {"mock": IntegrationStatus.MISMATCHED_REMOTE_RESOURCE}

    def test_missing_remote_resource(self, router, integration):
        self.save_reference(make_handler(), integration)
        router.register_handler(make_handler(response_error=ConnectionError("404")))
        assert router.check_integrations() == {"mock": IntegrationStatus.MISSING_REMOTE_RESOURCE}

    def test_snapshot_mismatch(self, router, integration):
        self.save_reference(make_handler(), integration)
        changed = make_sheet(description="A completely different character.")
        router.register_handler(make_handler(character_card=CharacterCard(sheet=changed)))
        assert router.check_integrations() == {"mock": IntegrationStatus.INTEGRATION_FAILURE}

    def test_every_handler_is_checked(self, router, integration):
        self.save_reference(make_handler(), integration)
        router.register_handlers(make_handler(), make_handler("other", "other.example/"))
        assert router.check_integrations() == {
            "mock": IntegrationStatus.INTEGRATION_SUCCESS,
            "other": IntegrationStatus.MISSING_LOCAL_RESOURCE,
        }

    def test_no_handlers(self, router):
        assert router.check_integrations() == {}

    def test_status_strings(self):
        assert str(IntegrationStatus.SOURCE_DOWN) == "SOURCE DOWN"
        assert IntegrationStatus.MISMATCHED_REMOTE_RESOURCE.value == "MISMATCHED REMOTE RESOURCE"

import pytest
from dependency_injector import providers
from pydantic import ValidationError

from pdatrace.config import Settings
from pdatrace.container import Container
from pdatrace.parser.detector import AccountCreationDetector
from pdatrace.scanner import PdaScanner


class TestContainer:
    def test_wires_scanner(self):
        container = Container()

        scanner = container.scanner()

        assert isinstance(scanner, PdaScanner)
        assert isinstance(scanner._detector, AccountCreationDetector)

    def test_program_ids_from_settings(self):
        container = Container()
        container.settings.override(providers.Singleton(
            Settings,
            token_program_id="CustomToken1111111111111111111111111111111",
            lookup_concurrency=3,
            signature_page_size=50,
        ))

        detector = container.detector()
        scanner = container.scanner()

        assert detector._program_ids.token == "CustomToken1111111111111111111111111111111"
        assert detector._max_concurrency == 3
        assert scanner._page_size == 50

    def test_registry_shared(self):
        container = Container()
        assert container.detector()._registry is container.detector()._registry


class TestSettings:
    def test_zero_lookup_concurrency_rejected(self):
        with pytest.raises(ValidationError):
            Settings(lookup_concurrency=0)

    def test_page_size_capped_at_rpc_maximum(self):
        with pytest.raises(ValidationError):
            Settings(signature_page_size=1001)

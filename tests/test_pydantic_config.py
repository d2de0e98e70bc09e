import importlib.util
import warnings

import pytest
from pydantic.warnings import PydanticDeprecatedSince20


def _collect_pydantic_deprecation_warnings(module_name: str) -> list[warnings.WarningMessage]:
    spec = importlib.util.find_spec(module_name)
    assert spec is not None and spec.origin is not None
    isolated_name = f"_pydantic_check_{module_name.replace('.', '_')}"
    isolated_spec = importlib.util.spec_from_file_location(isolated_name, spec.origin)
    assert isolated_spec is not None and isolated_spec.loader is not None
    module = importlib.util.module_from_spec(isolated_spec)
    with warnings.catch_warnings(record=True) as recorded:
        warnings.simplefilter("always", PydanticDeprecatedSince20)
        isolated_spec.loader.exec_module(module)
    return [
        warning for warning in recorded if issubclass(warning.category, PydanticDeprecatedSince20)
    ]


@pytest.mark.parametrize("module_name", ["core.models", "app.deps"])
def test_module_has_no_pydantic_deprecation_warnings(module_name):
    assert not _collect_pydantic_deprecation_warnings(module_name)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("HUGGINGFACE_API_TOKEN", "hf_env")
    monkeypatch.setenv("SUMMARIZE_MAX_WARMUP_SECONDS", "15")
    monkeypatch.setenv("OCR_HISTORY_MAX_RESULTS", "3")

    from app.deps import Settings

    settings = Settings()
    assert settings.huggingface_api_token == "hf_env"
    assert settings.summarize_max_warmup_seconds == 15.0
    assert settings.ocr_history_max_results == 3
    assert settings.ocr_engine == "tesseract"

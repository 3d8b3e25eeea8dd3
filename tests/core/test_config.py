"""
Tests for Config — required keys and per-component model resolution.
"""

import pytest
from unittest.mock import patch

from adspy.core.config import Config


class TestGetModel:

    @pytest.fixture(autouse=True)
    def _clear_model_env(self, monkeypatch):
        monkeypatch.delenv("CLASSIFIER_MODEL", raising=False)
        monkeypatch.delenv("RECOMMENDATION_MODEL", raising=False)

    @pytest.mark.parametrize("key", ["classifier", "recommendation", "unknown"])
    def test_follows_default_model(self, key):
        with patch.object(Config, "DEFAULT_MODEL", "gemini-from-env"):
            assert Config.get_model(key) == "gemini-from-env"

    def test_component_env_override(self, monkeypatch):
        monkeypatch.setenv("CLASSIFIER_MODEL", "gemini-classifier")
        with patch.object(Config, "DEFAULT_MODEL", "gemini-from-env"):
            assert Config.get_model("Classifier") == "gemini-classifier"
            assert Config.get_model("recommendation") == "gemini-from-env"

    def test_pinned_component_model(self):
        with patch.object(Config, "RECOMMENDATION_MODEL", "gemini-pinned"):
            assert Config.get_model("recommendation") == "gemini-pinned"


class TestValidate:

    def test_missing_keys_listed(self):
        with patch.object(Config, "SUPABASE_URL", ""), patch.object(Config, "SUPABASE_SERVICE_KEY", ""):
            with pytest.raises(ValueError, match="SUPABASE_URL, SUPABASE_SERVICE_KEY"):
                Config.validate()

    def test_valid(self):
        with patch.object(Config, "SUPABASE_URL", "https://x.supabase.co"), \
                patch.object(Config, "SUPABASE_SERVICE_KEY", "key"):
            assert Config.validate() is True

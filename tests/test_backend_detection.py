"""Tests for compute backend detection and selection."""

import os
from unittest.mock import patch

import pytest

from ctskit.core.backend import (
    get_backend_info,
    get_compute_backend,
    normalize_backend_name,
    validate_backend,
)


@pytest.mark.tier0
class TestBackendNames:
    """Tests for backend name normalization."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("numpy", "numpy"),
            (" NumPy ", "numpy"),
            ("np", "numpy"),
            ("cpu", "numpy"),
            ("jax", "jax"),
            ("jax.numpy", "jax"),
            ("XLA", "jax"),
        ],
    )
    def test_aliases(self, value, expected):
        assert validate_backend(value) == expected

    def test_unknown_name_passes_through_normalize(self):
        assert normalize_backend_name(" OpenCL ") == "opencl"

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError, match="Unknown backend 'opencl'"):
            validate_backend("opencl")


@pytest.mark.tier0
class TestBackendDetection:
    """Tests for get_compute_backend function."""

    def setup_method(self):
        """Clear cache before each test."""
        get_compute_backend.cache_clear()

    def teardown_method(self):
        """Clean up environment after each test."""
        os.environ.pop("CTSKIT_BACKEND", None)
        get_compute_backend.cache_clear()

    def test_env_override_numpy(self):
        os.environ["CTSKIT_BACKEND"] = "numpy"
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu", "gpu")):
            assert get_compute_backend() == "numpy"

    def test_env_override_jax(self):
        os.environ["CTSKIT_BACKEND"] = "jax"
        assert get_compute_backend() == "jax"

    def test_env_override_alias_and_whitespace(self):
        os.environ["CTSKIT_BACKEND"] = "  XLA  "
        assert get_compute_backend() == "jax"

    def test_invalid_override_ignored(self):
        """Invalid CTSKIT_BACKEND falls through to auto-selection."""
        os.environ["CTSKIT_BACKEND"] = "invalid"
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu",)):
            assert get_compute_backend() == "numpy"

    def test_auto_override(self):
        os.environ["CTSKIT_BACKEND"] = "auto"
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu", "gpu")):
            assert get_compute_backend() == "jax"

    def test_cpu_only_jax_returns_numpy(self):
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu",)):
            assert get_compute_backend() == "numpy"

    def test_with_accelerator_returns_jax(self):
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu", "gpu")):
            assert get_compute_backend() == "jax"

    def test_caching(self):
        """Backend detection is cached until cache_clear()."""
        with patch("ctskit.core.backend._jax_platforms", return_value=("cpu",)):
            first = get_compute_backend()
        os.environ["CTSKIT_BACKEND"] = "jax"
        assert get_compute_backend() == first == "numpy"


@pytest.mark.tier0
class TestBackendInfo:
    """Tests for get_backend_info function."""

    def setup_method(self):
        get_compute_backend.cache_clear()

    def teardown_method(self):
        os.environ.pop("CTSKIT_BACKEND", None)
        get_compute_backend.cache_clear()

    def test_without_jax(self):
        with patch("ctskit.core.backend._jax_platforms", return_value=None):
            info = get_backend_info()
        assert info == {
            "selected": "numpy",
            "jax_platforms": None,
            "gpu_available": False,
            "override": None,
        }

    def test_tpu_counts_as_accelerator(self):
        with patch("ctskit.core.backend._jax_platforms", return_value=("tpu",)):
            info = get_backend_info()
        assert info["gpu_available"] is True
        assert info["selected"] == "jax"

    def test_shows_override_when_set(self):
        os.environ["CTSKIT_BACKEND"] = "jax"
        info = get_backend_info()
        assert info["override"] == "jax"
        assert info["selected"] == "jax"


class TestJaxConfig:
    """Tests for jax configuration helpers (skipped without jax)."""

    def test_jax_info_and_verification(self):
        pytest.importorskip("jax")
        from ctskit.core.jax_config import configure_jax, get_jax_info, verify_jax_installation

        info = configure_jax()
        assert info == get_jax_info()
        assert info["x64_enabled"] is False
        assert info["devices"]
        assert verify_jax_installation() is True

    def test_verification_failure_is_reported(self):
        pytest.importorskip("jax")
        from ctskit.core import jax_config

        with patch.object(jax_config.jax, "jit", side_effect=RuntimeError("no backend")):
            with pytest.raises(RuntimeError, match="JAX verification failed: RuntimeError"):
                jax_config.verify_jax_installation()

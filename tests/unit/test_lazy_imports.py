"""Tests for the lazy import system in weavefeed.__init__."""

from __future__ import annotations

import subprocess
import sys

import pytest


class TestLazyImports:
    """Test PEP 562 lazy loading in weavefeed.__init__."""

    def test_lazy_import_does_not_eagerly_load(self) -> None:
        """Importing weavefeed in a fresh interpreter loads no subpackages."""
        code = (
            "import sys, weavefeed; "
            "print(sorted(m for m in sys.modules if m.startswith('weavefeed.')))"
        )
        result = subprocess.run(
            [sys.executable, "-c", code], capture_output=True, text=True, check=True
        )
        assert result.stdout.strip() == "[]"

    def test_lazy_import_resolves_on_access(self) -> None:
        from weavefeed import FeedPipeline
        from weavefeed.pipeline import FeedPipeline as DirectFeedPipeline

        assert FeedPipeline is DirectFeedPipeline

    def test_lazy_import_caches_after_first_access(self) -> None:
        import weavefeed

        _ = weavefeed.TagFilter
        assert "TagFilter" in vars(weavefeed)

    def test_lazy_import_invalid_attribute(self) -> None:
        import weavefeed

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(weavefeed, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        import weavefeed

        assert set(weavefeed.__all__) == set(weavefeed._LAZY_IMPORTS)

    def test_dir_returns_all(self) -> None:
        import weavefeed

        assert dir(weavefeed) == weavefeed.__all__

    def test_version_is_accessible(self) -> None:
        import weavefeed

        assert isinstance(weavefeed.__version__, str)
        assert weavefeed.__version__

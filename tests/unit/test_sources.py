"""Unit tests for the lookup sources."""

import pytest

from tagreader import (
    DotenvSource,
    EnvironSource,
    FallbackSource,
    MapSource,
    MultiMapSource,
    MultiSource,
    QuerySource,
    SingleSource,
    Source,
    SplitSource,
    source_from_multi,
    source_from_single,
)


class TestMapSources:
    @pytest.mark.unit
    def test_map_source(self):
        source = MapSource({"a": "1", "empty": ""})

        assert source.lookup("a") == ("1", True)
        assert source.lookup("empty") == ("", True)
        assert source.lookup("missing") == ("", False)

    @pytest.mark.unit
    def test_multi_map_source_returns_copies(self):
        backing = {"a": ["1", "2"]}
        source = MultiMapSource(backing)

        values, ok = source.lookup_all("a")
        values.append("3")

        assert ok is True
        assert backing["a"] == ["1", "2"]
        assert source.lookup_all("missing") == ([], False)

    @pytest.mark.unit
    def test_protocols(self):
        assert isinstance(MapSource({}), SingleSource)
        assert not isinstance(MapSource({}), MultiSource)
        assert isinstance(MultiMapSource({}), MultiSource)
        assert isinstance(SplitSource(), Source)


class TestCombinedSources:
    @pytest.mark.unit
    def test_split_source_keeps_sides_apart(self):
        source = SplitSource(
            single=MapSource({"a": "x"}), multi=MultiMapSource({"b": ["y"]})
        )

        assert source.lookup("a") == ("x", True)
        assert source.lookup("b") == ("", False)
        assert source.lookup_all("a") == ([], False)
        assert source.lookup_all("b") == (["y"], True)

    @pytest.mark.unit
    def test_one_sided_sources(self):
        single = source_from_single(MapSource({"a": "x"}))
        multi = source_from_multi(MultiMapSource({"a": ["x"]}))

        assert single.lookup_all("a") == ([], False)
        assert multi.lookup("a") == ("", False)

    @pytest.mark.unit
    def test_fallback_source_derives_missing_side(self):
        source = FallbackSource(
            single=MapSource({"a": "x"}), multi=MultiMapSource({"b": ["y", "z"]})
        )

        assert source.lookup("b") == ("y", True)
        assert source.lookup_all("a") == (["x"], True)
        assert source.lookup("c") == ("", False)
        assert source.lookup_all("c") == ([], False)

    @pytest.mark.unit
    def test_fallback_ignores_empty_lists_for_single_lookup(self):
        source = FallbackSource(multi=MultiMapSource({"a": []}))

        assert source.lookup("a") == ("", False)
        assert source.lookup_all("a") == ([], True)


class TestBackends:
    @pytest.mark.unit
    def test_environ_source_with_prefix(self):
        source = EnvironSource({"APP_PORT": "80", "PORT": "81"}, prefix="APP_")

        assert source.lookup("PORT") == ("80", True)
        assert source.lookup("HOST") == ("", False)

    @pytest.mark.unit
    def test_environ_source_reads_process_environment(self, monkeypatch):
        source = EnvironSource()
        monkeypatch.setenv("TAGREADER_TEST_VALUE", "present")

        assert source.lookup("TAGREADER_TEST_VALUE") == ("present", True)

    @pytest.mark.unit
    def test_dotenv_source(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\nHOST=example.org\nPORT='2222'\nEMPTY=\nBARE\n",
            encoding="utf-8",
        )

        source = DotenvSource(env_file)

        assert source.path == env_file
        assert source.lookup("HOST") == ("example.org", True)
        assert source.lookup("PORT") == ("2222", True)
        assert source.lookup("EMPTY") == ("", True)
        assert source.lookup("BARE") == ("", False)

    @pytest.mark.unit
    def test_dotenv_source_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DotenvSource(tmp_path / "missing.env")

    @pytest.mark.unit
    def test_query_source(self):
        source = QuerySource("tag=a&tag=b&name=x%20y&blank=")

        assert source.lookup("tag") == ("a", True)
        assert source.lookup_all("tag") == (["a", "b"], True)
        assert source.lookup("name") == ("x y", True)
        assert source.lookup("blank") == ("", True)
        assert source.lookup("missing") == ("", False)

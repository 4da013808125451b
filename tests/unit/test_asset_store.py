"""Tests for the AssetStore — memoized load-or-generate resolution."""

from __future__ import annotations

from typing import ClassVar

import pytest

from clusterforge.core.asset import Asset, PersistedStateError, WritableAsset, fetch_optional
from clusterforge.core.asset_store import (
    AssetGenerationError,
    AssetLoadError,
    AssetStore,
)
from clusterforge.core.dependency_graph import CyclicDependencyError, InvalidDependencyError
from clusterforge.core.parents import Parents, UnresolvedDependencyError
from clusterforge.models.build import ResolutionSource
from clusterforge.models.files import FileRecord

# Every generate() and load() call, in order, as "<Class>.<method>".
CALLS: list[str] = []


@pytest.fixture(autouse=True)
def _reset_calls():
    CALLS.clear()
    yield
    CALLS.clear()


class _TextAsset(WritableAsset):
    """Writable test asset: value is its deps' values joined, plus its tag."""

    tag: ClassVar[str]
    deps: ClassVar[tuple[type[Asset], ...]] = ()

    def __init__(self) -> None:
        self.value = ""

    @property
    def name(self) -> str:
        return f"Text ({self.tag})"

    @property
    def filename(self) -> str:
        return f"{self.tag}.txt"

    def dependencies(self) -> list[type[Asset]]:
        return list(self.deps)

    def generate(self, parents: Parents) -> None:
        CALLS.append(f"{type(self).__name__}.generate")
        upstream = [parents.get(d).value for d in self.deps]  # type: ignore[attr-defined]
        self.value = "+".join(upstream + [self.tag])

    def files(self) -> list[FileRecord]:
        return [FileRecord(filename=self.filename, data=self.value.encode())]

    def load(self, fetcher) -> bool:
        CALLS.append(f"{type(self).__name__}.load")
        file = fetch_optional(fetcher, self.filename)
        if file is None:
            return False
        self.value = file.data.decode()
        return True


class Leaf(_TextAsset):
    tag = "leaf"


class Left(_TextAsset):
    tag = "left"
    deps = (Leaf,)


class Right(_TextAsset):
    tag = "right"
    deps = (Leaf,)


class Top(_TextAsset):
    tag = "top"
    deps = (Left, Right)


class Memo(Asset):
    """Non-writable asset: always generated."""

    def __init__(self) -> None:
        self.value = ""

    @property
    def name(self) -> str:
        return "Memo"

    def dependencies(self) -> list[type[Asset]]:
        return [Leaf]

    def generate(self, parents: Parents) -> None:
        CALLS.append("Memo.generate")
        self.value = parents.get(Leaf).value + "+memo"


class CycleA(_TextAsset):
    tag = "a"


class CycleB(_TextAsset):
    tag = "b"
    deps = (CycleA,)


CycleA.deps = (CycleB,)


class Broken(_TextAsset):
    tag = "broken"
    deps = (Leaf,)

    def generate(self, parents: Parents) -> None:
        CALLS.append("Broken.generate")
        raise RuntimeError("disk on fire")


class AboveBroken(_TextAsset):
    tag = "above"
    deps = (Broken,)


class Corrupt(_TextAsset):
    tag = "corrupt"

    def load(self, fetcher) -> bool:
        CALLS.append("Corrupt.load")
        raise PersistedStateError("failed to unmarshal corrupt.txt: invalid JSON syntax")


class Sneaky(_TextAsset):
    """Reads a dependency it never declared."""

    tag = "sneaky"
    deps = (Leaf,)

    def generate(self, parents: Parents) -> None:
        parents.get(Right)


class NotAnAsset(_TextAsset):
    tag = "bad"
    deps = ("Leaf",)  # type: ignore[assignment]


class UserInput(_TextAsset):
    tag = "user"
    user_input = True


class AboveUserInput(_TextAsset):
    tag = "above"
    deps = (UserInput,)


class TestResolution:
    def test_diamond_resolves_each_asset_once(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        (top,) = store.fetch(Top)

        assert top.value == "leaf+left+leaf+right+top"
        assert CALLS.count("Leaf.generate") == 1
        assert CALLS.count("Leaf.load") == 1

    def test_dependencies_resolve_before_dependents(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        store.fetch(Top)
        generated = [c for c in CALLS if c.endswith(".generate")]
        assert generated == [
            "Leaf.generate",
            "Left.generate",
            "Right.generate",
            "Top.generate",
        ]

    def test_memoized_across_fetch_calls(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        (left,) = store.fetch(Left)
        (top,) = store.fetch(Top)
        assert CALLS.count("Leaf.generate") == 1
        assert CALLS.count("Left.generate") == 1
        assert store.resolved.get(Left) is left
        assert top.value.startswith(left.value)

    def test_returns_roots_in_requested_order(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        right, left = store.fetch(Right, Left)
        assert isinstance(right, Right)
        assert isinstance(left, Left)

    def test_non_writable_assets_are_always_generated(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher({"leaf.txt": "disk"}))
        (memo,) = store.fetch(Memo)
        assert memo.value == "disk+memo"
        assert "Leaf.generate" not in CALLS


class TestLoadOrGenerate:
    def test_loaded_asset_skips_its_dependencies(self, make_fetcher):
        fetcher = make_fetcher({"top.txt": "from-disk"})
        store = AssetStore(fetcher=fetcher)
        (top,) = store.fetch(Top)

        assert top.value == "from-disk"
        assert CALLS == ["Top.load"]
        assert fetcher.requested == ["top.txt"]

    def test_load_and_generate_reach_same_state(self, make_fetcher):
        generated_store = AssetStore(fetcher=make_fetcher())
        (generated,) = generated_store.fetch(Left)

        loaded_store = AssetStore(fetcher=make_fetcher({"left.txt": generated.value}))
        (loaded,) = loaded_store.fetch(Left)

        assert loaded.value == generated.value
        assert loaded.files() == generated.files()

    def test_load_from_disk_disabled_always_generates(self, make_fetcher):
        fetcher = make_fetcher({"top.txt": "from-disk"})
        store = AssetStore(fetcher=fetcher, load_from_disk=False)
        (top,) = store.fetch(Top)

        assert top.value == "leaf+left+leaf+right+top"
        assert fetcher.requested == []

    def test_user_input_loaded_when_load_from_disk_disabled(self, make_fetcher):
        fetcher = make_fetcher({"user.txt": "supplied", "above.txt": "stale"})
        store = AssetStore(fetcher=fetcher, load_from_disk=False)
        (above,) = store.fetch(AboveUserInput)

        assert above.value == "supplied+above"
        assert fetcher.requested == ["user.txt"]
        assert CALLS == ["UserInput.load", "AboveUserInput.generate"]
        sources = {r.asset_name: r.source for r in store.records}
        assert sources["Text (user)"] == ResolutionSource.LOADED

    def test_absent_user_input_is_generated(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher(), load_from_disk=False)
        (above,) = store.fetch(AboveUserInput)
        assert above.value == "user+above"

    def test_records_resolution_sources(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher({"left.txt": "cached"}))
        store.fetch(Top)
        sources = {r.asset_name: r.source for r in store.records}

        assert sources["Text (left)"] == ResolutionSource.LOADED
        assert sources["Text (leaf)"] == ResolutionSource.GENERATED
        assert sources["Text (top)"] == ResolutionSource.GENERATED

    def test_generated_record_lists_direct_dependencies(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        store.fetch(Top)
        top_record = store.records[-1]
        assert top_record.dependencies == [
            f"{Left.__module__}.Left",
            f"{Right.__module__}.Right",
        ]


class TestSeeding:
    def test_seeded_asset_is_not_loaded_or_generated(self, make_fetcher):
        leaf = Leaf()
        leaf.value = "seeded"
        store = AssetStore(fetcher=make_fetcher({"leaf.txt": "disk"}))
        store.add(leaf)

        (left,) = store.fetch(Left)
        assert left.value == "seeded+left"
        assert "Leaf.load" not in CALLS
        assert "Leaf.generate" not in CALLS
        assert store.records[0].source == ResolutionSource.SEEDED


class TestFailures:
    def test_cycle_rejected_before_any_resolution(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(CyclicDependencyError, match="CycleA"):
            store.fetch(CycleA)
        assert CALLS == []

    def test_invalid_dependency_rejected(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(InvalidDependencyError, match="NotAnAsset"):
            store.fetch(NotAnAsset)
        assert CALLS == []

    def test_generation_error_names_failing_asset(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(AssetGenerationError) as exc_info:
            store.fetch(AboveBroken)

        err = exc_info.value
        assert err.asset_name == "Text (broken)"
        assert str(err) == 'failed to generate asset "Text (broken)": disk on fire'
        assert isinstance(err.cause, RuntimeError)
        assert "AboveBroken.generate" not in CALLS

    def test_failed_asset_is_not_memoized(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(AssetGenerationError):
            store.fetch(AboveBroken)
        assert Broken not in store.resolved
        assert AboveBroken not in store.resolved
        assert Leaf in store.resolved

    def test_load_error_never_falls_back_to_generate(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(AssetLoadError) as exc_info:
            store.fetch(Corrupt)

        assert exc_info.value.asset_name == "Text (corrupt)"
        assert str(exc_info.value) == (
            'failed to load asset "Text (corrupt)": '
            "failed to unmarshal corrupt.txt: invalid JSON syntax"
        )
        assert "Corrupt.generate" not in CALLS

    def test_unreadable_file_is_a_load_error(self, make_fetcher):
        fetcher = make_fetcher(errors={"leaf.txt": PermissionError("fetch failed")})
        store = AssetStore(fetcher=fetcher)
        with pytest.raises(AssetLoadError, match="failed to load leaf.txt file: fetch failed"):
            store.fetch(Leaf)

    def test_undeclared_dependency_is_a_programming_error(self, make_fetcher):
        store = AssetStore(fetcher=make_fetcher())
        with pytest.raises(UnresolvedDependencyError, match="Right"):
            store.fetch(Sneaky)

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from depman import compute_directory_hash
from depman.dirhash import DIGEST_PREFIX
from depman.errors import StorageError, ValidationError

MakeBundle = Callable[[str, dict[str, str]], Path]


def test_digest_is_stable_and_prefixed(make_bundle: MakeBundle) -> None:
    bundle = make_bundle("one", {"a.txt": "hello", "b.txt": "world"})

    first = compute_directory_hash(bundle)
    second = compute_directory_hash(bundle)

    assert first == second
    assert first.startswith(DIGEST_PREFIX)


def test_digest_ignores_creation_order_and_location(make_bundle: MakeBundle) -> None:
    forward = make_bundle("forward", {"a.txt": "hello", "sub/b.txt": "world"})
    backward = make_bundle("backward", {"sub/b.txt": "world", "a.txt": "hello"})

    assert compute_directory_hash(forward) == compute_directory_hash(backward)


def test_digest_covers_content_and_paths(make_bundle: MakeBundle) -> None:
    base = compute_directory_hash(make_bundle("base", {"a.txt": "hello"}))

    assert compute_directory_hash(make_bundle("content", {"a.txt": "hellO"})) != base
    assert compute_directory_hash(make_bundle("renamed", {"c.txt": "hello"})) != base
    assert compute_directory_hash(make_bundle("moved", {"sub/a.txt": "hello"})) != base
    assert compute_directory_hash(make_bundle("extra", {"a.txt": "hello", "z": ""})) != base


def test_empty_directories_do_not_contribute(make_bundle: MakeBundle) -> None:
    bundle = make_bundle("dirs", {"a.txt": "hello"})
    before = compute_directory_hash(bundle)

    (bundle / "empty").mkdir()

    assert compute_directory_hash(bundle) == before


def test_symlink_target_is_hashed(make_bundle: MakeBundle) -> None:
    bundle = make_bundle("links", {"a.txt": "hello", "b.txt": "world"})
    link = bundle / "current"
    os.symlink("a.txt", link)
    first = compute_directory_hash(bundle)

    link.unlink()
    os.symlink("b.txt", link)

    assert compute_directory_hash(bundle) != first


def test_missing_directory_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        compute_directory_hash(tmp_path / "absent")


def test_non_utf8_file_names_are_hashed_by_raw_bytes(make_bundle: MakeBundle) -> None:
    bundle = make_bundle("latin", {"a.txt": "hello"})
    raw_root = os.fsencode(bundle)
    with open(raw_root + b"/caf\xe9.txt", "wb") as handle:
        handle.write(b"menu")

    first = compute_directory_hash(bundle)
    assert compute_directory_hash(bundle) == first

    os.rename(raw_root + b"/caf\xe9.txt", raw_root + b"/caf\xe8.txt")

    assert compute_directory_hash(bundle) != first


def test_latin1_and_utf8_names_hash_differently(make_bundle: MakeBundle) -> None:
    utf8 = make_bundle("utf8", {"café.txt": "menu"})
    latin = make_bundle("latin", {})
    with open(os.fsencode(latin) + b"/caf\xe9.txt", "wb") as handle:
        handle.write(b"menu")

    assert compute_directory_hash(utf8) != compute_directory_hash(latin)


@pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes are not available")
def test_fifo_is_rejected_without_being_opened(make_bundle: MakeBundle) -> None:
    bundle = make_bundle("fifo", {"a.txt": "hello"})
    os.mkfifo(bundle / "sub-pipe")

    with pytest.raises(ValidationError) as excinfo:
        compute_directory_hash(bundle)

    assert not isinstance(excinfo.value, StorageError)
    assert excinfo.value.context["path"] == str(bundle / "sub-pipe")


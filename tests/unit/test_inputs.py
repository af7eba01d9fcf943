from __future__ import annotations

import pytest

from bufconfig.domain.errors import ValidationError
from bufconfig.domain.inputs import GenerateInputConfig, InputType


def test_git_repo_options() -> None:
    config = GenerateInputConfig(InputType.GIT_REPO, "https://github.com/acme/api.git", branch="main", depth=50)
    assert config.set_options() == ("branch", "depth")


def test_option_not_allowed_for_type() -> None:
    with pytest.raises(ValidationError, match="option branch is not allowed for module input"):
        GenerateInputConfig(InputType.MODULE, "buf.build/acme/weather", branch="main")


def test_commit_and_tag_are_exclusive() -> None:
    with pytest.raises(ValidationError, match="commit and tag"):
        GenerateInputConfig(InputType.GIT_REPO, "repo.git", commit="abc", tag="v1")


@pytest.mark.parametrize("compression", ["gzip", "gz", "zstd", "zst", "none"])
def test_compression_aliases(compression: str) -> None:
    assert GenerateInputConfig(InputType.TARBALL, "a.tar", compression=compression).compression == compression


def test_unknown_compression_rejected() -> None:
    with pytest.raises(ValidationError, match="unknown compression"):
        GenerateInputConfig(InputType.BINARY_IMAGE, "image.bin", compression="lz4")


def test_empty_location_rejected() -> None:
    with pytest.raises(ValidationError, match="empty location for zip archive"):
        GenerateInputConfig(InputType.ZIP_ARCHIVE, "")

"""Shared fixtures for core unit tests"""

import pytest


@pytest.fixture(name="sample_zip")
def sample_zip_fixture(make_zip, sample_md):
    """Archive with two markdown files plus entries that must be ignored."""
    return make_zip({
        "posts/2023/hello.md": sample_md,
        "README.MARKDOWN": "# Readme\n\nText",
        "image.png": b"\x89PNG",
        "__MACOSX/._hello.md": b"\x00\x05",
        ".DS_Store": b"\x00",
        "posts/._hidden.md": "hidden",
        "empty/": "",
    })
